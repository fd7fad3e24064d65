"""
HTML Generator
==============

Embed a Gosling spec into a standalone HTML document for browser rendering.
The document loads React, PixiJS, Higlass and Gosling from a CDN at pinned
versions and hands the spec to ``gosling.embed``.
"""

from typing import Dict, Any
from pathlib import Path
import jinja2

from gosling_screenshot.config.logging import get_logger
from gosling_screenshot.models.schemas import RenderOptions

logger = get_logger(__name__)

TEMPLATE_NAME = "gosling.html"

# Applied in order; the backslash must be escaped first.
_TEMPLATE_LITERAL_ESCAPES = (
    ("\\", "\\\\"),
    ("`", "\\`"),
    ("${", "\\${"),
    ("</", "<\\/"),
    ("<!--", "<\\!--"),
)


class HTMLGenerationError(Exception):
    """Exception raised when HTML generation fails."""

    pass


def escape_spec_text(spec_text: str) -> str:
    """
    Escape spec text for embedding in a JavaScript template literal.

    The page parses the spec with ``JSON.parse(`...`)``, so backslashes in the
    raw text (for example ``"\\t"`` separators) would otherwise be consumed by
    the template literal before JSON sees them. Backticks and ``${`` would end
    the literal or start an interpolation, and ``</`` could close the script
    element early.

    Args:
        spec_text: Raw spec file contents

    Returns:
        Text whose template-literal value equals ``spec_text``
    """
    escaped = spec_text
    for raw, replacement in _TEMPLATE_LITERAL_ESCAPES:
        escaped = escaped.replace(raw, replacement)
    return escaped


class GoslingHTMLGenerator:
    """Jinja2-based generator for the Gosling bootstrap page."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(generator="jinja2")  # structlog.BoundLoggerBase
        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup Jinja2 template environment."""
        template_dir = Path(__file__).parent / "templates"
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            enable_async=True,
        )
        self.env.filters["template_literal"] = escape_spec_text

    async def generate(self, spec_text: str, options: RenderOptions) -> str:
        """
        Generate the embedding HTML for a spec.

        Args:
            spec_text: Raw spec file contents
            options: Rendering options

        Returns:
            Generated HTML string

        Raises:
            HTMLGenerationError: If HTML generation fails
        """
        try:
            template = self.env.get_template(TEMPLATE_NAME)
            context = self._prepare_context(spec_text, options)
            html = await template.render_async(**context)

            self.logger.debug(
                "HTML generation completed",
                template=TEMPLATE_NAME,
                gosling_version=options.libraries.gosling_version,
                html_length=len(html),
            )

            return html

        except jinja2.TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            self.logger.error("HTML generation failed", error=error_msg)
            raise HTMLGenerationError(error_msg)

    def _prepare_context(self, spec_text: str, options: RenderOptions) -> Dict[str, Any]:
        """Prepare template rendering context."""
        return {
            "spec": spec_text,
            "libraries": options.libraries,
            "base_url": options.libraries.cdn_base_url,
            "transparent_background": options.transparent_background,
        }


async def generate_html(spec_text: str, options: RenderOptions) -> str:
    """
    Generate the embedding HTML for a spec.

    Args:
        spec_text: Raw spec file contents
        options: Rendering options

    Returns:
        Generated HTML string
    """
    return await GoslingHTMLGenerator().generate(spec_text, options)
