"""
Test Helpers
============

Helper functions for common testing operations.
"""

import asyncio
import io
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from PIL import Image

from gosling_screenshot.core.rendering.screenshot import RenderError
from gosling_screenshot.models.schemas import ImageFormat, RenderOptions

_TEMPLATE_LITERAL_PATTERN = re.compile(r"JSON\.parse\(`((?:\\.|[^`\\])*)`\)", re.DOTALL)


def write_spec(directory: Path, name: str, spec: Any) -> Path:
    """Write a spec (dict or raw text) into ``directory``."""
    path = directory / name
    path.write_text(spec if isinstance(spec, str) else json.dumps(spec), encoding="utf-8")
    return path


def extract_template_literal(html: str) -> str:
    """Return the raw text between the backticks of ``JSON.parse(`...`)``."""
    match = _TEMPLATE_LITERAL_PATTERN.search(html)
    assert match is not None, "HTML does not embed a spec template literal"
    return match.group(1)


def cook_template_literal(raw: str) -> str:
    """
    Evaluate escapes the way a JavaScript template literal does.

    Only single-character escapes are handled; the embedding never emits
    ``\\n``, ``\\x`` or ``\\u`` sequences.
    """
    cooked: List[str] = []
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == "\\":
            cooked.append(raw[index + 1])
            index += 2
        else:
            assert not raw.startswith("${", index), "Unescaped interpolation in template literal"
            cooked.append(char)
            index += 1
    return "".join(cooked)


def make_png(width: int = 8, height: int = 6, color: str = "red") -> bytes:
    """Create real PNG bytes."""
    output = io.BytesIO()
    Image.new("RGB", (width, height), color).save(output, format="PNG")
    return output.getvalue()


class FakeRenderer:
    """Async renderer double that records calls and fails for chosen files."""

    def __init__(
        self,
        image_bytes: bytes = b"\x89PNG\r\n\x1a\nfake_image_data",
        fail_on: Optional[Set[str]] = None,
    ):
        self.image_bytes = image_bytes
        self.fail_on = fail_on or set()
        self.calls: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, spec_text: str, fmt: ImageFormat, options: RenderOptions) -> bytes:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.calls.append({"spec_text": spec_text, "format": fmt, "options": options})
            await asyncio.sleep(0)
            for marker in self.fail_on:
                if marker in spec_text:
                    raise RenderError(f"Timed out rendering '{options.selector}'")
            return self.image_bytes
        finally:
            self.active -= 1
