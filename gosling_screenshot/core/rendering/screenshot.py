"""
Element Screenshot
==================

Playwright-based screenshots of a single rendered DOM element.
Each capture owns a dedicated Chromium instance that is torn down on every
exit path before the call returns.
"""

from typing import Optional, Dict, Any, AsyncGenerator, Iterator
import io
import os
import tempfile
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)
from PIL import Image  # type: ignore

from gosling_screenshot.config.logging import get_logger
from gosling_screenshot.models.schemas import BrowserLaunchOptions, ImageFormat, RenderOptions

logger = get_logger(__name__)


class RenderError(Exception):
    """Exception raised when a page cannot be rendered or captured."""

    pass


@asynccontextmanager
async def browser_session(launch_options: BrowserLaunchOptions) -> AsyncGenerator[Browser, None]:
    """
    Launch a Chromium instance for the duration of the block.

    Args:
        launch_options: Named Chromium launch flags

    Raises:
        RenderError: If Playwright or the browser cannot be started
    """
    try:
        playwright = await async_playwright().start()
    except Exception as e:
        raise RenderError(f"Playwright start failed: {e}") from e

    try:
        try:
            browser = await playwright.chromium.launch(
                headless=launch_options.headless,
                args=launch_options.to_args(),
            )
        except Exception as e:
            raise RenderError(f"Browser launch failed: {e}") from e

        logger.debug("Browser launched", args=launch_options.to_args())
        try:
            yield browser
        finally:
            await browser.close()
            logger.debug("Browser closed")
    finally:
        await playwright.stop()


@contextmanager
def staged_html(html_content: str, temp_dir: Optional[Path] = None) -> Iterator[Path]:
    """
    Write HTML to a uniquely named temp file that is removed when the block exits.

    Some Higlass plugins need a real page origin, which ``page.set_content``
    does not provide.
    """
    fd, name = tempfile.mkstemp(prefix="gosling-", suffix=".html", dir=temp_dir)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(html_content)
        yield path
    finally:
        path.unlink(missing_ok=True)


class ElementScreenshotter:
    """Capture a screenshot of one element of an HTML document."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="element_screenshotter")

    async def render_to_element_screenshot(
        self,
        html_content: str,
        selector: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        fmt: ImageFormat = ImageFormat.PNG,
        options: Optional[RenderOptions] = None,
    ) -> bytes:
        """
        Render HTML in a fresh browser and screenshot the selected element.

        Args:
            html_content: HTML document to render
            selector: CSS selector of the element to capture
            timeout_ms: How long to wait for the element to appear
            fmt: Output image format
            options: Rendering options

        Returns:
            Encoded image bytes

        Raises:
            RenderError: On launch failure, navigation timeout, missing element
                or screenshot failure
        """
        options = options or RenderOptions()
        selector = selector or options.selector
        timeout_ms = timeout_ms or options.selector_timeout

        try:
            async with browser_session(options.browser) as browser:
                context = await self._create_browser_context(browser, options)

                try:
                    page = await context.new_page()
                    page.set_default_timeout(options.navigation_timeout)

                    if options.load_via_tempfile:
                        with staged_html(html_content, options.temp_path) as html_path:
                            await page.goto(html_path.as_uri(), wait_until="networkidle")
                            return await self._capture(page, selector, timeout_ms, fmt, options)

                    await page.set_content(html_content, wait_until="networkidle")
                    return await self._capture(page, selector, timeout_ms, fmt, options)

                finally:
                    await context.close()

        except RenderError:
            raise
        except PlaywrightTimeoutError as e:
            error_msg = f"Timed out rendering '{selector}': {e}"
            self.logger.error("Render timeout", selector=selector, error=str(e))
            raise RenderError(error_msg) from e
        except Exception as e:
            error_msg = f"Element screenshot failed: {e}"
            self.logger.error("Element screenshot failed", selector=selector, error=str(e))
            raise RenderError(error_msg) from e

    async def _create_browser_context(
        self, browser: Browser, options: RenderOptions
    ) -> BrowserContext:
        """Create browser context with appropriate settings."""
        context_options: Dict[str, Any] = {
            "viewport": {"width": options.width, "height": options.height},
            "device_scale_factor": options.device_scale_factor,
        }
        return await browser.new_context(**context_options)  # type: ignore[arg-type]

    async def _capture(
        self,
        page: Page,
        selector: str,
        timeout_ms: int,
        fmt: ImageFormat,
        options: RenderOptions,
    ) -> bytes:
        """Wait for the element and take its screenshot."""
        element = await page.wait_for_selector(selector, timeout=timeout_ms, state="visible")
        if element is None:
            raise RenderError(f"Element '{selector}' not found")

        screenshot_kwargs: Dict[str, Any] = {}
        if fmt is ImageFormat.JPEG:
            screenshot_kwargs["type"] = "jpeg"
            if options.quality is not None:
                screenshot_kwargs["quality"] = options.quality
        else:
            # Playwright has no WebP encoder; WebP is re-encoded from PNG
            screenshot_kwargs["type"] = "png"
            screenshot_kwargs["omit_background"] = options.transparent_background

        image_bytes = await element.screenshot(**screenshot_kwargs)

        if fmt is ImageFormat.WEBP:
            image_bytes = self._encode_webp(image_bytes, options)

        self.logger.debug(
            "Element captured", selector=selector, format=fmt.value, file_size=len(image_bytes)
        )
        return image_bytes

    def _encode_webp(self, png_bytes: bytes, options: RenderOptions) -> bytes:
        """
        Re-encode a PNG capture as WebP using PIL.

        Lossless unless a quality is set.
        """
        image = Image.open(io.BytesIO(png_bytes))  # type: ignore[attr-defined]

        output = io.BytesIO()
        save_kwargs: Dict[str, Any] = {"format": "WEBP"}
        if options.quality is not None:
            save_kwargs["quality"] = options.quality
        else:
            save_kwargs["lossless"] = True

        image.save(output, **save_kwargs)  # type: ignore[attr-defined]
        webp_bytes = output.getvalue()

        self.logger.debug(
            "WebP encoding completed", png_size=len(png_bytes), webp_size=len(webp_bytes)
        )
        return webp_bytes


async def render_to_element_screenshot(
    html_content: str,
    selector: str,
    timeout_ms: int,
    fmt: ImageFormat = ImageFormat.PNG,
    options: Optional[RenderOptions] = None,
) -> bytes:
    """
    Render HTML and screenshot the element matching ``selector``.

    Args:
        html_content: HTML document to render
        selector: CSS selector of the element to capture
        timeout_ms: How long to wait for the element to appear
        fmt: Output image format
        options: Rendering options

    Returns:
        Encoded image bytes
    """
    screenshotter = ElementScreenshotter()
    return await screenshotter.render_to_element_screenshot(
        html_content, selector, timeout_ms, fmt, options
    )
