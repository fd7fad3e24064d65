"""
Unit Tests for Element Screenshots
==================================

Tests for browser lifecycle, page loading strategies, element capture and
error wrapping. Playwright is replaced by the mocks in tests.utils.mocks.
"""

import io
from unittest.mock import patch

import pytest
from PIL import Image
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from gosling_screenshot.core.rendering.screenshot import (
    ElementScreenshotter,
    RenderError,
    browser_session,
    render_to_element_screenshot,
    staged_html,
)
from gosling_screenshot.models.schemas import BrowserLaunchOptions, ImageFormat, RenderOptions

from tests.utils.helpers import make_png
from tests.utils.mocks import MockBrowser, MockElement, MockPage, MockPlaywright, mock_async_playwright

PATCH_TARGET = "gosling_screenshot.core.rendering.screenshot.async_playwright"
HTML = "<html><body><div class='gosling-component'></div></body></html>"


class TestRenderError:
    """Test render error type."""

    def test_render_error_creation(self):
        error = RenderError("Test error message")
        assert str(error) == "Test error message"
        assert isinstance(error, Exception)


class TestBrowserSession:
    """Test browser acquisition and release."""

    @pytest.mark.asyncio
    async def test_launch_flags_and_teardown(self):
        playwright = MockPlaywright()
        launch_options = BrowserLaunchOptions(no_sandbox=True)

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            async with browser_session(launch_options) as browser:
                assert browser is playwright.browser
                assert not browser.closed

        playwright.chromium.launch.assert_awaited_once_with(
            headless=True,
            args=["--use-gl=swiftshader", "--no-sandbox", "--disable-setuid-sandbox"],
        )
        assert playwright.browser.closed
        assert playwright.stopped

    @pytest.mark.asyncio
    async def test_teardown_on_error(self):
        playwright = MockPlaywright()

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            with pytest.raises(ValueError):
                async with browser_session(BrowserLaunchOptions()):
                    raise ValueError("boom")

        assert playwright.browser.closed
        assert playwright.stopped

    @pytest.mark.asyncio
    async def test_launch_failure(self):
        playwright = MockPlaywright(launch_error=Exception("Executable doesn't exist"))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            with pytest.raises(RenderError, match="Browser launch failed"):
                async with browser_session(BrowserLaunchOptions()):
                    pass

        assert playwright.stopped

    @pytest.mark.asyncio
    async def test_playwright_start_failure(self):
        with patch(PATCH_TARGET) as mock_factory:
            mock_factory.return_value.start.side_effect = Exception("driver missing")
            with pytest.raises(RenderError, match="Playwright start failed"):
                async with browser_session(BrowserLaunchOptions()):
                    pass


class TestStagedHtml:
    """Test per-job temp files."""

    def test_file_removed_after_use(self, tmp_path):
        with staged_html("<html></html>", tmp_path) as path:
            assert path.parent == tmp_path
            assert path.suffix == ".html"
            assert path.read_text(encoding="utf-8") == "<html></html>"
        assert not path.exists()

    def test_file_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with staged_html("<html></html>", tmp_path) as path:
                raise RuntimeError("render failed")
        assert not path.exists()

    def test_unique_names(self, tmp_path):
        with staged_html("a", tmp_path) as first, staged_html("b", tmp_path) as second:
            assert first != second


class TestElementScreenshotter:
    """Test element capture."""

    @pytest.fixture
    def options(self):
        return RenderOptions(selector_timeout=1500, navigation_timeout=9000, width=900, height=700)

    @pytest.mark.asyncio
    async def test_png_capture_with_content(self, options):
        element = MockElement(b"png-bytes")
        page = MockPage(element=element)
        playwright = MockPlaywright(MockBrowser(page))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            image = await ElementScreenshotter().render_to_element_screenshot(
                HTML, ".gosling-component", 1500, ImageFormat.PNG, options
            )

        assert image == b"png-bytes"
        assert page.content == HTML
        assert page.url is None
        assert page.default_timeout == 9000
        assert page.selector_calls == [
            {"selector": ".gosling-component", "timeout": 1500, "state": "visible"}
        ]
        assert element.screenshot_calls == [{"type": "png", "omit_background": False}]
        assert playwright.browser.context_options == [
            {"viewport": {"width": 900, "height": 700}, "device_scale_factor": 1.0}
        ]
        assert playwright.browser.contexts[0].closed
        assert playwright.browser.closed

    @pytest.mark.asyncio
    async def test_jpeg_capture_with_quality(self):
        element = MockElement(b"jpeg-bytes")
        playwright = MockPlaywright(MockBrowser(MockPage(element=element)))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            image = await ElementScreenshotter().render_to_element_screenshot(
                HTML, fmt=ImageFormat.JPEG, options=RenderOptions(quality=70)
            )

        assert image == b"jpeg-bytes"
        assert element.screenshot_calls == [{"type": "jpeg", "quality": 70}]

    @pytest.mark.asyncio
    async def test_webp_reencoded_from_png(self):
        element = MockElement(make_png(10, 4))
        playwright = MockPlaywright(MockBrowser(MockPage(element=element)))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            image = await ElementScreenshotter().render_to_element_screenshot(
                HTML, fmt=ImageFormat.WEBP, options=RenderOptions()
            )

        assert element.screenshot_calls[0]["type"] == "png"
        assert image[:4] == b"RIFF"
        assert image[8:12] == b"WEBP"
        with Image.open(io.BytesIO(image)) as decoded:
            assert decoded.size == (10, 4)

    @pytest.mark.asyncio
    async def test_defaults_from_options(self):
        page = MockPage()
        playwright = MockPlaywright(MockBrowser(page))
        options = RenderOptions(selector="#vis canvas", selector_timeout=2500)

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            await ElementScreenshotter().render_to_element_screenshot(HTML, options=options)

        assert page.selector_calls[0]["selector"] == "#vis canvas"
        assert page.selector_calls[0]["timeout"] == 2500

    @pytest.mark.asyncio
    async def test_tempfile_loading(self, tmp_path):
        page = MockPage()
        playwright = MockPlaywright(MockBrowser(page))
        options = RenderOptions(load_via_tempfile=True, temp_path=tmp_path)

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            await ElementScreenshotter().render_to_element_screenshot(HTML, options=options)

        assert page.url.startswith("file://")
        assert page.content == HTML
        assert page.staged_file.parent == tmp_path
        assert not page.staged_file.exists()

    @pytest.mark.asyncio
    async def test_selector_timeout_wrapped(self):
        page = MockPage(wait_error=PlaywrightTimeoutError("Timeout 1500ms exceeded."))
        playwright = MockPlaywright(MockBrowser(page))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            with pytest.raises(RenderError, match="Timed out rendering '.gosling-component'") as exc_info:
                await ElementScreenshotter().render_to_element_screenshot(HTML, options=RenderOptions())

        assert isinstance(exc_info.value.__cause__, PlaywrightTimeoutError)
        assert playwright.browser.contexts[0].closed
        assert playwright.browser.closed
        assert playwright.stopped

    @pytest.mark.asyncio
    async def test_tempfile_removed_on_timeout(self, tmp_path):
        page = MockPage(wait_error=PlaywrightTimeoutError("Timeout exceeded."))
        playwright = MockPlaywright(MockBrowser(page))
        options = RenderOptions(load_via_tempfile=True, temp_path=tmp_path)

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            with pytest.raises(RenderError):
                await ElementScreenshotter().render_to_element_screenshot(HTML, options=options)

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_element(self):
        playwright = MockPlaywright(MockBrowser(MockPage(missing_element=True)))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            with pytest.raises(RenderError, match="not found"):
                await ElementScreenshotter().render_to_element_screenshot(HTML, options=RenderOptions())

        assert playwright.browser.closed

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self):
        page = MockPage(wait_error=RuntimeError("Target page, context or browser has been closed"))
        playwright = MockPlaywright(MockBrowser(page))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            with pytest.raises(RenderError, match="Element screenshot failed"):
                await ElementScreenshotter().render_to_element_screenshot(HTML, options=RenderOptions())

    @pytest.mark.asyncio
    async def test_module_function(self):
        playwright = MockPlaywright(MockBrowser(MockPage(element=MockElement(b"img"))))

        with patch(PATCH_TARGET, mock_async_playwright(playwright)):
            image = await render_to_element_screenshot(HTML, ".gosling-component", 1000)

        assert image == b"img"
