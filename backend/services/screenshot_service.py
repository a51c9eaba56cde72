"""
Headless Chromium wrapper that rasterizes wireframe HTML into PNG bytes.

One browser per process: ``initialize()`` at application start-up, ``close()``
at shutdown. Each capture opens its own page and closes it afterwards;
captures are serialized by an asyncio lock.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, Error as PlaywrightError, Playwright, async_playwright

from config import SCREENSHOT_VIEWPORTS

logger = logging.getLogger(__name__)

RENDER_TIMEOUT_MS = 30000
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
]


class ScreenshotError(RuntimeError):
    pass


class ScreenshotService:
    def __init__(self):
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._browser is not None

    async def initialize(self):
        if self._browser is not None:
            return
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
            logger.info("Screenshot service initialized")
        except PlaywrightError as e:
            await self.close()
            raise ScreenshotError(f"Could not launch headless browser: {e}") from e

    async def capture_html(self, html: str, width: Optional[int] = None, height: Optional[int] = None) -> bytes:
        """Render ``html`` at the given viewport and return a full-page PNG."""
        if not html or not html.strip():
            raise ScreenshotError("No HTML to render")
        default_w, default_h = SCREENSHOT_VIEWPORTS["default"]
        width, height = width or default_w, height or default_h

        async with self._lock:
            if self._browser is None:
                await self.initialize()
            page = await self._browser.new_page(viewport={"width": width, "height": height})
            try:
                await page.set_content(html, wait_until="networkidle", timeout=RENDER_TIMEOUT_MS)
                image = await page.screenshot(type="png", full_page=True)
            except PlaywrightError as e:
                logger.warning(f"Wireframe capture failed: {e}")
                raise ScreenshotError(f"Could not render HTML: {e}") from e
            finally:
                await page.close()
        logger.info(f"Captured wireframe {width}x{height} ({len(image)} bytes)")
        return image

    async def close(self):
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("Screenshot service closed")


screenshot_service = ScreenshotService()
