"""
Browser session - the one page a request owns.

Every stage receives the BrowserSession explicitly. `open_session()` launches
Chromium, yields the session and always closes page and browser on the way
out, whether the request succeeded, failed or was cancelled.
"""

from contextlib import asynccontextmanager

from playwright.async_api import async_playwright

from pagelens.config import get_settings
from pagelens.errors import CaptureError
from pagelens.models import PageDimensions, PixelClip


PAGE_DIMENSIONS_JS = """() => ({
    width: Math.max(document.documentElement.scrollWidth, document.body ? document.body.scrollWidth : 0),
    height: Math.max(document.documentElement.scrollHeight, document.body ? document.body.scrollHeight : 0),
})"""


class BrowserSession:
    def __init__(self, page):
        self.page = page
        self._cdp = None
        self._closed = False

    async def navigate(self, url: str, wait_until: str, timeout: int):
        return await self.page.goto(url, wait_until=wait_until, timeout=timeout)

    async def set_viewport(self, width: int, height: int, is_mobile: bool = False, has_touch: bool = False):
        """
        Resize the viewport. Mobile and touch flags are per-context in
        Playwright, so they are toggled on the live page through CDP.
        """
        await self.page.set_viewport_size({"width": width, "height": height})

        if self._cdp is None:
            if not (is_mobile or has_touch):
                return
            self._cdp = await self.page.context.new_cdp_session(self.page)

        if is_mobile:
            await self._cdp.send("Emulation.setDeviceMetricsOverride", {
                "width": width,
                "height": height,
                "deviceScaleFactor": 1,
                "mobile": True,
            })
        else:
            await self._cdp.send("Emulation.clearDeviceMetricsOverride")
        await self._cdp.send("Emulation.setTouchEmulationEnabled", {
            "enabled": has_touch,
            "maxTouchPoints": 5 if has_touch else 1,
        })

    async def screenshot(self, full_page: bool = False, clip: PixelClip | None = None) -> bytes:
        if clip is not None:
            data = await self.page.screenshot(clip=clip.as_dict(), full_page=True)
        else:
            data = await self.page.screenshot(full_page=full_page)
        if not data:
            raise CaptureError("browser returned an empty screenshot")
        return data

    async def page_dimensions(self) -> PageDimensions:
        dims = await self.page.evaluate(PAGE_DIMENSIONS_JS)
        return PageDimensions(width=int(dims["width"]), height=int(dims["height"]))

    async def title(self) -> str:
        return await self.page.title()

    async def settle(self, seconds: float):
        await self.page.wait_for_timeout(seconds * 1000)

    async def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            await self.page.close()
        except Exception as e:
            print(f"  [browser] Page close failed: {e}")


@asynccontextmanager
async def open_session(settings=None):
    """Launch Chromium at the desktop viewport and yield a BrowserSession."""
    settings = settings or get_settings()

    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=settings.headless,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        try:
            context = await browser.new_context(
                viewport={
                    "width": settings.desktop_viewport_width,
                    "height": settings.desktop_viewport_height,
                },
            )
            session = BrowserSession(await context.new_page())
            try:
                yield session
            finally:
                await session.close()
        finally:
            await browser.close()
