import os
from urllib.parse import urlparse
from playwright.async_api import async_playwright, Page, Browser, BrowserContext
from typing import Any

from config import USER_AGENT


def _proxy_settings() -> dict | None:
    """Build Playwright proxy settings from the usual environment variables."""
    proxy_url = (os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY")
                 or os.environ.get("https_proxy") or os.environ.get("http_proxy"))
    if not proxy_url:
        return None
    parsed = urlparse(proxy_url)
    settings = {"server": f"{parsed.scheme}://{parsed.hostname}:{parsed.port}"}
    if parsed.username:
        settings["username"] = parsed.username
        settings["password"] = parsed.password or ""
    return settings


class BrowserController:
    def __init__(self):
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self.playwright = None

    async def start(self, url: str | None = None, headless: bool = False) -> None:
        """Launch browser and optionally navigate to URL."""
        self.playwright = await async_playwright().start()

        launch_kwargs = {"headless": headless}
        proxy = _proxy_settings()
        if proxy:
            launch_kwargs["proxy"] = proxy

        self.browser = await self.playwright.chromium.launch(**launch_kwargs)
        self.context = await self.browser.new_context(
            viewport={"width": 1400, "height": 900},
            user_agent=USER_AGENT,
            extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
        )
        self.page = await self.context.new_page()

        if url:
            await self.navigate(url)

    async def stop(self) -> None:
        """Close browser."""
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        self.browser = None
        self.context = None
        self.page = None
        self.playwright = None

    async def get_url(self) -> str:
        """Get current URL."""
        return self.page.url

    async def navigate(self, url: str, timeout: int = 30000) -> None:
        """Load URL in the current page. Raises on navigation failure."""
        await self.page.goto(url, timeout=timeout)

    async def execute_js(self, script: str, arg: Any = None) -> Any:
        """Execute JavaScript on page, passing `arg` as the function parameter."""
        if arg is None:
            return await self.page.evaluate(script)
        return await self.page.evaluate(script, arg)

    async def add_cookies(self, cookies: list[dict]) -> None:
        """Set cookies on the browser context."""
        await self.context.add_cookies(cookies)

    async def get_cookies(self, urls: list[str] | None = None) -> list[dict]:
        """Read cookies from the browser context."""
        if urls:
            return await self.context.cookies(urls)
        return await self.context.cookies()
