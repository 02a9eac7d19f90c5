import asyncio
from urllib.parse import urljoin
from typing import TYPE_CHECKING

from config import (
    VOTING_URL,
    TARGET_PATH,
    READY_ATTEMPTS,
    NAV_RETRY_SECONDS,
    NAV_SETTLE_SECONDS,
    CONFIRM_SETTLE_SECONDS,
)

if TYPE_CHECKING:
    from browser import BrowserController


class PageReadiness:
    """Keeps the browser on the voting page.

    Navigation finishing does not mean the SPA has rendered, so a fixed settle
    delay follows every successful check: longer when this call had to load the
    page, shorter when it was already there.
    """

    def __init__(
        self,
        browser: "BrowserController",
        base_url: str = VOTING_URL,
        retry_delay: float = NAV_RETRY_SECONDS,
        navigation_settle: float = NAV_SETTLE_SECONDS,
        confirm_settle: float = CONFIRM_SETTLE_SECONDS,
    ):
        self.browser = browser
        self.base_url = base_url
        self.retry_delay = retry_delay
        self.navigation_settle = navigation_settle
        self.confirm_settle = confirm_settle

    async def _on_target(self, target_path: str) -> bool:
        try:
            url = await self.browser.get_url()
        except Exception as e:
            print(f"[ready] could not read location: {e}", flush=True)
            return False
        return target_path in (url or "")

    async def ensure_ready(self, target_path: str = TARGET_PATH, max_attempts: int = READY_ATTEMPTS) -> bool:
        navigated = False
        for attempt in range(max_attempts):
            if await self._on_target(target_path):
                break
            print(f"[ready] not on {target_path}, navigating (attempt {attempt + 1}/{max_attempts})", flush=True)
            try:
                await self.browser.navigate(urljoin(self.base_url, target_path))
            except Exception as e:
                print(f"[ready] navigation failed: {e}", flush=True)
            navigated = True
            await asyncio.sleep(self.retry_delay)

        if not await self._on_target(target_path):
            print(f"[ready] still not on {target_path} after {max_attempts} attempts", flush=True)
            return False

        await asyncio.sleep(self.navigation_settle if navigated else self.confirm_settle)
        return True
