"""Browser layer: Playwright-based headless browser that loads the registration form.

The layer only renders pages and hands back the resulting document.
It does not interpret the markup; that is the field extractor's job.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from udyam.config.settings import BrowserConfig


class ActionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ActionResult:
    """Result of a browser action."""

    status: ActionStatus
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ActionStatus.SUCCESS


@dataclass
class DOMSnapshot:
    """Serialized document as rendered by the browser."""

    html: str
    url: str
    title: str
    dom_hash: str

    @staticmethod
    def compute_hash(html: str) -> str:
        return hashlib.sha256(html.encode()).hexdigest()[:16]


class BrowserLayer:
    """Owns one Playwright browser, context and page for a scrape.

    Usable as an async context manager so the browser is always closed.
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Any = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def __aenter__(self) -> "BrowserLayer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def start(self) -> None:
        """Launch browser and create an isolated context.

        A failure part-way through releases whatever was already started.
        """
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self._config.headless,
            )
            self._context = await self._browser.new_context(
                viewport={
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                },
                user_agent=self._config.user_agent,
                locale=self._config.locale,
            )
            self._page = await self._context.new_page()
        except Exception:
            await self.stop()
            raise

    async def stop(self) -> None:
        """Clean up browser resources."""
        if self._context:
            await self._context.close()
            self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        self._page = None

    async def navigate(self, url: str, timeout_ms: int = 30000) -> ActionResult:
        """Navigate to a URL and wait for the DOM to be parsed."""
        if not self._page:
            return ActionResult(status=ActionStatus.FAILURE, detail="Browser not started")
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return ActionResult(status=ActionStatus.SUCCESS, detail=f"Navigated to {url}")
        except Exception as e:
            return ActionResult(status=ActionStatus.FAILURE, detail=str(e))

    async def capture_dom(self) -> DOMSnapshot | None:
        """Capture the full rendered document, hidden controls included."""
        if not self._page:
            return None

        html = await self._page.content()
        return DOMSnapshot(
            html=html,
            url=self._page.url,
            title=await self._page.title(),
            dom_hash=DOMSnapshot.compute_hash(html),
        )
