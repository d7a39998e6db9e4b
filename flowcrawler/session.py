# session.py
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright, Browser, Page

from .constants import DEFAULT_VIEWPORT, USER_AGENT, BROWSER_ARGS, logger
from .browser import PageActions
from .errors import SessionNotInitialized, PageNotFound
from .utils import generate_page_id


class BrowserSession:
    """Owns one browser process and the pages opened in it."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.pages: Dict[str, Page] = {}
        self.current_page_id: Optional[str] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    @property
    def initialized(self) -> bool:
        return self.browser is not None

    async def initialize(self):
        if self.initialized:
            logger.debug("Browser session already initialized")
            return

        logger.info("Initializing browser session")
        self.playwright = await async_playwright().start()
        try:
            self.browser = await self.playwright.chromium.launch(
                headless=not self.config.get('headful', False),
                args=self.config.get('browser_args', BROWSER_ARGS),
                slow_mo=self.config.get('slow_mo', 0),
            )
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            await self.playwright.stop()
            self.playwright = None
            raise
        logger.info("Browser session initialized")

    async def create_page(self, page_id: Optional[str] = None) -> Page:
        if not self.initialized:
            raise SessionNotInitialized()

        page = await self.browser.new_page(
            viewport=DEFAULT_VIEWPORT,
            user_agent=USER_AGENT,
        )
        page_id = page_id or generate_page_id()
        self.pages[page_id] = page
        self.current_page_id = page_id
        logger.debug(f"Created new page: {page_id}")
        return page

    async def get_current_page(self) -> Page:
        if not self.current_page_id:
            return await self.create_page()
        page = self.pages.get(self.current_page_id)
        if page is None:
            return await self.create_page(self.current_page_id)
        return page

    async def switch_to_page(self, page_id: str) -> Page:
        page = self.pages.get(page_id)
        if page is None:
            raise PageNotFound(page_id)
        self.current_page_id = page_id
        return page

    async def close_page(self, page_id: Optional[str] = None):
        target = page_id or self.current_page_id
        if not target:
            return
        page = self.pages.pop(target, None)
        if self.current_page_id == target:
            self.current_page_id = None
        if page is None:
            return
        try:
            await page.close()
            logger.debug(f"Closed page: {target}")
        except Exception as e:
            logger.warning(f"Failed to close page {target}: {e}")

    def page_ids(self) -> List[str]:
        return list(self.pages.keys())

    def has_page(self, page_id: str) -> bool:
        return page_id in self.pages

    def actions(self, config: Optional[Dict[str, Any]] = None):
        return PageActions(self, config or self.config)

    async def cleanup(self):
        if not self.playwright and not self.browser and not self.pages:
            return

        logger.info("Cleaning up browser session")
        for page_id, page in list(self.pages.items()):
            try:
                await page.close()
            except Exception as e:
                logger.warning(f"Failed to close page {page_id}: {e}")
        self.pages.clear()
        self.current_page_id = None

        if self.browser:
            try:
                await self.browser.close()
            except Exception as e:
                logger.error(f"Failed to close browser: {e}")
            self.browser = None
        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.error(f"Failed to stop Playwright: {e}")
            self.playwright = None
        logger.info("Browser session cleaned up")
