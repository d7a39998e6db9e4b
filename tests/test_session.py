"""
BrowserSession（ページライフサイクル管理）のテスト
"""
import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flowcrawler.browser import PageActions
from flowcrawler.constants import DEFAULT_VIEWPORT, USER_AGENT
from flowcrawler.errors import PageNotFound, SessionNotInitialized
from flowcrawler.session import BrowserSession


@pytest.fixture
def mock_playwright():
    """Playwrightのモックフィクスチャ"""
    with patch('flowcrawler.session.async_playwright') as mock:
        playwright = MagicMock()
        browser = MagicMock()
        pages = []

        async def new_page(**kwargs):
            page = MagicMock()
            page.close = AsyncMock()
            page.options = kwargs
            pages.append(page)
            return page

        mock.return_value.start = AsyncMock(return_value=playwright)
        playwright.chromium.launch = AsyncMock(return_value=browser)
        playwright.stop = AsyncMock()
        browser.new_page = AsyncMock(side_effect=new_page)
        browser.close = AsyncMock()

        yield {
            'playwright': playwright,
            'browser': browser,
            'pages': pages,
        }


class TestLifecycle:
    """初期化とクリーンアップ"""

    @pytest.mark.asyncio
    async def test_initialize_launches_once(self, mock_playwright):
        session = BrowserSession({'headful': True})
        await session.initialize()
        await session.initialize()

        mock_playwright['playwright'].chromium.launch.assert_awaited_once()
        kwargs = mock_playwright['playwright'].chromium.launch.call_args.kwargs
        assert kwargs['headless'] is False
        assert session.initialized

    @pytest.mark.asyncio
    async def test_cleanup_without_initialize_is_noop(self):
        session = BrowserSession()
        await session.cleanup()
        assert not session.initialized

    @pytest.mark.asyncio
    async def test_cleanup_closes_pages_then_browser(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        await session.create_page('a')
        await session.create_page('b')
        mock_playwright['pages'][0].close.side_effect = Exception("already closed")

        await session.cleanup()

        for page in mock_playwright['pages']:
            page.close.assert_awaited_once()
        mock_playwright['browser'].close.assert_awaited_once()
        mock_playwright['playwright'].stop.assert_awaited_once()
        assert session.pages == {}
        assert session.current_page_id is None
        assert not session.initialized

    @pytest.mark.asyncio
    async def test_cleanup_survives_playwright_stop_failure(self, mock_playwright):
        mock_playwright['playwright'].stop.side_effect = Exception("driver gone")
        session = BrowserSession()
        await session.initialize()

        await session.cleanup()
        assert session.playwright is None
        assert not session.initialized

    @pytest.mark.asyncio
    async def test_context_manager(self, mock_playwright):
        async with BrowserSession() as session:
            assert session.initialized
        mock_playwright['browser'].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure_stops_playwright(self, mock_playwright):
        mock_playwright['playwright'].chromium.launch.side_effect = Exception("no chromium")
        session = BrowserSession()
        with pytest.raises(Exception, match="no chromium"):
            await session.initialize()
        mock_playwright['playwright'].stop.assert_awaited_once()
        assert not session.initialized


class TestPages:
    """ページの作成・切り替え・クローズ"""

    @pytest.mark.asyncio
    async def test_create_page_requires_initialize(self):
        with pytest.raises(SessionNotInitialized):
            await BrowserSession().create_page()

    @pytest.mark.asyncio
    async def test_create_page_applies_defaults(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        page = await session.create_page('main')

        assert page.options == {'viewport': DEFAULT_VIEWPORT, 'user_agent': USER_AGENT}
        assert session.current_page_id == 'main'
        assert session.has_page('main')

    @pytest.mark.asyncio
    async def test_generated_page_id(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        await session.create_page()
        assert session.page_ids()[0].startswith('page_')

    @pytest.mark.asyncio
    async def test_generated_ids_are_unique(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        first = await session.create_page()
        second = await session.create_page()

        assert len(session.pages) == 2
        assert len(set(session.page_ids())) == 2
        first_id = session.page_ids()[0]
        assert await session.switch_to_page(first_id) is first
        assert second is not first

    @pytest.mark.asyncio
    async def test_current_page_is_created_lazily(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        page = await session.get_current_page()
        again = await session.get_current_page()

        assert page is again
        assert len(mock_playwright['pages']) == 1

    @pytest.mark.asyncio
    async def test_switch_to_missing_page(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        with pytest.raises(PageNotFound):
            await session.switch_to_page('nope')

    @pytest.mark.asyncio
    async def test_switch_to_page(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        first = await session.create_page('first')
        await session.create_page('second')

        assert await session.switch_to_page('first') is first
        assert session.current_page_id == 'first'

    @pytest.mark.asyncio
    async def test_close_current_page_clears_current(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        await session.create_page('first')
        await session.close_page()

        assert session.current_page_id is None
        assert not session.has_page('first')

    @pytest.mark.asyncio
    async def test_close_page_error_is_logged(self, mock_playwright):
        session = BrowserSession()
        await session.initialize()
        page = await session.create_page('first')
        page.close.side_effect = Exception("target closed")

        await session.close_page('first')
        assert not session.has_page('first')

    def test_actions(self):
        session = BrowserSession({'wait_until': 'networkidle'})
        actions = session.actions()
        assert isinstance(actions, PageActions)
        assert actions.config['wait_until'] == 'networkidle'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
