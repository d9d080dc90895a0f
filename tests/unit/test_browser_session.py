"""浏览器会话单元测试"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from reviewharvest.common.browser import session as session_module
from reviewharvest.common.browser.session import DEFAULT_USER_AGENT, BrowserSession
from reviewharvest.common.exceptions import BrowserError


def _playwright_stack(launch_side_effect=None):
    page = MagicMock()
    page.goto = AsyncMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser, side_effect=launch_side_effect)

    stealth_context = MagicMock()
    stealth_context.__aenter__ = AsyncMock(return_value=playwright)
    stealth_context.__aexit__ = AsyncMock(return_value=None)

    stealth = MagicMock()
    stealth.return_value.use_async.return_value = stealth_context
    return stealth, stealth_context, playwright, browser, context, page


class TestBrowserSession:
    """浏览器会话测试"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        """测试启动与关闭"""
        stealth, stealth_context, playwright, browser, context, _ = _playwright_stack()
        with patch.object(session_module, "Stealth", stealth), patch.object(session_module, "async_playwright"):
            session = BrowserSession(headless=True, viewport_width=800, viewport_height=600, slow_mo=0)
            assert await session.start() is context
            assert await session.start() is context

            playwright.chromium.launch.assert_awaited_once()
            assert playwright.chromium.launch.await_args.kwargs["headless"] is True
            kwargs = browser.new_context.await_args.kwargs
            assert kwargs["viewport"] == {"width": 800, "height": 600}
            assert kwargs["user_agent"] == DEFAULT_USER_AGENT

            await session.stop()
            await session.stop()

        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        stealth_context.__aexit__.assert_awaited_once()
        with pytest.raises(BrowserError):
            _ = session.context

    @pytest.mark.asyncio
    async def test_launch_retry(self):
        """测试启动失败后重试"""
        stealth, _, playwright, browser, context, _ = _playwright_stack()
        playwright.chromium.launch.side_effect = [RuntimeError("crash"), browser]
        with patch.object(session_module, "Stealth", stealth), patch.object(session_module, "async_playwright"):
            session = BrowserSession(headless=True, max_retries=2)
            assert await session.start() is context
        assert playwright.chromium.launch.await_count == 2

    @pytest.mark.asyncio
    async def test_launch_gives_up(self):
        """测试重试耗尽后抛出 BrowserError"""
        stealth, stealth_context, playwright, _, _, _ = _playwright_stack(RuntimeError("no chromium"))
        with patch.object(session_module, "Stealth", stealth), patch.object(session_module, "async_playwright"):
            session = BrowserSession(headless=True, max_retries=1)
            with pytest.raises(BrowserError):
                await session.start()
        assert playwright.chromium.launch.await_count == 2
        stealth_context.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_open_tab_tolerates_goto_failure(self):
        """测试导航未完成时仍返回标签页"""
        stealth, _, _, _, _, page = _playwright_stack()
        page.goto.side_effect = TimeoutError("Timeout 30000ms exceeded")
        with patch.object(session_module, "Stealth", stealth), patch.object(session_module, "async_playwright"):
            async with BrowserSession(headless=True) as session:
                assert await session.open_tab("https://smartstore.naver.com/a/products/1") is page
