"""浏览器会话管理

每个 Session 启动一个独立的 Browser / BrowserContext，使用 Stealth 插件包装
以绕过网站的自动化检测。会话只负责启动、打开标签页与关闭，所有页面交互都
通过 TabSlot 交给当前持有者。
"""

from __future__ import annotations

from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright_stealth import Stealth

from ..config import config
from ..exceptions import BrowserError
from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36"
)

DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-infobars",
    "--no-first-run",
]


class BrowserSession:
    """浏览器会话管理器"""

    def __init__(
        self,
        headless: bool | None = None,
        viewport_width: int | None = None,
        viewport_height: int | None = None,
        slow_mo: int | None = None,
        channel: str | None = None,
        max_retries: int = 2,
    ):
        self.headless = headless if headless is not None else config.browser.headless
        self.viewport_width = viewport_width or config.browser.viewport_width
        self.viewport_height = viewport_height or config.browser.viewport_height
        self.slow_mo = slow_mo if slow_mo is not None else config.browser.slow_mo
        self.channel = channel or config.browser.channel
        self.max_retries = max_retries

        self._stealth_context: Any = None
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise BrowserError("Browser session not started")
        return self._context

    async def start(self) -> BrowserContext:
        """启动浏览器并返回 BrowserContext"""
        if self._context is not None:
            return self._context

        self._stealth_context = Stealth().use_async(async_playwright())
        self._playwright = await self._stealth_context.__aenter__()

        launch_options: dict[str, Any] = {
            "headless": self.headless,
            "slow_mo": self.slow_mo,
            "args": DEFAULT_LAUNCH_ARGS,
        }
        if self.channel:
            launch_options["channel"] = self.channel

        # 带重试机制的浏览器启动
        for attempt in range(self.max_retries + 1):
            try:
                self._browser = await self._playwright.chromium.launch(**launch_options)
                break
            except Exception as e:
                if attempt == self.max_retries:
                    await self.stop()
                    raise BrowserError(f"浏览器启动失败: {e}") from e
                logger.warning(f"[Browser] 启动失败，重试 ({attempt + 1}/{self.max_retries}): {e}")

        self._context = await self._browser.new_context(
            viewport={"width": self.viewport_width, "height": self.viewport_height},
            user_agent=DEFAULT_USER_AGENT,
            ignore_https_errors=True,
        )
        self._context.set_default_timeout(config.browser.timeout_ms)
        logger.info(f"[Browser] 浏览器已启动 (headless={self.headless})")
        return self._context

    async def open_tab(self, url: str, wait_until: str = "domcontentloaded") -> Page:
        """打开新标签页并导航到指定 URL"""
        context = await self.start()
        page = await context.new_page()
        try:
            await page.goto(url, wait_until=wait_until)
        except Exception as e:
            # 导航超时不影响后续的到达检测
            logger.warning(f"[Browser] 打开 {url} 未完成: {e}")
        return page

    async def stop(self) -> None:
        """关闭浏览器会话（可重复调用）"""
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug(f"[Browser] 关闭 context 出错: {e}")
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"[Browser] 关闭浏览器出错: {e}")
        if self._stealth_context is not None:
            try:
                await self._stealth_context.__aexit__(None, None, None)
            except Exception as e:
                logger.debug(f"[Browser] 关闭 Playwright 出错: {e}")

        self._context = None
        self._browser = None
        self._playwright = None
        self._stealth_context = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
