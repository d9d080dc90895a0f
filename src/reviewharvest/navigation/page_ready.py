"""商品页就绪检测

到达商品页后等待页面真正渲染完成（标题与价格出现）。遇到验证码时持续
等待用户在浏览器中处理，并以覆盖式倒计时提示剩余时间。
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from ..common.config import config
from ..common.constants import Severity
from ..common.logger import get_logger
from ..common.progress import ProgressChannel
from ..common.utils.polling import poll_until
from .targets import base_url

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = get_logger(__name__)

# 单次 evaluate 读取页面状态：验证码 / 商品不存在 / 标题与价格
PAGE_STATE_JS = """
() => {
    const captcha = !!(
        document.querySelector('[data-component="cpt_main"]') ||
        document.querySelector('.captcha_wrap') ||
        document.getElementById('rcpt_form') ||
        document.getElementById('vcpt_form')
    );
    const errorEl = document.querySelector('.Rzm9BSYr_X');
    const errorText = errorEl ? (errorEl.textContent || '') : '';
    const missing = errorText.includes('상품이 존재하지 않습니다') || errorText.includes('상품이 삭제되었거나');
    const container = document.querySelector('.P2lBbUWPNi');
    const titleEl = container ? container.querySelector('h3.DCVBehA8ZB') : null;
    const priceEl = container ? container.querySelector('.Xu9MEKUuIo') : null;
    const title = titleEl ? (titleEl.textContent || '').trim() : '';
    const price = priceEl ? (priceEl.textContent || '').trim() : '';
    const valid = title.length > 0 && /\\d+/.test(price) && price.includes('원');
    return { captcha, missing, valid, title, price };
}
"""

NAVIGATION_IN_PROGRESS_MARKERS = (
    "Execution context was destroyed",
    "Target closed",
)


def _is_navigation_error(error: Exception) -> bool:
    message = str(error)
    return any(marker in message for marker in NAVIGATION_IN_PROGRESS_MARKERS)


async def wait_for_page_ready(
    tab: "Page",
    expected_base_url: str,
    progress: ProgressChannel,
    timeout: float | None = None,
    interval: float | None = None,
) -> bool:
    """等待商品页渲染完成

    Args:
        tab: 商品页标签页
        expected_base_url: 期望的 URL（不含查询参数）
        progress: 进度通道
        timeout: 最长等待时间（秒）
        interval: 轮询间隔（秒）

    Returns:
        标题与价格出现返回 True；URL 偏离、出现不可恢复错误或超时返回 False
    """
    timeout_s = timeout if timeout is not None else config.navigation.page_ready_timeout_s
    interval_s = interval if interval is not None else config.navigation.page_ready_interval_s
    expected = base_url(expected_base_url)
    started = time.monotonic()

    state: dict[str, Any] = {"captcha": False, "outcome": None, "reason": ""}

    async def check() -> bool:
        current = base_url(tab.url)
        if current != expected:
            state["outcome"] = False
            state["reason"] = f"URL 已变化: 期望 {expected}, 实际 {current}"
            return True

        try:
            page_state = await tab.evaluate(PAGE_STATE_JS)
        except Exception as e:
            if _is_navigation_error(e):
                return False
            state["outcome"] = False
            state["reason"] = f"读取页面状态出错: {e}"
            return True

        if page_state.get("captcha"):
            remaining = max(0, int(timeout_s - (time.monotonic() - started)))
            if not state["captcha"]:
                state["captcha"] = True
                logger.warning("[PageReady] ⚠ 检测到验证码，请在浏览器中处理")
                progress.emit("[PageReady] ⚠ 检测到验证码，请在浏览器中处理", Severity.WARNING)
            else:
                progress.emit(
                    f"[PageReady] ⚠ 检测到验证码，请在浏览器中处理 (等待中... {remaining} 秒)",
                    Severity.WARNING,
                    replace_previous=True,
                )
            return False

        if state["captcha"]:
            state["captcha"] = False
            progress.emit("[PageReady] ✅ 验证码已处理，继续执行", Severity.SUCCESS, replace_previous=True)

        if page_state.get("valid"):
            state["outcome"] = True
            progress.emit("[PageReady] ✅ 商品页加载完成", Severity.SUCCESS)
            progress.emit(f"[PageReady]   - 商品名称: {page_state.get('title', '')}")
            progress.emit(f"[PageReady]   - 商品价格: {page_state.get('price', '')}")
            return True

        if page_state.get("missing"):
            logger.debug("[PageReady] 页面显示商品不存在，继续等待")
        return False

    logger.info(f"[PageReady] 等待商品页加载: {expected}")
    finished = await poll_until(check, interval=interval_s, timeout=timeout_s)

    if finished and state["outcome"]:
        return True

    reason = state["reason"] or f"商品页未在 {timeout_s:g} 秒内加载完成"
    logger.warning(f"[PageReady] {reason}")
    progress.emit(f"[PageReady] {reason}", Severity.WARNING)
    return False
