"""商品页区块操作：评论/问答标签、排序方式、排除秘密帖

这些操作都是尽力而为：失败只记录日志，不中断 Session。
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..common.constants import CollectionMode, SortOrder
from ..common.logger import get_logger
from ..common.types import ExclusionFlags

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = get_logger(__name__)

SECTION_TAB_NAMES = {
    CollectionMode.PRIMARY: "REVIEW",
    CollectionMode.THREAD: "QNA",
}

# 排序链接文本（RANKING 为默认排序，无需点击）
SORT_LINK_TEXTS = {
    SortOrder.RECENT: "최신순",
    SortOrder.LOW_RATING: "평점 낮은순",
}

EXCLUDE_SECRET_CHECKBOX = 'input[type="checkbox"][id="qnaSecret"]'

# 各步骤之后的等待时间（秒）
SCROLL_WAIT = 1.0
TAB_CLICK_WAIT = 3.0
SORT_LOAD_WAIT = 3.0
SORT_APPLY_WAIT = 2.0
SECRET_TOGGLE_WAIT = 2.0

CLICK_JS = """
(sel) => {
    window.scrollTo(0, document.body.scrollHeight);
    const el = document.querySelector(sel);
    if (el) { el.click(); return true; }
    return false;
}
"""

IS_CURRENT_JS = """
(sel) => {
    const el = document.querySelector(sel);
    return !!el && el.getAttribute('aria-current') === 'true';
}
"""

CLICK_LINK_BY_TEXT_JS = """
(text) => {
    const link = Array.from(document.querySelectorAll('a'))
        .find(a => a.textContent && a.textContent.includes(text));
    if (link) { link.click(); return true; }
    return false;
}
"""

CHECK_BOX_JS = """
(sel) => {
    const box = document.querySelector(sel);
    if (box && !box.checked) { box.click(); return true; }
    return false;
}
"""


async def click_section_tab(tab: "Page", mode: CollectionMode) -> bool:
    """点击评论/问答标签并确认 aria-current 激活"""
    name = SECTION_TAB_NAMES[CollectionMode(mode)]
    selector = f'a[data-name="{name}"]'

    await tab.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
    await asyncio.sleep(SCROLL_WAIT)
    try:
        await tab.wait_for_selector(selector, state="visible", timeout=10000)
    except Exception as e:
        logger.warning(f"[TabActions] 等待 {name} 标签超时，尝试直接点击: {e}")

    if not await tab.evaluate(CLICK_JS, selector):
        logger.warning(f"[TabActions] ✗ 未找到 {name} 标签")
        return False

    logger.info(f"[TabActions] ✓ 已点击 {name} 标签")
    await asyncio.sleep(TAB_CLICK_WAIT)

    active = bool(await tab.evaluate(IS_CURRENT_JS, selector))
    if active:
        logger.info(f"[TabActions] ✓ {name} 标签已激活")
    else:
        logger.warning(f"[TabActions] ⚠ 无法确认 {name} 标签激活状态")
    return active


async def apply_sort_order(tab: "Page", sort_order: SortOrder) -> bool:
    """应用评论排序方式"""
    sort_order = SortOrder(sort_order)
    text = SORT_LINK_TEXTS.get(sort_order)
    if text is None:
        logger.info("[TabActions] 使用默认排序（랭킹순）")
        return True

    await asyncio.sleep(SORT_LOAD_WAIT)
    clicked = bool(await tab.evaluate(CLICK_LINK_BY_TEXT_JS, text))
    if clicked:
        logger.info(f"[TabActions] ✓ 已应用排序: {text}")
        await asyncio.sleep(SORT_APPLY_WAIT)
    else:
        logger.warning(f"[TabActions] ⚠ 未找到排序选项: {text}")
    return clicked


async def apply_exclusions(tab: "Page", exclusions: ExclusionFlags) -> bool:
    """勾选"排除秘密帖"（仅问答模式）"""
    if not exclusions.exclude_secret:
        return True

    clicked = bool(await tab.evaluate(CHECK_BOX_JS, EXCLUDE_SECRET_CHECKBOX))
    if clicked:
        logger.info("[TabActions] ✓ 已勾选排除秘密帖")
        await asyncio.sleep(SECRET_TOGGLE_WAIT)
    else:
        logger.warning("[TabActions] ⚠ 未找到排除秘密帖选项或已勾选")
    return clicked


async def open_section(
    tab: "Page",
    mode: CollectionMode,
    sort_order: SortOrder = SortOrder.RANKING,
    exclusions: ExclusionFlags | None = None,
) -> bool:
    """打开采集区块并应用选项

    Returns:
        区块标签已激活返回 True（选项应用失败不影响返回值）
    """
    mode = CollectionMode(mode)
    exclusions = exclusions or ExclusionFlags()
    try:
        active = await click_section_tab(tab, mode)
        if not active:
            return False
        if mode == CollectionMode.PRIMARY:
            await apply_sort_order(tab, sort_order)
        else:
            await apply_exclusions(tab, exclusions)
        return True
    except Exception as e:
        logger.warning(f"[TabActions] ✗ 打开采集区块失败: {e}")
        return False
