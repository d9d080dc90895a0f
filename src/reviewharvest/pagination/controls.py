"""分页控件能力接口

分页策略只通过 PaginationControls 操作页面，既方便替换站点选择器，也方便
在测试中使用内存假对象。
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..common.logger import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = get_logger(__name__)


class PaginationControls(abc.ABC):
    """单个页面上的分页控件"""

    async def prepare(self) -> None:
        """让分页区域进入可操作状态（滚动、等待渲染）"""

    @abc.abstractmethod
    async def visible_page_numbers(self) -> list[int]:
        """当前可见的页码"""

    async def page_number_visible(self, page: int) -> bool:
        return page in await self.visible_page_numbers()

    @abc.abstractmethod
    async def click_page_number(self, page: int) -> bool:
        """点击指定页码，未找到返回 False"""

    @abc.abstractmethod
    async def next_available(self) -> bool:
        """"下一页/下一块"控件是否可用"""

    @abc.abstractmethod
    async def click_next(self) -> bool:
        """点击"下一页/下一块"控件"""

    @abc.abstractmethod
    async def click_previous(self) -> bool:
        """点击"上一页/上一块"控件"""

    async def click_block_forward(self) -> bool:
        """块分页：跳到下一块"""
        return await self.click_next()

    async def click_block_backward(self) -> bool:
        """块分页：跳到上一块"""
        return await self.click_previous()

    @abc.abstractmethod
    async def selected_page(self) -> int | None:
        """当前页指示器的页码，不存在时返回 None"""


@dataclass
class PaginationSelectors:
    """分页控件选择器集合"""

    # 页码链接
    page_number: str
    # 当前页指示器（按顺序尝试）
    current_page: list[str]
    # "下一页/下一块"按钮（按顺序尝试）
    next_buttons: list[str]
    # "上一页/上一块"按钮（按顺序尝试）
    previous_buttons: list[str] = field(default_factory=list)
    # 分页容器（为空则在整个文档内查找）
    container: str | None = None
    # 按文本兜底查找的按钮文字
    next_text: str | None = None
    previous_text: str | None = None

    def to_args(self) -> dict[str, Any]:
        return {
            "container": self.container,
            "pageNumber": self.page_number,
            "current": self.current_page,
            "next": self.next_buttons,
            "previous": self.previous_buttons,
            "nextText": self.next_text,
            "previousText": self.previous_text,
        }


# 评论列表的线性分页
REVIEW_PAGER_SELECTORS = PaginationSelectors(
    page_number="a.hyY6CXtbcn",
    current_page=[
        'a.hyY6CXtbcn[aria-current="true"]',
        'a[aria-current="true"]',
        ".pagination .active",
    ],
    next_buttons=[
        "a.JY2WGJ4hXh.I3i1NSoFdB",
        'a[aria-label="다음 페이지"]',
        'a[title="다음"]',
        'a[class*="next"]',
        ".pagination .next",
    ],
    previous_buttons=[
        'a[aria-label="이전 페이지"]',
        'a[title="이전"]',
        'a[class*="prev"]',
    ],
)

# 问答列表的块分页（每块 10 页，"다음"跳到下一块）
QNA_PAGER_SELECTORS = PaginationSelectors(
    container=(
        'div[role="menubar"][data-shp-inventory="qna"], '
        "div.bJ45eIkmCE.heUg1l_zzF.t_Jt5dgEqS, div.B1cSiaH8W3.heUg1l_zzF.t_Jt5dgEqS"
    ),
    page_number='a.F0MhmLrV2F[role="menuitem"]',
    current_page=['a.F0MhmLrV2F[aria-current="true"]'],
    next_buttons=["a.g58k3AtMIx.jFLfdWHAWX"],
    previous_buttons=["a.g58k3AtMIx.jFLfdWHAWX"],
    next_text="다음",
    previous_text="이전",
)


# 所有脚本共享的查找逻辑：args 为 PaginationSelectors.to_args()
_JS_HELPERS = """
const root = (args.container && document.querySelector(args.container)) || document;
const usable = (el) => !!el
    && el.getAttribute('aria-disabled') !== 'true'
    && el.getAttribute('aria-hidden') !== 'true'
    && !el.disabled
    && (!el.style || el.style.display !== 'none');
const numberOf = (el) => {
    const text = (el && el.textContent || '').trim();
    return /^\\d+$/.test(text) ? parseInt(text, 10) : null;
};
const findControl = (selectors, text) => {
    for (const sel of selectors || []) {
        for (const el of root.querySelectorAll(sel)) {
            if (text && !(el.textContent || '').includes(text)) continue;
            if (usable(el)) return el;
        }
    }
    if (text) {
        for (const el of root.querySelectorAll('a, button')) {
            if ((el.textContent || '').trim().includes(text) && usable(el)) return el;
        }
    }
    return null;
};
"""

VISIBLE_NUMBERS_JS = (
    "(args) => {" + _JS_HELPERS + """
    return Array.from(root.querySelectorAll(args.pageNumber))
        .map(numberOf)
        .filter(n => n !== null);
}"""
)

CLICK_NUMBER_JS = (
    "(args) => {" + _JS_HELPERS + """
    for (const el of root.querySelectorAll(args.pageNumber)) {
        if (numberOf(el) === args.target) { el.click(); return true; }
    }
    return false;
}"""
)

SELECTED_PAGE_JS = (
    "(args) => {" + _JS_HELPERS + """
    for (const sel of args.current) {
        const n = numberOf(root.querySelector(sel) || document.querySelector(sel));
        if (n !== null) return n;
    }
    return null;
}"""
)

NEXT_AVAILABLE_JS = (
    "(args) => {" + _JS_HELPERS + """
    return findControl(args.next, args.nextText) !== null;
}"""
)

CLICK_NEXT_JS = (
    "(args) => {" + _JS_HELPERS + """
    const el = findControl(args.next, args.nextText);
    if (el) { el.click(); return true; }
    return false;
}"""
)

CLICK_PREVIOUS_JS = (
    "(args) => {" + _JS_HELPERS + """
    const el = findControl(args.previous, args.previousText);
    if (el) { el.click(); return true; }
    return false;
}"""
)


class PlaywrightPaginationControls(PaginationControls):
    """基于 Playwright 页面脚本的分页控件实现"""

    def __init__(self, page: "Page", selectors: PaginationSelectors):
        self.page = page
        self.selectors = selectors

    async def _run(self, script: str, **extra: Any) -> Any:
        args = self.selectors.to_args()
        args.update(extra)
        return await self.page.evaluate(script, args)

    async def prepare(self) -> None:
        try:
            await self.page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            if self.selectors.container:
                await self.page.wait_for_selector(self.selectors.container, timeout=3000)
        except Exception as e:
            logger.debug(f"[Pagination] 分页区域未就绪: {e}")

    async def visible_page_numbers(self) -> list[int]:
        try:
            return [int(n) for n in await self._run(VISIBLE_NUMBERS_JS)]
        except Exception as e:
            logger.debug(f"[Pagination] 读取页码失败: {e}")
            return []

    async def click_page_number(self, page: int) -> bool:
        try:
            return bool(await self._run(CLICK_NUMBER_JS, target=page))
        except Exception as e:
            logger.debug(f"[Pagination] 点击页码 {page} 失败: {e}")
            return False

    async def next_available(self) -> bool:
        try:
            return bool(await self._run(NEXT_AVAILABLE_JS))
        except Exception as e:
            logger.debug(f"[Pagination] 检查下一页按钮失败: {e}")
            return False

    async def click_next(self) -> bool:
        try:
            return bool(await self._run(CLICK_NEXT_JS))
        except Exception as e:
            logger.debug(f"[Pagination] 点击下一页按钮失败: {e}")
            return False

    async def click_previous(self) -> bool:
        try:
            return bool(await self._run(CLICK_PREVIOUS_JS))
        except Exception as e:
            logger.debug(f"[Pagination] 点击上一页按钮失败: {e}")
            return False

    async def selected_page(self) -> int | None:
        try:
            value = await self._run(SELECTED_PAGE_JS)
        except Exception as e:
            logger.debug(f"[Pagination] 读取当前页失败: {e}")
            return None
        return int(value) if value is not None else None
