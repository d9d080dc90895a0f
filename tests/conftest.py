"""pytest 全局配置和 fixtures

提供测试所需的基础设施和 Mock 对象。
"""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reviewharvest.common.config import PaginationConfig  # noqa: E402
from reviewharvest.common.progress import MemoryProgressChannel  # noqa: E402
from reviewharvest.pagination.controls import PaginationControls  # noqa: E402


PRODUCT_URL = "https://smartstore.naver.com/shop/products/1234567890"
SEARCH_URL = "https://search.naver.com/search.naver?query=test"


# ============================================================================
# 浏览器假对象
# ============================================================================


class FakeEmitter:
    """最小化的事件发射器（on / remove_listener / emit）"""

    def __init__(self):
        self._handlers: dict[str, list] = {}

    def on(self, event, handler):
        self._handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self._handlers[event].remove(handler)

    def emit(self, event, *args):
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    def listener_count(self, event=None) -> int:
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(h) for h in self._handlers.values())


class FakeFrame:
    def __init__(self, url: str = "about:blank"):
        self.url = url
        self.parent_frame = None


class FakeTab(FakeEmitter):
    """模拟 Playwright Page：只提供测试用到的属性和方法"""

    def __init__(self, url: str = "about:blank"):
        super().__init__()
        self.main_frame = FakeFrame(url)
        self.bring_to_front = AsyncMock()
        self.evaluate = AsyncMock(return_value=None)
        self.wait_for_selector = AsyncMock()

    @property
    def url(self) -> str:
        return self.main_frame.url

    def navigate(self, url: str) -> None:
        """主 frame 跳转并触发 framenavigated"""
        self.main_frame.url = url
        self.emit("framenavigated", self.main_frame)

    def navigate_subframe(self, url: str) -> None:
        frame = FakeFrame(url)
        frame.parent_frame = self.main_frame
        self.emit("framenavigated", frame)


class FakeContext(FakeEmitter):
    """模拟 BrowserContext：open_tab 触发 page 事件"""

    def __init__(self):
        super().__init__()
        self.tabs: list[FakeTab] = []

    def open_tab(self, url: str = "about:blank") -> FakeTab:
        tab = FakeTab(url)
        self.tabs.append(tab)
        self.emit("page", tab)
        return tab


class FakeBrowser:
    """模拟 BrowserSession"""

    def __init__(self, start_url_override: str | None = None):
        self.context = FakeContext()
        self.start_url_override = start_url_override
        self.opened: list[str] = []
        self.stopped = False

    async def start(self):
        return self.context

    async def open_tab(self, url: str):
        self.opened.append(url)
        return FakeTab(self.start_url_override or url)

    async def stop(self):
        self.stopped = True


# ============================================================================
# 分页假对象
# ============================================================================


class FakePager(PaginationControls):
    """按块显示页码的内存分页控件

    - 可见页码为当前显示块内的页码
    - "下一块"切换显示块，auto_select_on_jump 时自动选中块首页
    - stuck_pages 中的页码点击后指示器不变（模拟页码校验失败）
    """

    def __init__(
        self,
        total_pages: int,
        block_size: int = 10,
        auto_select_on_jump: bool = True,
        has_indicator: bool = True,
        stuck_pages: set[int] | None = None,
        missing_numbers: set[int] | None = None,
    ):
        self.total_pages = total_pages
        self.block_size = block_size
        self.auto_select_on_jump = auto_select_on_jump
        self.has_indicator = has_indicator
        self.stuck_pages = stuck_pages or set()
        self.missing_numbers = missing_numbers or set()
        self.selected = 1
        self.block = 0
        self.calls: list[str] = []

    async def visible_page_numbers(self) -> list[int]:
        first = self.block * self.block_size + 1
        last = min(first + self.block_size - 1, self.total_pages)
        return [n for n in range(first, last + 1) if n not in self.missing_numbers]

    async def click_page_number(self, page: int) -> bool:
        self.calls.append(f"page:{page}")
        if page not in await self.visible_page_numbers():
            return False
        if page not in self.stuck_pages:
            self.selected = page
        return True

    async def next_available(self) -> bool:
        return (self.block + 1) * self.block_size < self.total_pages

    async def click_next(self) -> bool:
        self.calls.append("next")
        if not await self.next_available():
            return False
        self.block += 1
        if self.auto_select_on_jump:
            self.selected = self.block * self.block_size + 1
        return True

    async def click_previous(self) -> bool:
        self.calls.append("previous")
        if self.block == 0:
            return False
        self.block -= 1
        if self.auto_select_on_jump:
            self.selected = self.block * self.block_size + 1
        return True

    async def selected_page(self) -> int | None:
        return self.selected if self.has_indicator else None


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fast_pagination():
    """无等待的分页配置"""
    return PaginationConfig(
        page_delay_min=0,
        page_delay_max=0,
        block_size=10,
        block_jump_delay=0,
        verify_attempts=8,
        verify_interval=0,
        max_click_retries=3,
        block_reveal_attempts=3,
    )


@pytest.fixture
def progress():
    return MemoryProgressChannel()


@pytest.fixture
def fake_context():
    return FakeContext()


@pytest.fixture
def temp_output_dir(tmp_path):
    """创建临时输出目录"""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir
