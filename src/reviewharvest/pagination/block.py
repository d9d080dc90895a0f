"""块分页

页码按块显示（每块 block_size 个），"下一块/上一块"控件切换整块页码。
到达目标页分两步：先跳到目标所在的块，再点击准确的页码并校验。
"""

from __future__ import annotations

import asyncio

from ..common.exceptions import PageVerificationMismatch
from ..common.logger import get_logger
from ..common.types import PageCursor
from ..common.utils.delay import jittered_sleep
from ..common.utils.polling import poll_until
from .base import PaginationStrategy

logger = get_logger(__name__)


class BlockPagination(PaginationStrategy):
    """块分页策略"""

    name = "block"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.block_pointer = 0
        # 每次块跳转的方向（+1 / -1），按发生顺序记录
        self.jumps: list[int] = []

    @property
    def block_size(self) -> int:
        return self.settings.block_size

    def block_of(self, page: int) -> int:
        return (page - 1) // self.block_size

    async def has_next(self, cursor: PageCursor) -> bool:
        await self.controls.prepare()
        numbers = await self.controls.visible_page_numbers()
        if cursor.current + 1 in numbers:
            return True
        if await self.controls.next_available():
            return True
        return any(n > cursor.current for n in numbers)

    async def advance(self, cursor: PageCursor, target: int) -> bool:
        self.last_mismatch = None
        await self.controls.prepare()

        self.block_pointer = cursor.block_index
        delta = self.block_of(target) - self.block_pointer
        logger.info(
            f"[Pagination] 块分页: 第 {cursor.current} 页 -> 第 {target} 页 (跨 {delta} 块)"
        )

        if not await self._jump_blocks(delta):
            return False

        reached = False
        if delta != 0 and (target - 1) % self.block_size == 0:
            # 跳块后控件可能已自动选中块首页
            reached = await self.wait_for_selected(target)
            if reached:
                logger.info(f"[Pagination] ✓ 跳块后已选中第 {target} 页")

        if not reached:
            reached = await self._click_and_verify(target)
        if not reached:
            return False

        # 指示器可能先于列表切换，等待列表重新渲染
        delay = await jittered_sleep(self.settings.page_delay_min, self.settings.page_delay_max)
        logger.debug(f"[Pagination] 翻页后等待 {delay:.1f} 秒")
        return True

    async def _jump_blocks(self, delta: int) -> bool:
        step = 1 if delta > 0 else -1
        for i in range(abs(delta)):
            if step > 0:
                clicked = await self.controls.click_block_forward()
            else:
                clicked = await self.controls.click_block_backward()
            if not clicked:
                direction = "下一块" if step > 0 else "上一块"
                logger.info(f"[Pagination] ✗ 未找到{direction}按钮 (第 {i + 1}/{abs(delta)} 次跳块)")
                return False

            await asyncio.sleep(self.settings.block_jump_delay)
            # 控件不回报当前块，乐观更新块指针
            self.block_pointer += step
            self.jumps.append(step)

            first_page = self.block_pointer * self.block_size + 1
            revealed = await poll_until(
                lambda: self.controls.page_number_visible(first_page),
                interval=self.settings.verify_interval,
                max_attempts=self.settings.block_reveal_attempts,
            )
            if not revealed:
                logger.debug(f"[Pagination] 跳块后未看到页码 {first_page}，继续")
        return True

    async def _click_and_verify(self, target: int) -> bool:
        retries = self.settings.max_click_retries
        actual: int | None = None
        clicked_any = False

        for attempt in range(1, retries + 1):
            if not await self.controls.click_page_number(target):
                logger.info(f"[Pagination] 未找到页码 {target} ({attempt}/{retries})")
                await asyncio.sleep(self.settings.verify_interval)
                continue

            clicked_any = True
            if await self.wait_for_selected(target):
                logger.info(f"[Pagination] ✓ 翻页成功: 第 {target} 页")
                return True
            actual = await self.controls.selected_page()
            logger.info(
                f"[Pagination] 页码校验失败: 目标 {target}, 实际 {actual} ({attempt}/{retries})"
            )

        if clicked_any:
            self.last_mismatch = PageVerificationMismatch(target, actual)
        logger.info(f"[Pagination] ✗ 无法到达第 {target} 页")
        return False
