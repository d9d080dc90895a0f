"""线性分页：逐页前进，优先点击目标页码，其次点击"下一页" """

from __future__ import annotations

from ..common.logger import get_logger
from ..common.types import PageCursor
from ..common.utils.delay import jittered_sleep
from .base import PaginationStrategy

logger = get_logger(__name__)


class LinearPagination(PaginationStrategy):
    """线性分页策略"""

    name = "linear"

    async def has_next(self, cursor: PageCursor) -> bool:
        await self.controls.prepare()
        if await self.controls.page_number_visible(cursor.current + 1):
            return True
        return await self.controls.next_available()

    async def advance(self, cursor: PageCursor, target: int) -> bool:
        self.last_mismatch = None
        logger.info(f"[Pagination] 尝试翻页: 第 {cursor.current} 页 -> 第 {target} 页")
        await self.controls.prepare()

        if await self.controls.click_page_number(target):
            logger.info(f"[Pagination] ✓ 已点击页码 {target}")
        elif await self.controls.click_next():
            logger.info("[Pagination] ✓ 未找到页码，已点击下一页按钮")
        else:
            logger.info("[Pagination] ✗ 没有可用的翻页控件")
            return False

        delay = await jittered_sleep(self.settings.page_delay_min, self.settings.page_delay_max)
        logger.debug(f"[Pagination] 翻页后等待 {delay:.1f} 秒")
        return True
