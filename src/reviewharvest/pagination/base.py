"""分页策略基类"""

from __future__ import annotations

import abc

from ..common.config import PaginationConfig, config
from ..common.exceptions import PageVerificationMismatch
from ..common.logger import get_logger
from ..common.types import PageCursor
from ..common.utils.polling import poll_until
from .controls import PaginationControls

logger = get_logger(__name__)


class PaginationStrategy(abc.ABC):
    """分页策略

    advance 只表示"触发了某个翻页控件"，调用方必须再通过 confirm 确认
    实际到达的页码与目标一致。
    """

    name = "pagination"

    def __init__(self, controls: PaginationControls, settings: PaginationConfig | None = None):
        self.controls = controls
        self.settings = settings or config.pagination
        # advance 失败时若已触发控件但页码不符，记录在此供调用方区分终止原因
        self.last_mismatch: PageVerificationMismatch | None = None

    @abc.abstractmethod
    async def has_next(self, cursor: PageCursor) -> bool:
        """是否还有可到达的下一页"""

    @abc.abstractmethod
    async def advance(self, cursor: PageCursor, target: int) -> bool:
        """尝试前往 target 页，返回是否触发了翻页控件"""

    async def confirm(self, cursor: PageCursor, target: int) -> bool:
        """确认当前页指示器等于 target

        页面上没有当前页指示器时无法确认，视为接受本次翻页。
        """
        if await self.controls.selected_page() is None:
            logger.debug(f"[Pagination] 无当前页指示器，接受翻页到第 {target} 页")
            return True
        return await self.wait_for_selected(target)

    async def wait_for_selected(self, target: int) -> bool:
        """轮询当前页指示器直到等于 target"""

        async def selected_is_target() -> bool:
            return await self.controls.selected_page() == target

        return await poll_until(
            selected_is_target,
            interval=self.settings.verify_interval,
            max_attempts=self.settings.verify_attempts,
        )
