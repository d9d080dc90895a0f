"""抽取循环

持有活动标签页，交替执行"抽取当前页"与"翻到下一页"，直到页数上限、
分页耗尽、页码校验失败或被取消。
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..common.constants import OWNER_EXTRACTION, Severity, TerminalState
from ..common.exceptions import (
    ExternalExtractionFailure,
    PageVerificationMismatch,
    PaginationError,
    PaginationExhausted,
)
from ..common.logger import get_logger
from ..common.progress import ProgressChannel
from ..common.types import LoopOutcome, PageCursor, TabSlot
from ..pagination.base import PaginationStrategy
from .extractor import Extractor

if TYPE_CHECKING:
    from playwright.async_api import Page

    from ..storage.chunked_sink import ChunkedSink

logger = get_logger(__name__)


class ExtractionLoop:
    """页级抽取循环"""

    def __init__(
        self,
        tab_slot: TabSlot,
        extractor: Extractor,
        pagination: PaginationStrategy,
        sink: "ChunkedSink",
        cursor: PageCursor,
        progress: ProgressChannel,
        cancel_event: asyncio.Event | None = None,
    ):
        self.tab_slot = tab_slot
        self.extractor = extractor
        self.pagination = pagination
        self.sink = sink
        self.cursor = cursor
        self.progress = progress
        self.cancel_event = cancel_event

        self.pages_processed = 0
        self.record_count = 0
        self.failed_pages: list[int] = []

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def run(self) -> LoopOutcome:
        """执行抽取循环，返回终止状态与统计"""
        tab = self.tab_slot.claim(OWNER_EXTRACTION)
        budget_text = self.cursor.budget if self.cursor.budget is not None else "不限"
        logger.info(f"[ExtractionLoop] 开始抽取 (起始第 {self.cursor.current} 页, 页数上限 {budget_text})")

        terminal_state = TerminalState.PAGINATION_EXHAUSTED
        while self.cursor.budget is None or self.cursor.current <= self.cursor.budget:
            if self._cancelled():
                terminal_state = TerminalState.CANCELLED
                break

            await self._process_page(tab, self.cursor.current)

            if self.cursor.budget_reached:
                terminal_state = TerminalState.BUDGET_EXHAUSTED
                break

            if self._cancelled():
                terminal_state = TerminalState.CANCELLED
                break

            try:
                await self._advance()
            except PaginationError as e:
                terminal_state = e.terminal_state
                logger.info(f"[ExtractionLoop] 结束: {e}")
                break

        outcome = LoopOutcome(
            terminal_state=terminal_state,
            pages_processed=self.pages_processed,
            record_count=self.record_count,
            failed_pages=list(self.failed_pages),
        )
        logger.info(
            f"[ExtractionLoop] 抽取结束: {terminal_state.value}, "
            f"共 {outcome.pages_processed} 页, {outcome.record_count} 条"
        )
        self.progress.emit(
            f"[ExtractionLoop] 抽取结束: 共 {outcome.pages_processed} 页, {outcome.record_count} 条",
            Severity.SUCCESS,
        )
        return outcome

    async def _process_page(self, tab: "Page", page_index: int) -> None:
        try:
            records = await self.extractor.extract(tab, page_index)
        except Exception as e:
            failure = ExternalExtractionFailure(page_index, e)
            self.failed_pages.append(page_index)
            logger.warning(f"[ExtractionLoop] {failure}")
            self.progress.emit(f"[ExtractionLoop] {failure}", Severity.ERROR)
            records = []

        self.sink.append(records)
        self.record_count += len(records)
        self.pages_processed += 1
        await self.sink.on_page_boundary(page_index)

        self.progress.emit(
            f"[ExtractionLoop] 第 {page_index} 页完成: 本页 {len(records)} 条, 累计 {self.record_count} 条"
        )

    async def _advance(self) -> None:
        target = self.cursor.current + 1

        if not await self.pagination.has_next(self.cursor):
            raise PaginationExhausted(self.cursor.current)

        if not await self.pagination.advance(self.cursor, target):
            if self.pagination.last_mismatch is not None:
                raise self.pagination.last_mismatch
            raise PaginationExhausted(self.cursor.current, "无法翻到下一页")

        if not await self.pagination.confirm(self.cursor, target):
            actual = await self.pagination.controls.selected_page()
            raise PageVerificationMismatch(target, actual)

        self.cursor.move_to(target)
