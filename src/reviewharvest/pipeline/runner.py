"""Session 运行器

串联一次完整的采集：

1. 创建 Session 与专属输出目录
2. 打开浏览器，等待进入商品页（原标签页或新标签页）
3. 等待商品页就绪，打开评论/问答区块
4. 把标签页交给抽取循环，逐页抽取并分块落盘
5. 对全量记录去重后写入各个 sink
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError

from ..common.browser import BrowserSession
from ..common.config import Config, config as default_config
from ..common.constants import (
    BASE_NAMES,
    OWNER_EXTRACTION,
    OWNER_NAVIGATOR,
    CollectionMode,
    Severity,
    SortOrder,
)
from ..common.exceptions import NavigationTimeout
from ..common.logger import get_logger
from ..common.progress import LoggingProgressChannel, ProgressChannel
from ..common.types import ExclusionFlags, PageCursor, Result, Session, TabSlot
from ..common.utils.paths import create_session_dir
from ..extraction import ExtractionLoop, Extractor, SelectorExtractor
from ..navigation import (
    SessionNavigator,
    build_search_url,
    is_product_page,
    open_section,
    wait_for_page_ready,
)
from ..pagination import (
    PaginationControls,
    PlaywrightPaginationControls,
    create_pagination,
    selectors_for,
)
from ..storage import ChunkedSink, StorageRouter, write_excel

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = get_logger(__name__)

ControlsFactory = Callable[["Page", CollectionMode], PaginationControls]


def _default_controls(tab: "Page", mode: CollectionMode) -> PaginationControls:
    return PlaywrightPaginationControls(tab, selectors_for(mode))


def _coerce_exclusions(value: ExclusionFlags | dict[str, Any] | None) -> ExclusionFlags:
    if value is None:
        return ExclusionFlags()
    if isinstance(value, ExclusionFlags):
        return value
    return ExclusionFlags(**value)


async def start(
    target: str,
    mode: CollectionMode | str = CollectionMode.PRIMARY,
    sort_order: SortOrder | int = SortOrder.RANKING,
    page_budget: int | None = None,
    output_location: str | None = None,
    exclusion_flags: ExclusionFlags | dict[str, Any] | None = None,
    *,
    extractor: Extractor | None = None,
    browser: Any = None,
    progress: ProgressChannel | None = None,
    cancel_event: asyncio.Event | None = None,
    navigator: SessionNavigator | None = None,
    controls_factory: ControlsFactory | None = None,
    router: StorageRouter | None = None,
    cfg: Config | None = None,
) -> Result:
    """运行一次完整的采集 Session

    Args:
        target: 商品页 URL 或搜索关键词
        mode: 采集模式
        sort_order: 评论排序方式
        page_budget: 最大页数（None 表示不限）
        output_location: 输出根目录（默认使用配置）
        exclusion_flags: 排除选项
        extractor: 逐页抽取器（默认按模式使用选择器抽取器）
        browser: 浏览器会话（需提供 start / open_tab / stop）
        progress: 进度通道
        cancel_event: 置位后抽取循环在下一页开始前停止
        navigator: 到达检测器
        controls_factory: 分页控件工厂
        router: 存储路由（默认按配置开关创建）
        cfg: 配置（默认使用全局配置）

    Returns:
        Result：仅当无法进入目标页或出现未预期错误时 success=False
    """
    cfg = cfg or default_config
    progress = progress or LoggingProgressChannel()

    try:
        mode = CollectionMode(mode)
        output_root = output_location or cfg.storage.output_root
        session = Session(
            target=target,
            mode=mode,
            sort_order=SortOrder(int(sort_order)),
            page_budget=page_budget,
            output_dir=Path(output_root),
            exclusions=_coerce_exclusions(exclusion_flags),
        )
        # 参数校验通过后才创建专属目录
        session = session.model_copy(update={"output_dir": create_session_dir(output_root, mode)})
    except (ValidationError, ValueError, OSError) as e:
        logger.error(f"[Runner] 参数无效: {e}")
        progress.emit(f"[Runner] 参数无效: {e}", Severity.ERROR)
        return Result.failure(str(e))

    output_dir = session.output_dir
    logger.info(f"[Runner] Session 开始: {session.mode.value}, 输出目录 {output_dir}")
    progress.emit(f"[Runner] 输出目录: {output_dir}")

    browser = browser or BrowserSession(
        headless=cfg.browser.headless,
        viewport_width=cfg.browser.viewport_width,
        viewport_height=cfg.browser.viewport_height,
        slow_mo=cfg.browser.slow_mo,
        channel=cfg.browser.channel,
    )

    try:
        context = await browser.start()
        start_url = session.target if session.is_url_target else build_search_url(session.target)
        starting_tab = await browser.open_tab(start_url)

        # 1. 到达检测
        navigator = navigator or SessionNavigator(
            progress=progress,
            timeout_s=cfg.navigation.arrival_timeout_s,
            settle_s=cfg.navigation.new_tab_settle_s,
            countdown_interval_s=cfg.navigation.countdown_interval_s,
        )
        try:
            arrival = await navigator.wait_for_arrival(context, starting_tab, is_product_page)
        except NavigationTimeout as e:
            logger.error(f"[Runner] {e}")
            return Result.failure(str(e), output_location=str(output_dir))

        tab_slot = TabSlot()
        tab_slot.hand_off(arrival.tab, OWNER_NAVIGATOR)

        # 2. 商品页准备
        tab = tab_slot.claim(OWNER_NAVIGATOR)
        if not await wait_for_page_ready(
            tab,
            arrival.url,
            progress,
            timeout=cfg.navigation.page_ready_timeout_s,
            interval=cfg.navigation.page_ready_interval_s,
        ):
            logger.warning("[Runner] 商品页未确认就绪，继续尝试采集")
        if not await open_section(tab, session.mode, session.sort_order, session.exclusions):
            logger.warning("[Runner] 采集区块未确认打开，继续尝试采集")

        tab = tab_slot.transfer(OWNER_NAVIGATOR, OWNER_EXTRACTION)

        # 3. 抽取循环
        controls = (controls_factory or _default_controls)(tab, session.mode)
        pagination = create_pagination(session.mode, controls, cfg.pagination)
        writer = (
            write_excel
            if session.mode == CollectionMode.PRIMARY and cfg.storage.excel_enabled
            else None
        )
        sink = ChunkedSink(
            output_dir,
            BASE_NAMES[session.mode],
            writer=writer,
            threshold=cfg.storage.chunk_page_threshold,
            flush_timeout=cfg.storage.flush_timeout_s,
        )
        cursor = PageCursor(budget=session.page_budget, block_size=cfg.pagination.block_size)
        loop = ExtractionLoop(
            tab_slot=tab_slot,
            extractor=extractor or SelectorExtractor(session.mode),
            pagination=pagination,
            sink=sink,
            cursor=cursor,
            progress=progress,
            cancel_event=cancel_event,
        )
        outcome = await loop.run()
        tab_slot.release(OWNER_EXTRACTION)

        # 4. 持久化
        chunk_files = await sink.finalize()
        router = router or StorageRouter.from_config(output_dir, cfg)
        report = await router.persist(
            sink.records,
            session.mode,
            tabular_covered=writer is not None,
        )
        for name, reason in report.failures.items():
            progress.emit(f"[Runner] {name} 保存失败: {reason}", Severity.WARNING)

        result = Result(
            success=True,
            record_count=report.record_count,
            output_location=str(output_dir),
            terminal_state=outcome.terminal_state,
            chunk_files=chunk_files,
            artifacts=chunk_files + report.artifacts,
        )
        logger.info(
            f"[Runner] ✓ Session 完成: {result.record_count} 条, "
            f"终止状态 {outcome.terminal_state.value}, 输出目录 {output_dir}"
        )
        progress.emit(
            f"[Runner] ✅ 采集完成: {result.record_count} 条，保存在 {output_dir}",
            Severity.SUCCESS,
        )
        return result

    except Exception as e:
        logger.exception(f"[Runner] Session 异常结束: {e}")
        progress.emit(f"[Runner] 采集失败: {e}", Severity.ERROR)
        return Result.failure(str(e), output_location=str(output_dir))

    finally:
        try:
            await browser.stop()
        except Exception as e:
            logger.debug(f"[Runner] 关闭浏览器出错: {e}")
