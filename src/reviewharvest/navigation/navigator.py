"""到达检测

用户（或页面脚本）可能在当前标签页内跳转，也可能打开一个新标签页。
SessionNavigator 同时监听三类事件源，第一个满足判定的事件源胜出：

1. 当前标签页 URL 的即时读取
2. 当前标签页主 frame 的 ``framenavigated`` 事件
3. BrowserContext 的 ``page`` 事件（新标签页），对每个新标签页：
   - 订阅它的 ``framenavigated``
   - 延迟 settle 时间后读取一次 URL（新标签页刚创建时 URL 通常为空白）

胜出后同步移除所有监听、取消所有延迟任务，之后的事件不会再次触发结果。
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable

from ..common.config import config
from ..common.constants import Severity
from ..common.exceptions import NavigationTimeout
from ..common.logger import get_logger
from ..common.progress import LoggingProgressChannel, ProgressChannel
from ..common.types import Arrival

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

logger = get_logger(__name__)

UrlPredicate = Callable[[str], bool]


class _ArrivalRace:
    """单次到达检测的监听与结果状态"""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        predicate: UrlPredicate,
        settle_s: float,
    ):
        self.loop = loop
        self.predicate = predicate
        self.settle_s = settle_s
        self.winner: asyncio.Future[Arrival] = loop.create_future()
        self._subscriptions: list[tuple[Any, str, Callable[..., Any]]] = []
        self._settle_tasks: set[asyncio.Task] = set()

    # ---------------------------------------------------------------- 订阅

    def subscribe(self, emitter: Any, event: str, handler: Callable[..., Any]) -> None:
        emitter.on(event, handler)
        self._subscriptions.append((emitter, event, handler))

    def watch_tab(self, tab: "Page", label: str) -> None:
        """订阅标签页主 frame 的跳转"""

        def on_frame_navigated(frame: Any) -> None:
            if frame != tab.main_frame:
                return
            url = frame.url
            logger.debug(f"[Navigator] {label} URL 变化: {url}")
            self.offer(tab, url, label)

        self.subscribe(tab, "framenavigated", on_frame_navigated)

    def on_new_tab(self, tab: "Page") -> None:
        if self.winner.done():
            return
        logger.debug("[Navigator] 检测到新标签页")
        self.watch_tab(tab, "新标签页")
        task = self.loop.create_task(self._settle_then_read(tab))
        self._settle_tasks.add(task)
        task.add_done_callback(self._settle_tasks.discard)

    async def _settle_then_read(self, tab: "Page") -> None:
        await asyncio.sleep(self.settle_s)
        self.offer(tab, tab.url, "新标签页(延迟读取)")

    # ---------------------------------------------------------------- 结果

    def offer(self, tab: "Page", url: str, source: str) -> bool:
        """提交一个候选 URL，满足判定且尚未决出结果时胜出"""
        if self.winner.done() or not self.predicate(url):
            return False
        logger.info(f"[Navigator] ✓ 检测到目标页 ({source}): {url}")
        self.winner.set_result(Arrival(tab=tab, url=url))
        self.teardown()
        return True

    def teardown(self) -> None:
        """移除全部监听并取消全部延迟任务"""
        for emitter, event, handler in self._subscriptions:
            try:
                emitter.remove_listener(event, handler)
            except Exception as e:
                logger.debug(f"[Navigator] 移除监听 {event} 出错: {e}")
        self._subscriptions.clear()

        current = asyncio.current_task()
        for task in list(self._settle_tasks):
            if task is not current:
                task.cancel()
        self._settle_tasks.clear()

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    @property
    def pending_settle_tasks(self) -> int:
        return len(self._settle_tasks)


class SessionNavigator:
    """等待浏览器到达目标页（原标签页或新标签页）"""

    def __init__(
        self,
        progress: ProgressChannel | None = None,
        timeout_s: float | None = None,
        settle_s: float | None = None,
        countdown_interval_s: float | None = None,
    ):
        self.progress = progress or LoggingProgressChannel()
        self.timeout_s = timeout_s if timeout_s is not None else config.navigation.arrival_timeout_s
        self.settle_s = settle_s if settle_s is not None else config.navigation.new_tab_settle_s
        self.countdown_interval_s = (
            countdown_interval_s
            if countdown_interval_s is not None
            else config.navigation.countdown_interval_s
        )
        # 最近一次检测的内部状态（测试用于确认监听已全部移除）
        self.last_race: _ArrivalRace | None = None

    async def wait_for_arrival(
        self,
        context: "BrowserContext",
        starting_tab: "Page",
        predicate: UrlPredicate,
        timeout: float | None = None,
    ) -> Arrival:
        """等待任一事件源到达满足 predicate 的 URL

        Args:
            context: 浏览器上下文（用于监听新标签页）
            starting_tab: 当前被跟踪的标签页
            predicate: URL 判定函数
            timeout: 超时时间（秒），默认使用配置

        Returns:
            Arrival(tab, url)：胜出的标签页与 URL

        Raises:
            NavigationTimeout: 超时内没有任何事件源满足判定
        """
        timeout_s = timeout if timeout is not None else self.timeout_s
        loop = asyncio.get_running_loop()
        race = _ArrivalRace(loop, predicate, self.settle_s)
        self.last_race = race

        self.progress.emit(f"[Navigator] 等待进入商品页... (最长 {timeout_s:g} 秒)")

        race.watch_tab(starting_tab, "当前标签页")
        race.subscribe(context, "page", race.on_new_tab)
        race.offer(starting_tab, starting_tab.url, "当前标签页(即时读取)")

        countdown = loop.create_task(self._countdown(loop.time() + timeout_s))
        try:
            done, _ = await asyncio.wait({race.winner}, timeout=timeout_s)
        finally:
            # 超时或被取消时同样释放全部监听
            countdown.cancel()
            race.teardown()
            if not race.winner.done():
                race.winner.cancel()

        if not done:
            logger.warning(f"[Navigator] ✗ 等待商品页超时 ({timeout_s:g} 秒)")
            self.progress.emit(
                f"[Navigator] 等待商品页超时 ({timeout_s:g} 秒)", Severity.ERROR, replace_previous=True
            )
            raise NavigationTimeout(timeout_s, "等待商品页超时")

        arrival = race.winner.result()
        if arrival.tab is not starting_tab:
            try:
                await arrival.tab.bring_to_front()
            except Exception as e:
                logger.warning(f"[Navigator] 切换到新标签页失败: {e}")

        self.progress.emit("[Navigator] ✅ 已进入商品页", Severity.SUCCESS, replace_previous=True)
        return arrival

    async def _countdown(self, deadline: float) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(self.countdown_interval_s)
            remaining = int(round(deadline - loop.time()))
            if remaining <= 0:
                return
            self.progress.emit(
                f"[Navigator] 等待进入商品页... (剩余 {remaining} 秒)", replace_previous=True
            )
