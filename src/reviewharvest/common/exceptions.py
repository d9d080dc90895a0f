"""自定义异常类

定义项目中使用的所有自定义异常，用于更精细的错误处理。

传播策略：
- 单页抽取失败（ExternalExtractionFailure）只在当前页内恢复，永不终止 Session
- 分页终止（PaginationExhausted / PageVerificationMismatch）是正常结束状态
- 存储失败（SinkWriteFailure）按 sink 隔离
- 只有到达检测失败（NavigationTimeout）会让整个 Session 返回 success=False
"""

from __future__ import annotations

from .constants import TerminalState


class ReviewHarvestError(Exception):
    """基础异常类

    所有自定义异常的基类。
    """
    pass


class ConfigError(ReviewHarvestError):
    """配置相关错误"""
    pass


class BrowserError(ReviewHarvestError):
    """浏览器相关错误的基类"""
    pass


class TabOwnershipError(BrowserError):
    """标签页所有权冲突

    当某个组件在未持有活动标签页时试图驱动它时抛出。
    """
    def __init__(self, owner: str, holder: str | None):
        super().__init__(f"组件 '{owner}' 未持有活动标签页 (当前持有者: {holder or '无'})")
        self.owner = owner
        self.holder = holder


class NavigationError(ReviewHarvestError):
    """导航相关错误的基类"""
    pass


class NavigationTimeout(NavigationError):
    """到达检测超时

    在限定时间内没有任何事件源满足目标页判定，Session 将以失败结束。
    """
    def __init__(self, timeout_s: float, message: str = "等待目标页超时"):
        super().__init__(f"{message} ({timeout_s:g}秒)")
        self.timeout_s = timeout_s


class PaginationError(ReviewHarvestError):
    """分页终止的基类

    子类携带对应的终止状态，供抽取循环记录后正常结束。
    """
    terminal_state: TerminalState = TerminalState.PAGINATION_EXHAUSTED


class PaginationExhausted(PaginationError):
    """没有可到达的下一页（正常终止）"""
    terminal_state = TerminalState.PAGINATION_EXHAUSTED

    def __init__(self, current_page: int, message: str = "没有更多页面"):
        super().__init__(f"{message} (停在第 {current_page} 页)")
        self.current_page = current_page


class PageVerificationMismatch(PaginationError):
    """翻页控件已触发，但到达的页码与目标不一致"""
    terminal_state = TerminalState.PAGE_VERIFICATION_MISMATCH

    def __init__(self, target: int, actual: int | None):
        super().__init__(f"页码校验失败: 目标第 {target} 页, 实际 {actual if actual is not None else '未知'}")
        self.target = target
        self.actual = actual


class ExtractionError(ReviewHarvestError):
    """抽取相关错误的基类"""
    pass


class ExternalExtractionFailure(ExtractionError):
    """外部 Extractor 在某一页抛出异常（跳过该页，继续循环）"""
    def __init__(self, page_index: int, cause: BaseException):
        super().__init__(f"第 {page_index} 页抽取失败: {cause}")
        self.page_index = page_index
        self.cause = cause


class StorageError(ReviewHarvestError):
    """存储相关错误的基类"""
    pass


class SinkWriteFailure(StorageError):
    """单个存储 sink 写入失败"""
    def __init__(self, sink: str, reason: str):
        super().__init__(f"[{sink}] 写入失败: {reason}")
        self.sink = sink
        self.reason = reason
