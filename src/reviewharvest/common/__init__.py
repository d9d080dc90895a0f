"""Common模块 - 公共工具和基础设施

该模块提供：
- 全局配置管理
- 日志系统
- 异常类
- 常量与类型定义
- 进度通道
"""

from .config import config, Config
from .logger import configure_logging, get_logger, console
from .exceptions import (
    ReviewHarvestError,
    ConfigError,
    BrowserError,
    TabOwnershipError,
    NavigationError,
    NavigationTimeout,
    PaginationError,
    PaginationExhausted,
    PageVerificationMismatch,
    ExtractionError,
    ExternalExtractionFailure,
    StorageError,
    SinkWriteFailure,
)
from .constants import (
    CollectionMode,
    SortOrder,
    Severity,
    TerminalState,
    IDENTITY_FIELDS,
)
from .types import (
    ExclusionFlags,
    Session,
    PageCursor,
    Record,
    TabSlot,
    Arrival,
    ProgressEvent,
    LoopOutcome,
    Result,
)
from .progress import (
    ProgressChannel,
    MemoryProgressChannel,
    LoggingProgressChannel,
    CallbackProgressChannel,
)

__all__ = [
    # 配置
    "config",
    "Config",
    # 日志
    "configure_logging",
    "get_logger",
    "console",
    # 异常
    "ReviewHarvestError",
    "ConfigError",
    "BrowserError",
    "TabOwnershipError",
    "NavigationError",
    "NavigationTimeout",
    "PaginationError",
    "PaginationExhausted",
    "PageVerificationMismatch",
    "ExtractionError",
    "ExternalExtractionFailure",
    "StorageError",
    "SinkWriteFailure",
    # 常量
    "CollectionMode",
    "SortOrder",
    "Severity",
    "TerminalState",
    "IDENTITY_FIELDS",
    # 类型
    "ExclusionFlags",
    "Session",
    "PageCursor",
    "Record",
    "TabSlot",
    "Arrival",
    "ProgressEvent",
    "LoopOutcome",
    "Result",
    # 进度
    "ProgressChannel",
    "MemoryProgressChannel",
    "LoggingProgressChannel",
    "CallbackProgressChannel",
]
