"""常量与枚举定义"""

from __future__ import annotations

from enum import Enum


class CollectionMode(str, Enum):
    """采集模式"""

    # 主条目采集（评论）：线性分页，Excel 按页数分块落盘
    PRIMARY = "primary-item-collection"
    # 会话采集（问答）：块分页，结束时整体落盘 Excel
    THREAD = "thread-collection"


class SortOrder(int, Enum):
    """评论排序方式"""

    RANKING = 0
    RECENT = 1
    LOW_RATING = 2


class Severity(str, Enum):
    """进度事件级别"""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TerminalState(str, Enum):
    """抽取循环终止状态"""

    BUDGET_EXHAUSTED = "budget_exhausted"
    PAGINATION_EXHAUSTED = "pagination_exhausted"
    PAGE_VERIFICATION_MISMATCH = "page_verification_mismatch"
    CANCELLED = "cancelled"


# 去重键字段（顺序固定，决定去重键的字节表示）
IDENTITY_FIELDS: dict[CollectionMode, tuple[str, ...]] = {
    CollectionMode.PRIMARY: ("Reviewer Name", "Review Date", "Review Score", "Content"),
    CollectionMode.THREAD: ("author", "date", "title", "question"),
}

# 各模式的产物基础文件名
BASE_NAMES: dict[CollectionMode, str] = {
    CollectionMode.PRIMARY: "reviews",
    CollectionMode.THREAD: "qna",
}

DEDUP_KEY_SEPARATOR = "|"

# 标签页所有者名称
OWNER_NAVIGATOR = "navigator"
OWNER_EXTRACTION = "extraction"
