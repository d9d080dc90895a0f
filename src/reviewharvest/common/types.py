"""核心数据类型定义"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from .constants import IDENTITY_FIELDS, CollectionMode, Severity, SortOrder, TerminalState
from .exceptions import TabOwnershipError

if TYPE_CHECKING:
    from playwright.async_api import Page


# ============================================================================
# Session
# ============================================================================


class ExclusionFlags(BaseModel):
    """采集排除选项"""

    # 问答模式：勾选"排除秘密帖"
    exclude_secret: bool = False


class Session(BaseModel):
    """一次完整的采集运行

    output_dir 在创建时生成一次，整个生命周期内不变。
    """

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="目标 URL 或搜索关键词")
    mode: CollectionMode = Field(default=CollectionMode.PRIMARY, description="采集模式")
    sort_order: SortOrder = Field(default=SortOrder.RANKING, description="排序方式")
    page_budget: int | None = Field(default=None, ge=1, description="最大页数，None 表示不限")
    output_dir: Path = Field(..., description="Session 专属输出目录")
    exclusions: ExclusionFlags = Field(default_factory=ExclusionFlags)

    @property
    def is_url_target(self) -> bool:
        parsed = urlparse(self.target.strip())
        return parsed.scheme in {"http", "https"} and bool(parsed.netloc)

    @property
    def identity_fields(self) -> tuple[str, ...]:
        return IDENTITY_FIELDS[self.mode]


# ============================================================================
# 分页游标
# ============================================================================


@dataclass
class PageCursor:
    """页码游标

    current 只增不减，且永不超过 budget。
    """

    current: int = 1
    budget: int | None = None
    block_size: int = 10

    def __post_init__(self) -> None:
        if self.current < 1:
            raise ValueError(f"页码必须 >= 1: {self.current}")
        if self.budget is not None and self.current > self.budget:
            raise ValueError(f"起始页 {self.current} 超过页数上限 {self.budget}")

    @property
    def budget_reached(self) -> bool:
        return self.budget is not None and self.current >= self.budget

    @property
    def block_index(self) -> int:
        return (self.current - 1) // self.block_size

    def move_to(self, page: int) -> None:
        """前进到指定页（不允许回退或越界）"""
        if page < self.current:
            raise ValueError(f"页码不能回退: {self.current} -> {page}")
        if self.budget is not None and page > self.budget:
            raise ValueError(f"页码 {page} 超过页数上限 {self.budget}")
        self.current = page


# ============================================================================
# 记录
# ============================================================================


@dataclass
class Record:
    """一条抽取出的逻辑条目

    identity_fields 按固定顺序声明用于去重的稳定字段，其余字段为任意载荷。
    """

    payload: dict[str, Any]
    identity_fields: tuple[str, ...] = ()
    page_index: int | None = None

    @classmethod
    def for_mode(
        cls, mode: CollectionMode, payload: dict[str, Any], page_index: int | None = None
    ) -> "Record":
        return cls(payload=dict(payload), identity_fields=IDENTITY_FIELDS[mode], page_index=page_index)

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


# ============================================================================
# 标签页所有权
# ============================================================================


class TabSlot:
    """活动标签页的显式所有权槽

    同一时刻只有一个组件持有活动标签页；所有权转移通过 transfer 一次性完成。
    """

    def __init__(self) -> None:
        self._tab: "Page | None" = None
        self._owner: str | None = None

    @property
    def owner(self) -> str | None:
        return self._owner

    def hand_off(self, tab: "Page", owner: str) -> None:
        """安装标签页并指定持有者（覆盖之前的持有关系）"""
        self._tab = tab
        self._owner = owner

    def claim(self, owner: str) -> "Page":
        """持有者取回标签页；非持有者调用会抛出 TabOwnershipError"""
        if self._tab is None or self._owner != owner:
            raise TabOwnershipError(owner, self._owner)
        return self._tab

    def transfer(self, from_owner: str, to_owner: str) -> "Page":
        tab = self.claim(from_owner)
        self._owner = to_owner
        return tab

    def release(self, owner: str) -> None:
        self.claim(owner)
        self._tab = None
        self._owner = None


@dataclass
class Arrival:
    """到达检测结果"""

    tab: "Page"
    url: str


# ============================================================================
# 进度与结果
# ============================================================================


@dataclass
class ProgressEvent:
    """进度事件

    replace_previous=True 表示消费方应覆盖上一行（倒计时、轮询状态）。
    """

    message: str
    severity: Severity = Severity.INFO
    replace_previous: bool = False


@dataclass
class LoopOutcome:
    """抽取循环的结束摘要"""

    terminal_state: TerminalState
    pages_processed: int = 0
    record_count: int = 0
    failed_pages: list[int] = field(default_factory=list)


class Result(BaseModel):
    """一次 Session 的最终结果"""

    success: bool
    record_count: int = 0
    output_location: str | None = None
    error: str | None = None
    terminal_state: TerminalState | None = None
    chunk_files: list[str] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)

    @classmethod
    def failure(cls, error: str, output_location: str | None = None) -> "Result":
        return cls(success=False, error=error, output_location=output_location)

    def to_dict(self) -> dict[str, Any]:
        """对外（UI/CLI）约定的结果格式"""
        if self.success:
            return {
                "success": True,
                "recordCount": self.record_count,
                "outputLocation": self.output_location,
            }
        return {"success": False, "error": self.error}
