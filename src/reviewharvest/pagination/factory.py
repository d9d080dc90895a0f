"""分页策略工厂"""

from __future__ import annotations

from ..common.config import PaginationConfig
from ..common.constants import CollectionMode
from .base import PaginationStrategy
from .block import BlockPagination
from .controls import (
    QNA_PAGER_SELECTORS,
    REVIEW_PAGER_SELECTORS,
    PaginationControls,
    PaginationSelectors,
)
from .linear import LinearPagination

_STRATEGIES: dict[CollectionMode, type[PaginationStrategy]] = {
    CollectionMode.PRIMARY: LinearPagination,
    CollectionMode.THREAD: BlockPagination,
}

_SELECTORS: dict[CollectionMode, PaginationSelectors] = {
    CollectionMode.PRIMARY: REVIEW_PAGER_SELECTORS,
    CollectionMode.THREAD: QNA_PAGER_SELECTORS,
}


def selectors_for(mode: CollectionMode) -> PaginationSelectors:
    return _SELECTORS[CollectionMode(mode)]


def create_pagination(
    mode: CollectionMode,
    controls: PaginationControls,
    settings: PaginationConfig | None = None,
) -> PaginationStrategy:
    """按采集模式创建分页策略：评论为线性分页，问答为块分页"""
    return _STRATEGIES[CollectionMode(mode)](controls, settings)
