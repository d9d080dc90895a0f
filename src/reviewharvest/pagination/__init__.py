"""分页引擎"""

from .base import PaginationStrategy
from .block import BlockPagination
from .controls import (
    QNA_PAGER_SELECTORS,
    REVIEW_PAGER_SELECTORS,
    PaginationControls,
    PaginationSelectors,
    PlaywrightPaginationControls,
)
from .factory import create_pagination, selectors_for
from .linear import LinearPagination

__all__ = [
    "PaginationStrategy",
    "LinearPagination",
    "BlockPagination",
    "PaginationControls",
    "PaginationSelectors",
    "PlaywrightPaginationControls",
    "REVIEW_PAGER_SELECTORS",
    "QNA_PAGER_SELECTORS",
    "create_pagination",
    "selectors_for",
]
