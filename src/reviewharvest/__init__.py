"""ReviewHarvest - 浏览器驱动的多页评论/问答采集器"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

if TYPE_CHECKING:
    from .pipeline.runner import start as start

__all__ = [
    "__version__",
    "start",
]


def __getattr__(name: str) -> Any:
    """Lazy exports to avoid importing heavy runtime dependencies at package import time."""
    if name == "start":
        from .pipeline.runner import start

        return start
    raise AttributeError(f"module 'reviewharvest' has no attribute '{name}'")
