"""采集流水线"""

from .runner import start

__all__ = ["start"]
