"""通用工具"""

from .delay import get_jitter_delay, jittered_sleep
from .paths import create_session_dir
from .polling import poll_until

__all__ = [
    "get_jitter_delay",
    "jittered_sleep",
    "create_session_dir",
    "poll_until",
]
