"""Session 输出目录"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

from ..constants import CollectionMode


def session_dir_name(mode: CollectionMode, now: datetime | None = None) -> str:
    """``<mode>_<YYYYmmdd_HHMMSS>_<uuid8>``"""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{CollectionMode(mode).value}_{stamp}_{uuid.uuid4().hex[:8]}"


def create_session_dir(root: str | Path, mode: CollectionMode, now: datetime | None = None) -> Path:
    """在 ``<root>/results`` 下创建本次 Session 专属的输出目录

    目录只在 Session 创建时生成一次，同一根目录下的并发 Session 互不冲突。
    """
    path = Path(root) / "results" / session_dir_name(mode, now)
    path.mkdir(parents=True, exist_ok=False)
    return path
