"""
通用文件/文件夹操作工具模块

主要功能：
- 目录创建
- JSON 数据的保存和加载
- 带时间戳的文件名生成
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Union

from loguru import logger


# ==================== 目录操作 ====================

def ensure_directory(path: Union[str, Path]) -> bool:
    """
    确保目录存在，如果不存在则创建

    Args:
        path: 目录路径

    Returns:
        bool: 成功返回 True，失败返回 False

    Example:
        >>> ensure_directory("output/results")
        True
    """
    try:
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created directory: {p}")
        return True
    except OSError as e:
        logger.error(f"[FS_CREATE_ERROR] Failed to create directory {path}: {e}")
        return False


# ==================== 文件名 ====================

def timestamped_name(base_name: str, suffix: str, now: datetime | None = None) -> str:
    """
    生成 ``<base>_<YYYYmmdd_HHMMSS>.<suffix>`` 形式的文件名

    Args:
        base_name: 基础文件名
        suffix: 扩展名（不带点）
        now: 时间（默认当前时间）
    """
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{base_name}_{stamp}.{suffix}"


# ==================== JSON 操作 ====================

def save_json(file_path: Union[str, Path], data: Any, indent: int = 2) -> bool:
    """
    保存 JSON 数据到文件（UTF-8，保留非 ASCII 字符）

    Args:
        file_path: 文件路径
        data: 要保存的数据（dict 或 list）
        indent: 缩进空格数

    Returns:
        bool: 成功返回 True，失败返回 False
    """
    try:
        p = Path(file_path)
        ensure_directory(p.parent)
        p.write_text(
            json.dumps(data, ensure_ascii=False, indent=indent, default=str),
            encoding="utf-8",
        )
        logger.debug(f"Saved JSON: {p}")
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"[FS_WRITE_ERROR] Failed to save JSON {file_path}: {e}")
        return False


__all__ = [
    "ensure_directory",
    "timestamped_name",
    "save_json",
]
