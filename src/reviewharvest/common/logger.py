"""采集器日志

所有模块通过 ``get_logger(__name__)`` 取得 ``reviewharvest.*`` 下的子日志器，
子日志器本身不挂处理器，统一传播到包根日志器上的 Rich 处理器。
消息以方括号组件标签开头，例如 ``[Navigator]``、``[Pagination]``、``[Storage]``。
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER_NAME = "reviewharvest"

# 全局控制台实例，CLI 的表格输出与日志共用
console = Console()

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(value: str | None = None) -> int:
    """解析日志级别名，未给出时读取 LOG_LEVEL 环境变量，无法识别时回退到 INFO"""
    level_str = (value or os.getenv("LOG_LEVEL", "INFO")).upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


def _root_handler(root: logging.Logger) -> RichHandler | None:
    for handler in root.handlers:
        if isinstance(handler, RichHandler):
            return handler
    return None


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """配置包根日志器

    重复调用只调整级别，不会叠加处理器。

    Args:
        level: 级别名或 logging 常量，None 时取 LOG_LEVEL 环境变量

    Returns:
        包根日志器
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    log_level = level if isinstance(level, int) else get_log_level(level)

    handler = _root_handler(root)
    if handler is None:
        handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=os.getenv("LOG_SHOW_LOCALS", "false").lower() == "true",
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)
        # 不向 Python 根日志器重复输出
        root.propagate = False

    root.setLevel(log_level)
    handler.setLevel(log_level)
    return root


def get_logger(name: str) -> logging.Logger:
    """获取模块日志器

    Example:
        >>> from reviewharvest.common.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("[Navigator] 等待到达商品页")
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _root_handler(root) is None:
        configure_logging()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
