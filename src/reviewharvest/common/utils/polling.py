"""通用轮询工具

所有等待点（到达确认、页码校验、块跳转后的渲染确认、页面就绪）统一使用
poll_until，每次调用都必须给出次数上限或截止时间，不存在无限等待。
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Union

Check = Callable[[], Union[bool, Awaitable[bool]]]


async def poll_until(
    check: Check,
    *,
    interval: float,
    max_attempts: int | None = None,
    timeout: float | None = None,
    on_attempt: Callable[[int], None] | None = None,
) -> bool:
    """轮询直到 check 返回真值

    Args:
        check: 同步或异步判定函数
        interval: 两次判定之间的等待时间（秒）
        max_attempts: 最大判定次数
        timeout: 截止时间（秒，从调用开始计）
        on_attempt: 每次判定失败后的回调（参数为已尝试次数），用于输出进度

    Returns:
        判定成功返回 True；次数或时间耗尽返回 False

    Raises:
        ValueError: 既未给出 max_attempts 也未给出 timeout
    """
    if max_attempts is None and timeout is None:
        raise ValueError("poll_until 需要 max_attempts 或 timeout")
    if max_attempts is not None and max_attempts < 1:
        return False

    deadline = time.monotonic() + timeout if timeout is not None else None
    attempt = 0

    while True:
        attempt += 1
        result = check()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return True

        if on_attempt is not None:
            on_attempt(attempt)

        if max_attempts is not None and attempt >= max_attempts:
            return False
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(interval, remaining))
        else:
            await asyncio.sleep(interval)
