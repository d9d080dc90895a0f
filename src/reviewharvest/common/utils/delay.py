"""Delay helpers shared across crawler components."""

from __future__ import annotations

import asyncio
import random


def get_jitter_delay(low: float, high: float) -> float:
    """Return a delay sampled uniformly from [low, high]."""
    if high < low:
        low, high = high, low
    return random.uniform(low, high)


async def jittered_sleep(low: float, high: float) -> float:
    """Sleep for a jittered delay and return the seconds slept."""
    delay = get_jitter_delay(low, high)
    if delay > 0:
        await asyncio.sleep(delay)
    return delay
