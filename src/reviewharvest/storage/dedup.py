"""去重键

去重键由记录的稳定身份字段按固定顺序以 "|" 拼接而成，缺失值按空字符串处理。
同一键的多条记录只保留输入顺序中的第一条。
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from ..common.constants import DEDUP_KEY_SEPARATOR
from ..common.logger import get_logger
from ..common.types import Record

logger = get_logger(__name__)


def _render(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def dedup_key(
    payload: Mapping[str, Any],
    identity_fields: Sequence[str],
    separator: str = DEDUP_KEY_SEPARATOR,
) -> str:
    return separator.join(_render(payload.get(name)) for name in identity_fields)


def record_key(record: Record) -> str:
    return dedup_key(record.payload, record.identity_fields)


def deduplicate(records: Iterable[Record]) -> list[Record]:
    """按去重键去重（保留首次出现，保持输入顺序）"""
    seen: set[str] = set()
    unique: list[Record] = []
    total = 0
    for record in records:
        total += 1
        key = record_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    if total != len(unique):
        logger.debug(f"[Dedup] 去重: {total} -> {len(unique)}")
    return unique
