"""问答记录格式化

把问答列表的扁平记录转换为会话结构::

    {
        "threadId": "QNA-20251030-0001",
        "status": "answered" | "unanswered" | "pending",
        "messages": [
            {"type": "question", "author": ..., "role": "customer", "date": ..., "content": ...},
            {"type": "answer", "author": ..., "role": "seller", "date": ..., "content": ...},
        ],
    }
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Iterable, Mapping

from ..common.logger import get_logger

logger = get_logger(__name__)

STATUS_UNANSWERED = "unanswered"
STATUS_ANSWERED = "answered"
STATUS_PENDING = "pending"


def format_date(value: str | None) -> str:
    """``2025.10.30.`` -> ``2025-10-30``；无法识别时原样返回"""
    if not value:
        return ""
    digits = re.sub(r"[.\s]", "", value)
    if len(digits) >= 8 and digits[:8].isdigit():
        return f"{digits[:4]}-{digits[4:6]}-{digits[6:8]}"
    return value


def thread_status(answer_status: str | None) -> str:
    text = answer_status or ""
    if "미답변" in text:
        return STATUS_UNANSWERED
    if "답변완료" in text:
        return STATUS_ANSWERED
    return STATUS_PENDING


def format_thread(item: Mapping[str, Any], sequence: int, today: date | None = None) -> dict[str, Any]:
    question_date = format_date(item.get("date"))
    answer_date = format_date(item.get("answerDate"))

    id_date = question_date or answer_date or (today or date.today()).isoformat()
    thread_id = f"QNA-{id_date.replace('-', '')}-{sequence:04d}"

    messages: list[dict[str, Any]] = []
    question = item.get("question") or item.get("title")
    if question:
        messages.append(
            {
                "type": "question",
                "author": item.get("author") or "",
                "role": "customer",
                "date": question_date,
                "content": question,
            }
        )
    if item.get("answer") and item.get("answerAuthor"):
        messages.append(
            {
                "type": "answer",
                "author": item.get("answerAuthor"),
                "role": "seller",
                "date": answer_date,
                "content": item.get("answer"),
            }
        )

    return {
        "threadId": thread_id,
        "status": thread_status(item.get("answerStatus")),
        "messages": messages,
    }


def format_threads(items: Iterable[Mapping[str, Any]], today: date | None = None) -> list[dict[str, Any]]:
    """按输入顺序格式化，threadId 序号从 1 开始"""
    threads = [format_thread(item, i, today) for i, item in enumerate(items, start=1)]
    logger.debug(f"[ThreadFormatter] 格式化 {len(threads)} 个会话")
    return threads


def flatten_thread(thread: Mapping[str, Any]) -> dict[str, Any]:
    """会话转换为表格行（问题与回答各占一组列）"""
    row: dict[str, Any] = {"threadId": thread.get("threadId"), "status": thread.get("status")}
    by_type = {m.get("type"): m for m in thread.get("messages", [])}
    for kind in ("question", "answer"):
        message = by_type.get(kind, {})
        row[f"{kind}Author"] = message.get("author", "")
        row[f"{kind}Date"] = message.get("date", "")
        row[f"{kind}Content"] = message.get("content", "")
    return row
