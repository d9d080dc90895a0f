"""存储 sink

每个 sink 独立写入，失败时抛出 SinkWriteFailure，由 StorageRouter 隔离处理。
"""

from __future__ import annotations

import abc
import asyncio
import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

import pandas as pd
import redis.asyncio as aioredis
from openpyxl.utils import get_column_letter

from ..common.config import RedisConfig
from ..common.constants import CollectionMode
from ..common.exceptions import SinkWriteFailure
from ..common.logger import get_logger
from ..common.types import Record
from ..common.utils.file_utils import save_json, timestamped_name
from .dedup import record_key
from .thread_formatter import flatten_thread

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)

PHOTO_NAME_PATTERN = re.compile(r"review_page(\d+)_(\d+)_photo_")
LIST_JOINER = ", "


@dataclass
class SinkBatch:
    """一次持久化的输入

    records 为去重后的记录，items 为与之一一对应、已格式化的输出条目。
    """

    records: list[Record]
    items: list[dict[str, Any]]
    base_name: str
    mode: CollectionMode
    timestamp: datetime = field(default_factory=datetime.now)


# ============================================================================
# 行转换
# ============================================================================


def to_row(item: Mapping[str, Any]) -> dict[str, Any]:
    """表格行：列表值以 ", " 拼接"""
    row: dict[str, Any] = {}
    for key, value in item.items():
        if isinstance(value, (list, tuple)):
            value = LIST_JOINER.join(str(v) for v in value)
        row[key] = value
    return row


def page_review_tag(photos: Any) -> str:
    """从第一张图片的文件名中取出 ``<页码>_<序号>``"""
    if isinstance(photos, str):
        photos = [p.strip() for p in photos.split(",") if p.strip()]
    if not photos:
        return ""
    match = PHOTO_NAME_PATTERN.search(str(photos[0]))
    return f"{match.group(1)}_{match.group(2)}" if match else ""


def with_page_review(item: Mapping[str, Any]) -> dict[str, Any]:
    """在最前面加上 Page_Review 字段"""
    return {"Page_Review": page_review_tag(item.get("Photos")), **item}


def write_excel(rows: list[Mapping[str, Any]], path: Path, sheet_name: str = "Reviews") -> Path:
    """把行写入 xlsx（同步，供线程池调用）"""
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([to_row(r) for r in rows])
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        worksheet = writer.sheets[sheet_name]
        for idx, column in enumerate(df.columns, start=1):
            worksheet.column_dimensions[get_column_letter(idx)].width = max(len(str(column)), 20)
    return path


# ============================================================================
# Sinks
# ============================================================================


class RecordSink(abc.ABC):
    """存储 sink 基类"""

    name = "sink"
    # 表格类产物（分块已覆盖时跳过）
    tabular = False

    @abc.abstractmethod
    async def write(self, batch: SinkBatch) -> str | None:
        """写入并返回产物位置；没有可写内容时返回 None"""

    async def close(self) -> None:
        """释放连接等资源"""


class JsonSink(RecordSink):
    """整体写入一个 JSON 文件"""

    name = "json"

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    async def write(self, batch: SinkBatch) -> str | None:
        items = batch.items
        if batch.mode == CollectionMode.PRIMARY:
            items = [with_page_review(item) for item in items]

        path = self.output_dir / timestamped_name(batch.base_name, "json", batch.timestamp)
        ok = await asyncio.to_thread(save_json, path, items)
        if not ok:
            raise SinkWriteFailure(self.name, f"无法写入 {path}")
        logger.info(f"[Storage] ✓ JSON 已保存: {path} ({len(items)} 条)")
        return str(path)


class ExcelSink(RecordSink):
    """整体写入一个 Excel 文件"""

    name = "excel"
    tabular = True

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    async def write(self, batch: SinkBatch) -> str | None:
        if not batch.items:
            logger.info("[Storage] 没有可写入 Excel 的记录")
            return None

        if batch.mode == CollectionMode.THREAD:
            rows = [flatten_thread(item) for item in batch.items]
            sheet = "QnA"
        else:
            rows = batch.items
            sheet = "Reviews"

        path = self.output_dir / timestamped_name(batch.base_name, "xlsx", batch.timestamp)
        try:
            await asyncio.to_thread(write_excel, rows, path, sheet)
        except (OSError, ValueError) as e:
            raise SinkWriteFailure(self.name, str(e)) from e
        logger.info(f"[Storage] ✓ Excel 已保存: {path} ({len(rows)} 条)")
        return str(path)


class RedisSink(RecordSink):
    """远程文档存储（尽力而为）

    每条记录以 HSETNX 写入 ``{key_prefix}:{base_name}:data``，
    field 为去重键的 sha256 前 16 位，已存在的记录不会被覆盖。
    """

    name = "redis"

    def __init__(self, settings: RedisConfig, client: "Redis | None" = None):
        self.settings = settings
        self.client = client
        self._owns_client = client is None

    @staticmethod
    def _generate_hash_id(key: str) -> str:
        return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]

    def data_key(self, base_name: str) -> str:
        return f"{self.settings.key_prefix}:{base_name}:data"

    async def connect(self) -> "Redis":
        if self.client is None:
            self.client = aioredis.Redis(
                host=self.settings.host,
                port=self.settings.port,
                password=self.settings.password,
                db=self.settings.db,
                decode_responses=True,
                socket_connect_timeout=self.settings.connect_timeout_s,
            )
        await self.client.ping()
        return self.client

    async def write(self, batch: SinkBatch) -> str | None:
        try:
            client = await self.connect()
        except Exception as e:
            raise SinkWriteFailure(self.name, f"无法连接 Redis {self.settings.host}:{self.settings.port}: {e}") from e

        key = self.data_key(batch.base_name)
        saved_at = batch.timestamp.isoformat()
        inserted = 0
        try:
            for record, item in zip(batch.records, batch.items):
                value = json.dumps({"data": item, "saved_at": saved_at}, ensure_ascii=False, default=str)
                if await client.hsetnx(key, self._generate_hash_id(record_key(record)), value):
                    inserted += 1
        except Exception as e:
            raise SinkWriteFailure(self.name, str(e)) from e

        logger.info(f"[Storage] ✓ Redis 已写入 {key}: 新增 {inserted} / {len(batch.items)} 条")
        return f"redis://{self.settings.host}:{self.settings.port}/{self.settings.db}#{key}"

    async def close(self) -> None:
        if self.client is not None and self._owns_client:
            try:
                await self.client.aclose()
            except Exception as e:
                logger.debug(f"[Storage] 关闭 Redis 连接出错: {e}")
            self.client = None
