"""分块落盘

采集过程中持续累积记录，每处理 threshold 页就把这段时间的新记录写成一个
``<base>_chunk_<N>.xlsx``。长时间运行中途失败时，已落盘的分块不会丢失。
全量记录一直保留在内存里，结束时由 StorageRouter 统一持久化。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from ..common.config import config
from ..common.exceptions import SinkWriteFailure
from ..common.logger import get_logger
from ..common.types import Record
from .dedup import deduplicate

logger = get_logger(__name__)

# (rows, path) -> None，同步执行（在线程池中运行）
ChunkWriter = Callable[[list[Mapping[str, Any]], Path], Any]


@dataclass
class Chunk:
    """一个已关闭的分块"""

    number: int
    first_page: int
    last_page: int
    records: list[Record] = field(default_factory=list)
    path: Path | None = None


class ChunkedSink:
    """按页数阈值分块的记录缓冲区"""

    def __init__(
        self,
        output_dir: str | Path,
        base_name: str,
        writer: ChunkWriter | None = None,
        threshold: int | None = None,
        flush_timeout: float | None = None,
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        self.writer = writer
        self.threshold = threshold if threshold is not None else config.storage.chunk_page_threshold
        self.flush_timeout = flush_timeout if flush_timeout is not None else config.storage.flush_timeout_s
        if self.threshold < 1:
            raise ValueError(f"分块阈值必须 >= 1: {self.threshold}")
        if self.flush_timeout <= 0:
            raise ValueError(f"写入超时必须 > 0: {self.flush_timeout}")

        self._records: list[Record] = []
        self._open_records: list[Record] = []
        self._open_first_page: int | None = None
        self._open_last_page: int | None = None
        self._pages_in_chunk = 0

        self.chunks: list[Chunk] = []
        self.failures: list[SinkWriteFailure] = []

    # ---------------------------------------------------------------- 累积

    def append(self, records: list[Record]) -> None:
        self._records.extend(records)
        self._open_records.extend(records)

    async def on_page_boundary(self, page_index: int) -> Chunk | None:
        """一页处理完毕；达到阈值时关闭并写出当前分块"""
        if self._open_first_page is None:
            self._open_first_page = page_index
        self._open_last_page = page_index
        self._pages_in_chunk += 1

        if self._pages_in_chunk >= self.threshold:
            return await self._flush()
        return None

    async def finalize(self) -> list[str]:
        """写出剩余的非空分块，返回全部分块文件路径"""
        if self._open_records:
            await self._flush()
        else:
            self._reset_open()
        return self.chunk_files

    # ---------------------------------------------------------------- 状态

    @property
    def records(self) -> list[Record]:
        """本次 Session 的全部记录（未去重）"""
        return list(self._records)

    @property
    def chunk_files(self) -> list[str]:
        return [str(c.path) for c in self.chunks if c.path is not None]

    def chunk_path(self, number: int) -> Path:
        return self.output_dir / f"{self.base_name}_chunk_{number}.xlsx"

    # ---------------------------------------------------------------- 内部

    def _reset_open(self) -> None:
        self._open_records = []
        self._open_first_page = None
        self._open_last_page = None
        self._pages_in_chunk = 0

    async def _flush(self) -> Chunk | None:
        if not self._open_records:
            # 空分块不占用编号
            logger.debug(
                f"[ChunkedSink] 第 {self._open_first_page}-{self._open_last_page} 页没有记录，跳过分块"
            )
            self._reset_open()
            return None

        chunk = Chunk(
            number=len(self.chunks) + 1,
            first_page=self._open_first_page or 0,
            last_page=self._open_last_page or 0,
            records=deduplicate(self._open_records),
        )
        self.chunks.append(chunk)
        self._reset_open()

        if self.writer is None:
            return chunk

        try:
            chunk.path = await self._write_chunk(chunk)
            logger.info(
                f"[ChunkedSink] ✓ 分块 {chunk.number} 已保存: {chunk.path} "
                f"(第 {chunk.first_page}-{chunk.last_page} 页, {len(chunk.records)} 条)"
            )
        except SinkWriteFailure as e:
            self.failures.append(e)
            logger.error(f"[ChunkedSink] {e}")
        return chunk

    async def _write_chunk(self, chunk: Chunk) -> Path:
        path = self.chunk_path(chunk.number)
        rows = [record.payload for record in chunk.records]
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.writer, rows, path),
                timeout=self.flush_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SinkWriteFailure(f"chunk_{chunk.number}", f"写入超时 ({self.flush_timeout:g} 秒)") from e
        except Exception as e:
            raise SinkWriteFailure(f"chunk_{chunk.number}", str(e)) from e
        return path
