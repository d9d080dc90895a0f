"""存储路由

Session 结束时对全量记录去重，再依次写入所有启用的 sink。
每个 sink 的失败相互隔离，不影响其它 sink 与已落盘的分块。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..common.config import Config, config as default_config
from ..common.constants import BASE_NAMES, CollectionMode
from ..common.exceptions import SinkWriteFailure
from ..common.logger import get_logger
from ..common.types import Record
from .dedup import deduplicate
from .sinks import ExcelSink, JsonSink, RecordSink, RedisSink, SinkBatch
from .thread_formatter import format_threads

logger = get_logger(__name__)


@dataclass
class PersistReport:
    """持久化结果"""

    record_count: int = 0
    artifacts: list[str] = field(default_factory=list)
    # sink 名称 -> 失败原因
    failures: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class StorageRouter:
    """把去重后的全量记录分发到各个 sink"""

    def __init__(self, output_dir: str | Path, sinks: list[RecordSink]):
        self.output_dir = Path(output_dir)
        self.sinks = sinks

    @classmethod
    def from_config(cls, output_dir: str | Path, cfg: Config | None = None) -> "StorageRouter":
        """按配置开关创建 sink 列表"""
        cfg = cfg or default_config
        sinks: list[RecordSink] = []
        if cfg.storage.json_enabled:
            sinks.append(JsonSink(output_dir))
        if cfg.storage.excel_enabled:
            sinks.append(ExcelSink(output_dir))
        if cfg.storage.redis_enabled:
            sinks.append(RedisSink(cfg.redis))
        return cls(output_dir, sinks)

    async def persist(
        self,
        records: list[Record],
        mode: CollectionMode,
        tabular_covered: bool = False,
        base_name: str | None = None,
    ) -> PersistReport:
        """去重并写入所有 sink

        Args:
            records: 本次 Session 的全部记录
            mode: 采集模式
            tabular_covered: 表格产物已由分块覆盖（此时跳过整体 Excel）
            base_name: 产物基础文件名，默认按模式选择
        """
        mode = CollectionMode(mode)
        unique = deduplicate(records)
        logger.info(f"[Storage] 去重: {len(records)} -> {len(unique)} 条")

        if mode == CollectionMode.THREAD:
            items = format_threads(r.payload for r in unique)
        else:
            items = [dict(r.payload) for r in unique]

        batch = SinkBatch(
            records=unique,
            items=items,
            base_name=base_name or BASE_NAMES[mode],
            mode=mode,
        )
        report = PersistReport(record_count=len(unique))

        for sink in self.sinks:
            if sink.tabular and tabular_covered:
                report.skipped.append(sink.name)
                continue
            try:
                location = await sink.write(batch)
                if location:
                    report.artifacts.append(location)
            except SinkWriteFailure as e:
                report.failures[sink.name] = e.reason
                logger.error(f"[Storage] {e}")
            except Exception as e:
                report.failures[sink.name] = str(e)
                logger.exception(f"[Storage] [{sink.name}] 写入异常: {e}")
            finally:
                await sink.close()

        return report
