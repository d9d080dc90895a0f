"""记录去重、分块与持久化"""

from .chunked_sink import Chunk, ChunkedSink
from .dedup import dedup_key, deduplicate, record_key
from .router import PersistReport, StorageRouter
from .sinks import ExcelSink, JsonSink, RecordSink, RedisSink, SinkBatch, write_excel
from .thread_formatter import format_threads

__all__ = [
    "Chunk",
    "ChunkedSink",
    "dedup_key",
    "deduplicate",
    "record_key",
    "PersistReport",
    "StorageRouter",
    "RecordSink",
    "JsonSink",
    "ExcelSink",
    "RedisSink",
    "SinkBatch",
    "write_excel",
    "format_threads",
]
