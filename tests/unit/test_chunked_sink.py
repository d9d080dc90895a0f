"""分块落盘单元测试"""

import time

import pandas as pd
import pytest
from reviewharvest.common.constants import CollectionMode
from reviewharvest.common.types import Record
from reviewharvest.storage import ChunkedSink, write_excel


def _record(page, i=0, **extra):
    payload = {
        "Reviewer Name": f"user{page}-{i}",
        "Review Date": "25.10.30.",
        "Review Score": "5",
        "Content": f"content {page}-{i}",
    }
    payload.update(extra)
    return Record.for_mode(CollectionMode.PRIMARY, payload, page)


class RecordingWriter:
    def __init__(self, fail_numbers=()):
        self.calls = []
        self.fail_numbers = set(fail_numbers)

    def __call__(self, rows, path):
        self.calls.append((len(rows), path.name))
        if any(path.name.endswith(f"_chunk_{n}.xlsx") for n in self.fail_numbers):
            raise OSError("disk full")


async def _run_pages(sink, pages, records_for):
    for page in pages:
        sink.append(records_for(page))
        await sink.on_page_boundary(page)


class TestChunkBoundaries:
    """分块边界测试"""

    @pytest.mark.asyncio
    async def test_130_pages_threshold_50(self, temp_output_dir):
        """测试 130 页、阈值 50 时生成 3 个分块"""
        writer = RecordingWriter()
        sink = ChunkedSink(temp_output_dir, "reviews", writer=writer, threshold=50)

        await _run_pages(sink, range(1, 131), lambda p: [_record(p)])
        files = await sink.finalize()

        assert [(c.number, c.first_page, c.last_page) for c in sink.chunks] == [
            (1, 1, 50),
            (2, 51, 100),
            (3, 101, 130),
        ]
        assert [len(c.records) for c in sink.chunks] == [50, 50, 30]
        assert files == [str(temp_output_dir / f"reviews_chunk_{n}.xlsx") for n in (1, 2, 3)]
        assert writer.calls == [
            (50, "reviews_chunk_1.xlsx"),
            (50, "reviews_chunk_2.xlsx"),
            (30, "reviews_chunk_3.xlsx"),
        ]
        assert len(sink.records) == 130

    @pytest.mark.asyncio
    async def test_empty_chunks_skip_numbers(self, temp_output_dir):
        """测试空分块不占用编号"""
        writer = RecordingWriter()
        sink = ChunkedSink(temp_output_dir, "reviews", writer=writer, threshold=5)

        await _run_pages(sink, range(1, 11), lambda p: [] if p <= 5 else [_record(p)])
        await sink.finalize()

        assert [(c.number, c.first_page, c.last_page) for c in sink.chunks] == [(1, 6, 10)]
        assert writer.calls == [(5, "reviews_chunk_1.xlsx")]

    @pytest.mark.asyncio
    async def test_finalize_without_records(self, temp_output_dir):
        """测试没有记录时不写任何分块"""
        writer = RecordingWriter()
        sink = ChunkedSink(temp_output_dir, "reviews", writer=writer, threshold=5)
        await _run_pages(sink, range(1, 3), lambda p: [])
        assert await sink.finalize() == []
        assert writer.calls == []

    @pytest.mark.asyncio
    async def test_duplicates_within_chunk(self, temp_output_dir):
        """测试分块内去重"""
        sink = ChunkedSink(temp_output_dir, "reviews", threshold=2)
        await _run_pages(sink, [1, 2], lambda p: [_record(1), _record(1), _record(p, 1)])
        chunk = sink.chunks[0]
        assert len(chunk.records) == 3
        assert chunk.path is None
        assert len(sink.records) == 6

    def test_invalid_threshold(self, temp_output_dir):
        with pytest.raises(ValueError):
            ChunkedSink(temp_output_dir, "reviews", threshold=-1)

    def test_zero_threshold_rejected(self, temp_output_dir):
        """测试显式传入 0 不会被当作未设置"""
        with pytest.raises(ValueError):
            ChunkedSink(temp_output_dir, "reviews", threshold=0)

    def test_zero_flush_timeout_rejected(self, temp_output_dir):
        """测试写入超时必须为正数"""
        with pytest.raises(ValueError):
            ChunkedSink(temp_output_dir, "reviews", threshold=1, flush_timeout=0)

    def test_explicit_values_kept(self, temp_output_dir):
        sink = ChunkedSink(temp_output_dir, "reviews", threshold=1, flush_timeout=0.5)
        assert sink.threshold == 1
        assert sink.flush_timeout == 0.5


class TestChunkFailures:
    """分块写入失败测试"""

    @pytest.mark.asyncio
    async def test_writer_failure_keeps_number(self, temp_output_dir):
        """测试写入失败的分块保留编号，后续分块继续写入"""
        writer = RecordingWriter(fail_numbers={1})
        sink = ChunkedSink(temp_output_dir, "reviews", writer=writer, threshold=2)

        await _run_pages(sink, range(1, 5), lambda p: [_record(p)])
        files = await sink.finalize()

        assert [c.number for c in sink.chunks] == [1, 2]
        assert sink.chunks[0].path is None
        assert files == [str(temp_output_dir / "reviews_chunk_2.xlsx")]
        assert len(sink.failures) == 1
        assert sink.failures[0].sink == "chunk_1"
        assert "disk full" in sink.failures[0].reason

    @pytest.mark.asyncio
    async def test_writer_timeout(self, temp_output_dir):
        """测试写入超时"""

        def slow_writer(rows, path):
            time.sleep(0.2)

        sink = ChunkedSink(temp_output_dir, "reviews", writer=slow_writer, threshold=1, flush_timeout=0.01)
        await _run_pages(sink, [1], lambda p: [_record(p)])

        assert sink.chunks[0].path is None
        assert "超时" in sink.failures[0].reason


class TestExcelChunk:
    """真实 Excel 分块测试"""

    @pytest.mark.asyncio
    async def test_written_chunk_readable(self, temp_output_dir):
        """测试分块文件可被 pandas 读回"""
        sink = ChunkedSink(temp_output_dir, "reviews", writer=write_excel, threshold=2)
        photos = ["https://img/review_page1_1_photo_1.jpg", "https://img/b.jpg"]

        await _run_pages(sink, [1, 2], lambda p: [_record(p, Photos=photos)])

        df = pd.read_excel(temp_output_dir / "reviews_chunk_1.xlsx", sheet_name="Reviews")
        assert len(df) == 2
        assert list(df.columns) == ["Reviewer Name", "Review Date", "Review Score", "Content", "Photos"]
        assert df.loc[0, "Photos"] == ", ".join(photos)
