"""核心数据类型单元测试"""

from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError
from reviewharvest.common.constants import CollectionMode, TerminalState
from reviewharvest.common.exceptions import TabOwnershipError
from reviewharvest.common.progress import (
    CallbackProgressChannel,
    LoggingProgressChannel,
    MemoryProgressChannel,
)
from reviewharvest.common.types import PageCursor, Record, Result, Session, TabSlot
from reviewharvest.common.utils.paths import create_session_dir, session_dir_name


class TestPageCursor:
    """页码游标测试"""

    def test_move_forward(self):
        """测试前进"""
        cursor = PageCursor(budget=5)
        cursor.move_to(2)
        cursor.move_to(2)
        assert cursor.current == 2

    def test_cannot_move_backward(self):
        """测试不能回退"""
        cursor = PageCursor(current=3)
        with pytest.raises(ValueError):
            cursor.move_to(2)

    def test_cannot_exceed_budget(self):
        """测试不能超过页数上限"""
        cursor = PageCursor(budget=3)
        with pytest.raises(ValueError):
            cursor.move_to(4)

    def test_budget_reached(self):
        """测试到达上限判定"""
        cursor = PageCursor(budget=2)
        assert not cursor.budget_reached
        cursor.move_to(2)
        assert cursor.budget_reached
        assert not PageCursor().budget_reached

    def test_block_index(self):
        """测试块序号"""
        assert PageCursor(current=10).block_index == 0
        assert PageCursor(current=11).block_index == 1

    def test_invalid_start(self):
        """测试非法起始页"""
        with pytest.raises(ValueError):
            PageCursor(current=0)
        with pytest.raises(ValueError):
            PageCursor(current=3, budget=2)


class TestTabSlot:
    """标签页所有权测试"""

    def test_claim_by_owner(self):
        """测试持有者取回标签页"""
        slot = TabSlot()
        tab = object()
        slot.hand_off(tab, "navigator")
        assert slot.claim("navigator") is tab

    def test_claim_by_other_raises(self):
        """测试非持有者取回抛出异常"""
        slot = TabSlot()
        slot.hand_off(object(), "navigator")
        with pytest.raises(TabOwnershipError):
            slot.claim("extraction")

    def test_transfer(self):
        """测试所有权转移后原持有者失效"""
        slot = TabSlot()
        tab = object()
        slot.hand_off(tab, "navigator")
        assert slot.transfer("navigator", "extraction") is tab
        assert slot.owner == "extraction"
        with pytest.raises(TabOwnershipError):
            slot.claim("navigator")

    def test_release(self):
        """测试释放"""
        slot = TabSlot()
        slot.hand_off(object(), "extraction")
        slot.release("extraction")
        assert slot.owner is None
        with pytest.raises(TabOwnershipError):
            slot.claim("extraction")


class TestRecord:
    """记录测试"""

    def test_for_mode_sets_identity_fields(self):
        """测试按模式设置身份字段"""
        record = Record.for_mode(CollectionMode.THREAD, {"author": "a"}, page_index=2)
        assert record.identity_fields == ("author", "date", "title", "question")
        assert record.page_index == 2
        assert record.get("author") == "a"
        assert record.get("missing", "x") == "x"


class TestSession:
    """Session 测试"""

    def test_url_target(self, tmp_path):
        """测试 URL 目标判定"""
        session = Session(target="https://smartstore.naver.com/a/products/1", output_dir=tmp_path)
        assert session.is_url_target
        assert session.identity_fields[0] == "Reviewer Name"

    def test_keyword_target(self, tmp_path):
        """测试关键词目标"""
        session = Session(target="무선 이어폰", output_dir=tmp_path)
        assert not session.is_url_target

    def test_invalid_budget(self, tmp_path):
        """测试非法页数上限"""
        with pytest.raises(ValidationError):
            Session(target="x", page_budget=0, output_dir=tmp_path)

    def test_frozen(self, tmp_path):
        """测试输出目录不可变"""
        session = Session(target="x", output_dir=tmp_path)
        with pytest.raises(ValidationError):
            session.output_dir = Path("/other")


class TestResult:
    """结果格式测试"""

    def test_success_dict(self):
        """测试成功结果格式"""
        result = Result(
            success=True,
            record_count=24,
            output_location="/out",
            terminal_state=TerminalState.PAGINATION_EXHAUSTED,
        )
        assert result.to_dict() == {"success": True, "recordCount": 24, "outputLocation": "/out"}

    def test_failure_dict(self):
        """测试失败结果格式"""
        assert Result.failure("timeout").to_dict() == {"success": False, "error": "timeout"}


class TestSessionDir:
    """输出目录测试"""

    def test_name_format(self):
        """测试目录名格式"""
        name = session_dir_name(CollectionMode.PRIMARY, datetime(2025, 10, 30, 9, 5, 1))
        assert name.startswith("primary-item-collection_20251030_090501_")
        assert len(name.rsplit("_", 1)[1]) == 8

    def test_concurrent_sessions_distinct(self, tmp_path):
        """测试同一时刻创建的目录互不冲突"""
        now = datetime(2025, 10, 30, 9, 5, 1)
        first = create_session_dir(tmp_path, CollectionMode.THREAD, now)
        second = create_session_dir(tmp_path, CollectionMode.THREAD, now)
        assert first != second
        assert first.parent == tmp_path / "results"
        assert first.is_dir() and second.is_dir()


class TestProgressChannels:
    """进度通道测试"""

    def test_memory_lines_replace_previous(self):
        """测试覆盖式事件替换上一行"""
        channel = MemoryProgressChannel()
        channel.emit("等待中 3")
        channel.emit("等待中 2", replace_previous=True)
        channel.emit("完成", "success", replace_previous=True)
        channel.emit("下一步")
        assert channel.lines == ["完成", "下一步"]
        assert len(channel.events) == 4

    def test_callback_channel(self):
        """测试回调通道"""
        received = []
        channel = CallbackProgressChannel(lambda *args: received.append(args))
        channel.emit("hello", "warning", True)
        assert received == [("hello", "warning", True)]

    def test_failing_consumer_is_ignored(self):
        """测试消费方异常不影响发布方"""

        def boom(*_):
            raise RuntimeError("consumer down")

        CallbackProgressChannel(boom).emit("hello")

    def test_logging_channel_skips_repeated_replace(self):
        """测试日志通道忽略重复的覆盖式事件"""
        channel = LoggingProgressChannel()
        channel.emit("剩余 3 秒", replace_previous=True)
        assert channel._last_replaced == "剩余 3 秒"
        channel.emit("完成")
        assert channel._last_replaced is None
