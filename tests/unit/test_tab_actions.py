"""商品页区块操作单元测试"""

from unittest.mock import AsyncMock, patch

import pytest
from reviewharvest.common.constants import CollectionMode, SortOrder
from reviewharvest.common.types import ExclusionFlags
from reviewharvest.navigation import tab_actions
from reviewharvest.navigation.tab_actions import (
    CHECK_BOX_JS,
    CLICK_JS,
    CLICK_LINK_BY_TEXT_JS,
    IS_CURRENT_JS,
    open_section,
)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch.object(tab_actions.asyncio, "sleep", new=AsyncMock()):
        yield


def _tab(click=True, active=True, sort_clicked=True, box_clicked=True):
    tab = AsyncMock()

    async def evaluate(script, arg=None):
        if script == CLICK_JS:
            return click
        if script == IS_CURRENT_JS:
            return active
        if script == CLICK_LINK_BY_TEXT_JS:
            return sort_clicked
        if script == CHECK_BOX_JS:
            return box_clicked
        return None

    tab.evaluate = AsyncMock(side_effect=evaluate)
    return tab


def _scripts(tab):
    return [c.args[0] for c in tab.evaluate.await_args_list]


class TestOpenSection:
    """区块打开测试"""

    @pytest.mark.asyncio
    async def test_review_default_sort(self):
        """测试评论区块 + 默认排序不点击排序链接"""
        tab = _tab()
        assert await open_section(tab, CollectionMode.PRIMARY, SortOrder.RANKING)
        assert CLICK_LINK_BY_TEXT_JS not in _scripts(tab)
        click_call = [c for c in tab.evaluate.await_args_list if c.args[0] == CLICK_JS][0]
        assert click_call.args[1] == 'a[data-name="REVIEW"]'

    @pytest.mark.asyncio
    async def test_review_recent_sort(self):
        """测试最新排序"""
        tab = _tab()
        assert await open_section(tab, CollectionMode.PRIMARY, SortOrder.RECENT)
        sort_call = [c for c in tab.evaluate.await_args_list if c.args[0] == CLICK_LINK_BY_TEXT_JS][0]
        assert sort_call.args[1] == "최신순"

    @pytest.mark.asyncio
    async def test_qna_exclude_secret(self):
        """测试问答区块勾选排除秘密帖"""
        tab = _tab()
        assert await open_section(
            tab, CollectionMode.THREAD, exclusions=ExclusionFlags(exclude_secret=True)
        )
        scripts = _scripts(tab)
        assert CHECK_BOX_JS in scripts
        assert CLICK_LINK_BY_TEXT_JS not in scripts

    @pytest.mark.asyncio
    async def test_tab_not_found(self):
        """测试找不到区块标签"""
        tab = _tab(click=False)
        assert not await open_section(tab, CollectionMode.THREAD)

    @pytest.mark.asyncio
    async def test_tab_not_active(self):
        """测试区块标签未激活时不应用选项"""
        tab = _tab(active=False)
        assert not await open_section(tab, CollectionMode.PRIMARY, SortOrder.LOW_RATING)
        assert CLICK_LINK_BY_TEXT_JS not in _scripts(tab)

    @pytest.mark.asyncio
    async def test_sort_failure_does_not_fail(self):
        """测试排序失败不影响结果"""
        tab = _tab(sort_clicked=False)
        assert await open_section(tab, CollectionMode.PRIMARY, SortOrder.LOW_RATING)

    @pytest.mark.asyncio
    async def test_selector_wait_failure_tolerated(self):
        """测试等待标签超时后仍尝试点击"""
        tab = _tab()
        tab.wait_for_selector.side_effect = TimeoutError("timeout")
        assert await open_section(tab, CollectionMode.PRIMARY)

    @pytest.mark.asyncio
    async def test_never_raises(self):
        """测试页面异常时返回 False 而不是抛出"""
        tab = AsyncMock()
        tab.evaluate.side_effect = RuntimeError("Target closed")
        assert not await open_section(tab, CollectionMode.PRIMARY)
