"""配置单元测试"""

from reviewharvest.common.config import (
    Config,
    NavigationConfig,
    PaginationConfig,
    StorageConfig,
)


class TestConfigFromEnv:
    """环境变量配置测试"""

    def test_defaults(self, monkeypatch):
        """测试默认值"""
        for name in ("ARRIVAL_TIMEOUT_S", "CHUNK_PAGE_THRESHOLD", "BLOCK_SIZE", "REDIS_STORE_ENABLED"):
            monkeypatch.delenv(name, raising=False)
        cfg = Config()
        assert cfg.navigation.arrival_timeout_s == 120
        assert cfg.storage.chunk_page_threshold == 50
        assert cfg.pagination.block_size == 10
        assert cfg.storage.redis_enabled is False

    def test_env_override(self, monkeypatch):
        """测试环境变量覆盖"""
        monkeypatch.setenv("ARRIVAL_TIMEOUT_S", "30")
        monkeypatch.setenv("CHUNK_PAGE_THRESHOLD", "5")
        monkeypatch.setenv("REDIS_STORE_ENABLED", "TRUE")
        assert NavigationConfig().arrival_timeout_s == 30
        assert StorageConfig().chunk_page_threshold == 5
        assert StorageConfig().redis_enabled is True

    def test_delay_env(self, monkeypatch):
        """测试翻页延迟配置"""
        monkeypatch.setenv("PAGE_DELAY_MIN", "0.5")
        monkeypatch.setenv("PAGE_DELAY_MAX", "1.5")
        settings = PaginationConfig()
        assert settings.page_delay_min == 0.5
        assert settings.page_delay_max == 1.5
