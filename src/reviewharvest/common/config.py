"""配置管理"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# 加载 .env 文件
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class BrowserConfig(BaseModel):
    """浏览器配置"""

    headless: bool = Field(default_factory=lambda: _env_bool("HEADLESS", "false"))
    viewport_width: int = Field(default_factory=lambda: int(os.getenv("VIEWPORT_WIDTH", "1280")))
    viewport_height: int = Field(default_factory=lambda: int(os.getenv("VIEWPORT_HEIGHT", "900")))
    slow_mo: int = Field(default_factory=lambda: int(os.getenv("SLOW_MO", "0")))
    timeout_ms: int = Field(default_factory=lambda: int(os.getenv("STEP_TIMEOUT_MS", "30000")))
    # 使用本机安装的 Chrome/Edge（如 "chrome"、"msedge"），为空则使用 Playwright 自带 chromium
    channel: str | None = Field(default_factory=lambda: os.getenv("BROWSER_CHANNEL") or None)


class NavigationConfig(BaseModel):
    """到达检测配置"""

    # 等待到达目标页的最长时间（秒）
    arrival_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("ARRIVAL_TIMEOUT_S", "120"))
    )
    # 新标签页刚创建时 URL 为空白，延迟读取的等待时间（秒）
    new_tab_settle_s: float = Field(
        default_factory=lambda: float(os.getenv("NEW_TAB_SETTLE_S", "0.5"))
    )
    # 倒计时进度刷新间隔（秒）
    countdown_interval_s: float = Field(
        default_factory=lambda: float(os.getenv("COUNTDOWN_INTERVAL_S", "1.0"))
    )
    # 商品页正常渲染（含验证码等待）的最长时间（秒）
    page_ready_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("PAGE_READY_TIMEOUT_S", "60"))
    )
    page_ready_interval_s: float = 0.5


class PaginationConfig(BaseModel):
    """分页配置"""

    # 翻页后等待重新渲染的随机延迟区间（秒）
    page_delay_min: float = Field(default_factory=lambda: float(os.getenv("PAGE_DELAY_MIN", "2.0")))
    page_delay_max: float = Field(default_factory=lambda: float(os.getenv("PAGE_DELAY_MAX", "4.0")))
    # 块分页：每块页码数量
    block_size: int = Field(default_factory=lambda: int(os.getenv("BLOCK_SIZE", "10")))
    # 块跳转后整块页码重新渲染的等待时间（秒）
    block_jump_delay: float = Field(
        default_factory=lambda: float(os.getenv("BLOCK_JUMP_DELAY", "2.0"))
    )
    # 当前页指示器轮询次数与间隔
    verify_attempts: int = Field(default_factory=lambda: int(os.getenv("VERIFY_ATTEMPTS", "8")))
    verify_interval: float = Field(
        default_factory=lambda: float(os.getenv("VERIFY_INTERVAL", "0.8"))
    )
    # 页码点击校验失败后的最大重试次数
    max_click_retries: int = Field(
        default_factory=lambda: int(os.getenv("MAX_CLICK_RETRIES", "3"))
    )
    # 块跳转后等待新页码出现的轮询次数
    block_reveal_attempts: int = 3


class StorageConfig(BaseModel):
    """存储配置"""

    output_root: str = Field(default_factory=lambda: os.getenv("OUTPUT_ROOT", "output"))
    # 每处理多少页落盘一个 Excel 分块
    chunk_page_threshold: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_PAGE_THRESHOLD", "50"))
    )
    json_enabled: bool = Field(default_factory=lambda: _env_bool("JSON_ENABLED", "true"))
    excel_enabled: bool = Field(default_factory=lambda: _env_bool("EXCEL_ENABLED", "true"))
    redis_enabled: bool = Field(default_factory=lambda: _env_bool("REDIS_STORE_ENABLED", "false"))
    # 单次分块写入的超时时间（秒）
    flush_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("FLUSH_TIMEOUT_S", "60"))
    )


class RedisConfig(BaseModel):
    """Redis 配置（远程文档存储）

    每个 Session 的记录以 Hash 形式写入 ``{key_prefix}:{base_name}:data``，
    field 为去重键的 sha256 前 16 位，重复写入自动忽略。
    """

    host: str = Field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = Field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    password: str | None = Field(default_factory=lambda: os.getenv("REDIS_PASSWORD") or None)
    db: int = Field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    key_prefix: str = Field(default_factory=lambda: os.getenv("REDIS_KEY_PREFIX", "reviewharvest"))
    connect_timeout_s: float = 2.0


class Config(BaseModel):
    """全局配置"""

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)

    @classmethod
    def load(cls) -> "Config":
        """加载配置"""
        return cls()


# 全局配置实例
config = Config.load()
