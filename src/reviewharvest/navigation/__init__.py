"""到达检测与商品页准备"""

from .navigator import SessionNavigator
from .page_ready import wait_for_page_ready
from .tab_actions import open_section
from .targets import base_url, build_search_url, is_product_page

__all__ = [
    "SessionNavigator",
    "wait_for_page_ready",
    "open_section",
    "base_url",
    "build_search_url",
    "is_product_page",
]
