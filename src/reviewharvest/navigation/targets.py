"""目标页判定与搜索 URL"""

from __future__ import annotations

from urllib.parse import quote, urlparse

PRODUCT_HOSTS = ("smartstore.naver.com", "brand.naver.com")
PRODUCT_PATH_MARKER = "/products/"

SEARCH_URL_TEMPLATE = (
    "https://search.naver.com/search.naver?where=nexearch&sm=top_hty&fbm=0"
    "&ie=utf8&query={query}&ackey=ayy89dsf"
)


def is_product_page(url: str | None) -> bool:
    """商品页判定：商店域名 + ``/products/`` 路径"""
    if not url:
        return False
    return any(host in url for host in PRODUCT_HOSTS) and PRODUCT_PATH_MARKER in url


def build_search_url(query: str) -> str:
    """构建站内搜索 URL"""
    return SEARCH_URL_TEMPLATE.format(query=quote(query.strip(), safe=""))


def base_url(url: str) -> str:
    """去掉查询参数与锚点的 URL（origin + path）"""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return url.split("?", 1)[0].split("#", 1)[0]
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
