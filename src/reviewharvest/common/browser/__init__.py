"""浏览器模块"""

from .session import BrowserSession

__all__ = ["BrowserSession"]
