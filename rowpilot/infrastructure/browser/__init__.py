"""浏览器连接与宿主页面适配"""

from .browser_manager import BrowserManager
from .drission_host import DrissionHostPage

__all__ = ['BrowserManager', 'DrissionHostPage']
