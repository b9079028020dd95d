"""
浏览器管理器 - 基础设施层实现

封装 DrissionPage 的浏览器连接和标签页选择。
宿主页面必须是一个已开启远程调试端口的 Chromium 浏览器中的标签页。
"""

from typing import Any, Dict, List, Optional

from DrissionPage import ChromiumPage

from rowpilot.domain.errors import BrowserConnectionError
from rowpilot.utils.logger import get_logger
from rowpilot.utils.port_check import PortChecker, split_addr

logger = get_logger(__name__)


class BrowserManager:
    """
    浏览器管理器

    职责:
    - 探测调试端口并连接浏览器
    - 列出/选择宿主标签页
    """

    def __init__(self, addr: str = '127.0.0.1:9222'):
        """
        Args:
            addr: 浏览器调试地址 host:port
        """
        self.addr = addr
        self.page: Optional[ChromiumPage] = None

    def connect(self) -> ChromiumPage:
        """
        连接浏览器

        Returns:
            ChromiumPage 对象

        Raises:
            BrowserConnectionError: 地址格式错误或端口未开启
        """
        try:
            host, port = split_addr(self.addr)
        except ValueError as e:
            raise BrowserConnectionError(f"浏览器地址格式错误: {self.addr}") from e

        if not PortChecker.is_port_open(port, host):
            raise BrowserConnectionError(
                f"无法连接到 {self.addr}。请确保浏览器已使用 --remote-debugging-port={port} 启动。"
            )

        self.page = ChromiumPage(addr_or_opts=self.addr)
        logger.info(f"🌐 已连接浏览器 {self.addr}")
        return self.page

    def is_connected(self) -> bool:
        """检查是否已连接"""
        return self.page is not None

    def get_tabs(self) -> List[Dict[str, Any]]:
        """
        获取所有打开的标签页

        Returns:
            标签页信息列表 [{id, title, url}]
        """
        if not self.page:
            self.connect()

        tabs = []
        for tab_id in self.page.tab_ids:
            try:
                tab = self.page.get_tab(tab_id)
            except Exception as e:
                logger.debug(f"读取标签页 {tab_id} 失败: {e}")
                continue
            tabs.append({
                "id": tab_id,
                "title": tab.title or "无标题",
                "url": tab.url,
            })
        return tabs

    def get_host_tab(self, url_keyword: Optional[str] = None) -> Any:
        """
        获取宿主标签页

        Args:
            url_keyword: URL 关键字，None 时返回当前活动标签页

        Raises:
            BrowserConnectionError: 未找到匹配的标签页
        """
        if not self.page:
            self.connect()

        if not url_keyword:
            return self.page.latest_tab

        for info in self.get_tabs():
            if url_keyword in (info["url"] or ""):
                return self.page.get_tab(info["id"])
        raise BrowserConnectionError(f"未找到 URL 包含 '{url_keyword}' 的标签页")
