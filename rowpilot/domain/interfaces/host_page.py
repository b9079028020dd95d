"""
宿主网页接口

定义填充引擎与宿主页面之间的抽象契约。
引擎只依赖此协议，具体实现见 infrastructure.browser.drission_host。
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol


@dataclass
class FieldState:
    """输入元素当前状态快照"""
    exists: bool = False
    visible: bool = False
    readonly: bool = False
    input_type: str = 'text'
    checked: Optional[bool] = None

    @property
    def is_hidden(self) -> bool:
        return not self.visible or self.input_type == 'hidden'


class IHostPage(Protocol):
    """
    宿主页面接口

    职责:
    - 提供行号查询、建行、行可见性判断
    - 提供 DOM 变动观测（计数 + 距最后变动的毫秒数）
    - 按用户交互方式写入字段
    - 驱动商品搜索子系统
    - 报告宿主弹出的阻断式对话框
    """

    def current_row_index(self) -> Optional[int]:
        """当前最大行号（优先读取宿主计数器）"""
        ...

    def is_row_ready(self, row_index: int) -> bool:
        """计数器已达到 row_index，或对应行元素已可见"""
        ...

    def click_add_row(self) -> bool:
        """点击建行控件，控件不存在时返回 False"""
        ...

    def begin_watch(self) -> None:
        """开始观测行容器的 DOM 变动"""
        ...

    def end_watch(self) -> None:
        """停止观测"""
        ...

    def ms_since_last_mutation(self) -> float:
        ...

    def describe_field(self, name: str) -> FieldState:
        ...

    def commit_value(self, name: str, value: Any, typing: bool = False, suppress_inline: bool = False) -> bool:
        """focus -> 写值(input/change) -> blur"""
        ...

    def touch_field(self, name: str) -> bool:
        """只触发 focus -> blur（用于只读/计算字段）"""
        ...

    def toggle_field(self, name: str) -> bool:
        """focus -> click -> blur（用于复选框）"""
        ...

    def prepare_field(self, kind: str, row_index: int) -> None:
        """执行宿主准备钩子（price / uom）"""
        ...

    def after_row_filled(self) -> None:
        """整行写完后的宿主收尾（如小数位修正）"""
        ...

    def search_stock(self, code: str, row_index: int, is_aborted: Callable[[], bool]) -> Optional[str]:
        """
        商品搜索

        Returns:
            选中项文本；明确无结果时返回 None

        Raises:
            StockSearchTimeout: 超时
        """
        ...

    def poll_dialog(self) -> Optional[str]:
        """宿主当前弹出的阻断式对话框文本，无则 None"""
        ...
