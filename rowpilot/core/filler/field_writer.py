"""
字段写入器

模拟完整的用户交互行为，确保宿主绑定在焦点/输入事件上的业务逻辑被触发。

写入方式（按 FieldSpec.widget 与元素当前状态）:
1. checkbox: 当前状态与目标不同时才 focus -> click -> blur
2. calculated 且只读: 只触发 focus -> blur，让宿主重算
3. 隐藏/不可见: 直接写值，仍补发 focus/blur
4. smartbox: 屏蔽内联事件写值，再补发 focus/blur
5. 其他: focus -> 写值(input/change) -> blur，可选逐字符输入
"""

from typing import Any, Optional

from rowpilot.config import FillerConfig, filler_config
from rowpilot.core.extraction.normalizer import format_scalar
from rowpilot.domain.interfaces.host_page import IHostPage
from rowpilot.domain.schema import FieldSpec
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)


def is_blank(value: Any) -> bool:
    """None 或纯空白字符串不写入，绝不通过写空值来清空字段"""
    return value is None or (isinstance(value, str) and not value.strip())


def format_for_dom(value: Any) -> str:
    """写入 DOM 的文本: 整数值的浮点数不带 .0"""
    return format_scalar(value).strip()


class FieldWriter:
    """
    单字段写入

    用法:
        writer = FieldWriter(host)
        writer.write(spec, 'qnty_total3', 12.0, row_index=3)   # 写入 '12'
    """

    def __init__(self, host: IHostPage, config: Optional[FillerConfig] = None):
        self.host = host
        self.config = config or filler_config

    def write(self, spec: FieldSpec, dom_name: str, value: Any, row_index: int) -> bool:
        """
        写入一个字段

        Args:
            spec: 字段定义
            dom_name: 已解析的 DOM name
            value: 已按类型转换的值
            row_index: 行号（准备钩子使用）

        Returns:
            是否执行了写入（元素不存在返回 False）
        """
        if spec.prepare:
            self.host.prepare_field(spec.prepare, row_index)

        state = self.host.describe_field(dom_name)
        if not state.exists:
            logger.debug(f"字段 {dom_name} 不存在，跳过")
            return False

        if spec.widget == 'checkbox' or state.input_type == 'checkbox':
            desired = bool(value)
            if bool(state.checked) != desired:
                return self.host.toggle_field(dom_name)
            return True

        if spec.widget == 'calculated' and state.readonly:
            return self.host.touch_field(dom_name)

        text = format_for_dom(value)

        if state.is_hidden:
            return self.host.commit_value(dom_name, text)

        if spec.widget == 'smartbox':
            return self.host.commit_value(dom_name, text, suppress_inline=True)

        return self.host.commit_value(dom_name, text, typing=self.config.typing_animation)
