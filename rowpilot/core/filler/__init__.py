"""
Filler 模块

提供行建立与字段填充功能，包括：
- RowFillEngine: 批量建行+填充（主入口）
- FieldWriter: 按字段写入方式模拟用户交互

使用示例:
    from rowpilot.core.filler import RowFillEngine

    engine = RowFillEngine(host, get_schema().dom_view())
    rows = engine.fill_rows(records)
"""

from .field_writer import FieldWriter, format_for_dom, is_blank
from .row_fill_engine import RowFillEngine

__all__ = [
    'RowFillEngine',
    'FieldWriter',
    'format_for_dom',
    'is_blank',
]
