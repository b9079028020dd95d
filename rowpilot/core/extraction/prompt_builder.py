"""
提示词生成

提示词完全由 Schema 派生: 只列出当前交易类型的有效字段及类型，
要求模型只返回裸 JSON 数组，并说明占位符/噪声处理与字符串长度上限。
"""

from typing import List, Optional

from rowpilot.config import extraction_config
from rowpilot.domain.schema import ExtractionSchemaView


def build_prompt(
    view: ExtractionSchemaView,
    transaction_type: Optional[str] = None,
    default_max_len: Optional[int] = None,
) -> str:
    """
    生成单张图片的提取提示词

    Args:
        view: Schema 提取视图
        transaction_type: 交易类型
        default_max_len: 未单独设置上限的字符串字段的默认上限

    Returns:
        提示词文本
    """
    if default_max_len is None:
        default_max_len = extraction_config.default_string_max_len

    grouped = view.fields_by_type(transaction_type)
    field_lines: List[str] = []
    field_lines += [f"- {spec.id}: string" for spec in grouped['string']]
    field_lines += [f"- {spec.id}: number" for spec in grouped['number']]
    field_lines += [f"- {spec.id}: number (1 if true else 0)" for spec in grouped['boolean']]

    limit_lines = [
        f"  - {field_id}: {limit}"
        for field_id, limit in sorted(view.max_lengths(transaction_type).items())
    ]

    return '\n'.join([
        'Task: Extract structured line items from the provided image(s).',
        'Output must be RAW JSON ONLY: an array of objects. No explanations, no comments.',
        'DO NOT wrap in Markdown or code fences. Do not use ```.',
        'Fields and types:',
        *field_lines,
        'Rules:',
        '- If a field is unavailable or looks like placeholder/noise (e.g., long runs of the same '
        'character such as "zzzzzz" or "-----"), use empty string "" for strings and null for numbers.',
        '- Normalize numbers: remove symbols and thousand separators; use dot as decimal.',
        '- Only include the listed fields. Do not add extra fields.',
        '- String length limits (truncate if longer):',
        *limit_lines,
        f"  - others: {default_max_len}",
        'Return ONLY the JSON array.',
    ])
