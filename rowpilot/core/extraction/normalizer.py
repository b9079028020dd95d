"""
行项目规范化与清洗

规范化（按 Schema 类型强制转换）:
- string: 去首尾空白、合并连续空白；日期分量按固定宽度补零
- number: 去千分位/货币符号/单位字母后解析，无法解析为 None（不是 0，也不省略）
- boolean: 肯定词 -> True，否则按数值 > 0 判断，再否则 False

清洗（只作用于字符串字段）:
- 噪声串（>=10 个连续相同字符，或 >=20 长且单一字符占比 >=80%）-> ""
- 其余 >=5 个连续相同字符压缩为 3 个
- 按字段上限（默认 120）截断
"""

import math
import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from rowpilot.config import extraction_config
from rowpilot.domain.entities.row_models import RowRecord
from rowpilot.domain.schema import ExtractionSchemaView

_WHITESPACE_RE = re.compile(r'\s+')
_ZERO_WIDTH_RE = re.compile(r'[\u200B-\u200D\uFEFF]')
_CURRENCY_RE = re.compile(r'[$\u00A2-\u00A5\u20A0-\u20CF]')
_UNIT_RE = re.compile(r'[A-Za-z%]+')
_LEADING_NUMBER_RE = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)')
_LONG_RUN_RE = re.compile(r'(.)\1{9,}')
_REPEAT_RE = re.compile(r'(.)\1{4,}')

TRUE_TOKENS = frozenset({'y', 'yes', 'true', 't', '1', 'gst', 'incl', 'included'})


# ============================================================
# 标量转换
# ============================================================

def format_scalar(value: Any) -> str:
    """标量转文本: 整数值的浮点数不带 .0，布尔为小写"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def normalize_number(value: Any) -> Optional[float]:
    """
    数值规范化

    '$1,234.50' -> 1234.5; 'abc' -> None; 42 -> 42
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None

    text = _WHITESPACE_RE.sub('', str(value)).replace(',', '')
    text = _CURRENCY_RE.sub('', text)
    text = _UNIT_RE.sub('', text)
    match = _LEADING_NUMBER_RE.match(text)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def coerce_boolean(value: Any) -> bool:
    """布尔规范化"""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        if value.strip().lower() in TRUE_TOKENS:
            return True
        number = normalize_number(value)
        return number is not None and number > 0
    return False


def normalize_string(value: Any, pad_width: Optional[int] = None) -> str:
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        value = ' '.join(format_scalar(v) for v in value)
    text = _WHITESPACE_RE.sub(' ', format_scalar(value)).strip()
    if pad_width and text:
        text = text.rjust(pad_width, '0')
    return text


# ============================================================
# 噪声检测与截断
# ============================================================

def is_noise_string(value: str) -> bool:
    """占位符/噪声串检测"""
    text = str(value or '')
    if not text:
        return False
    if len(text) >= 10 and _LONG_RUN_RE.search(text):
        return True
    if len(text) >= 20:
        _, top = Counter(text).most_common(1)[0]
        if top / len(text) >= 0.8:
            return True
    return False


def clean_and_clamp(
    value: Any,
    max_len: Optional[int] = None,
    default_max_len: Optional[int] = None,
) -> str:
    """
    清洗单个字符串

    噪声判断在压缩重复字符之前进行，否则长串会被压成 3 个字符而漏判。
    """
    text = _ZERO_WIDTH_RE.sub('', format_scalar(value))
    text = _WHITESPACE_RE.sub(' ', text).strip()
    if is_noise_string(text):
        return ''
    text = _REPEAT_RE.sub(r'\1\1\1', text)
    if max_len and max_len > 0:
        cap = max_len
    else:
        cap = default_max_len or extraction_config.default_string_max_len
    return text[:cap]


# ============================================================
# 批量处理
# ============================================================

def normalize_items(
    items: Iterable[Dict[str, Any]],
    view: ExtractionSchemaView,
    transaction_type: Optional[str] = None,
) -> List[RowRecord]:
    """
    按 Schema 类型规范化行项目

    输出只包含当前交易类型的字段，缺失的字符串为 ""，缺失的数值为 None。
    """
    grouped = view.fields_by_type(transaction_type)
    records: List[RowRecord] = []

    for raw in items or []:
        raw = raw if isinstance(raw, dict) else {}
        record: RowRecord = {}
        for spec in grouped['string']:
            record[spec.id] = normalize_string(raw.get(spec.id), spec.pad_width)
        for spec in grouped['number']:
            record[spec.id] = normalize_number(raw.get(spec.id))
        for spec in grouped['boolean']:
            record[spec.id] = coerce_boolean(raw.get(spec.id))
        records.append(record)

    return records


def sanitize_items(
    records: Iterable[RowRecord],
    view: ExtractionSchemaView,
    transaction_type: Optional[str] = None,
    default_max_len: Optional[int] = None,
) -> List[RowRecord]:
    """
    清洗字符串字段: 噪声置空、压缩重复字符、按上限截断

    未声明 maxLen 的字段使用 default_max_len，与提示词中告知模型的上限一致。
    """
    string_fields = view.fields_by_type(transaction_type)['string']
    limits = view.max_lengths(transaction_type)

    sanitized: List[RowRecord] = []
    for record in records or []:
        out = dict(record)
        for spec in string_fields:
            out[spec.id] = clean_and_clamp(out.get(spec.id), limits.get(spec.id), default_max_len)
        sanitized.append(out)
    return sanitized
