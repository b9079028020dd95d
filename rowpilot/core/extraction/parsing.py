"""
模型输出解析

模型输出是自由文本，期望包含一个 JSON 数组（可能带代码围栏）。
解析顺序:
1. 去掉代码围栏和 NUL 字符
2. 直接 JSON 解析
3. 失败则截取第一个 '[' 到最后一个 ']' 之间的片段再解析
4. 仍失败返回空列表（不抛异常）
"""

import json
import re
from typing import Any, Dict, List

_FENCE_RE = re.compile(r'```(?:json)?', re.IGNORECASE)


def strip_fences(text: str) -> str:
    """去掉 ```json / ``` 围栏与 NUL 字符"""
    cleaned = str(text or '').replace('\u0000', '')
    return _FENCE_RE.sub('', cleaned).strip()


def _as_item_list(parsed: Any) -> List[Dict[str, Any]]:
    """顶层为对象时包装成单元素列表，数组中的非对象元素丢弃"""
    if isinstance(parsed, dict):
        return [parsed]
    if isinstance(parsed, list):
        return [item for item in parsed if isinstance(item, dict)]
    return []


def extract_json_items(text: str) -> List[Dict[str, Any]]:
    """
    从模型输出中提取行项目（未规范化）

    Args:
        text: 模型原始输出

    Returns:
        字典列表；无法解析时为空列表
    """
    if not text:
        return []

    cleaned = strip_fences(text)
    try:
        return _as_item_list(json.loads(cleaned))
    except ValueError:
        pass

    start = cleaned.find('[')
    end = cleaned.rfind(']')
    if start != -1 and end > start:
        try:
            return _as_item_list(json.loads(cleaned[start:end + 1]))
        except ValueError:
            pass

    return []
