"""
提取管道模块

图片压缩、提示词生成、模型输出解析、规范化与清洗。
"""

from .compression import compress_image
from .normalizer import (
    clean_and_clamp,
    coerce_boolean,
    format_scalar,
    is_noise_string,
    normalize_items,
    normalize_number,
    sanitize_items,
)
from .parsing import extract_json_items, strip_fences
from .pipeline import ExtractionPipeline
from .prompt_builder import build_prompt

__all__ = [
    'compress_image',
    'build_prompt',
    'extract_json_items',
    'strip_fences',
    'normalize_items',
    'sanitize_items',
    'normalize_number',
    'coerce_boolean',
    'format_scalar',
    'is_noise_string',
    'clean_and_clamp',
    'ExtractionPipeline',
]
