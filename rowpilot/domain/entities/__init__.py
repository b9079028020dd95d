"""
识别与填充过程中的数据模型（纯数据，不依赖浏览器或网络）
"""

from .row_models import (
    ExtractionAttempt,
    LoaderState,
    RowFillPhase,
    RowFillState,
    RowRecord,
    SourceImage,
)

__all__ = [
    'RowRecord',
    'SourceImage',
    'ExtractionAttempt',
    'RowFillPhase',
    'RowFillState',
    'LoaderState',
]
