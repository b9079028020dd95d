"""
提取与填充相关数据模型

包含:
- SourceImage: 待识别的图片（内存中的文件）
- ExtractionAttempt: 单张图片的提取过程状态
- RowFillPhase / RowFillState: 单行创建与填充的状态机
- LoaderState: 进度遮罩状态
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# 一条行记录: {字段ID: 已按类型转换的值}，允许缺字段
RowRecord = Dict[str, Any]


@dataclass
class SourceImage:
    """内存中的图片文件"""
    name: str
    data: bytes
    mime_type: str = 'image/jpeg'

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return (self.mime_type or '').startswith('image/')


@dataclass
class ExtractionAttempt:
    """
    单张图片的提取尝试

    图片处理完即丢弃，只用于日志与测试观察。
    """
    image_index: int
    attempts: int = 0
    status: str = 'pending'         # pending / success / exhausted / failed
    raw_text: str = ''
    items: List[RowRecord] = field(default_factory=list)
    error: str = ''

    @property
    def is_terminal(self) -> bool:
        return self.status in ('success', 'exhausted', 'failed')


class RowFillPhase(str, Enum):
    """单行状态机阶段"""
    SEARCH_STOCK = 'search_stock'
    CREATE_ROW = 'create_row'
    STABILIZE_PRE = 'stabilize_pre'
    FILL_FIELDS = 'fill_fields'
    STABILIZE_POST = 'stabilize_post'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class RowFillState:
    """
    单行创建+填充期间的临时状态

    row_index 由宿主分配，建行成功前为 None。
    """
    record_index: int
    phase: RowFillPhase = RowFillPhase.CREATE_ROW
    row_index: Optional[int] = None
    base_row_index: int = 0
    field_cursor: int = 0
    from_stock_search: bool = False
    stable_observed: Optional[bool] = None
    written_fields: List[str] = field(default_factory=list)

    def advance(self, phase: RowFillPhase):
        self.phase = phase

    @property
    def expected_row_index(self) -> int:
        return self.base_row_index + 1


class LoaderState(str, Enum):
    """进度遮罩状态，complete/empty/error 为终态（可关闭）"""
    IDLE = 'idle'
    PROGRESS = 'progress'
    COMPLETE = 'complete'
    EMPTY = 'empty'
    ERROR = 'error'

    @property
    def is_terminal(self) -> bool:
        return self in (LoaderState.COMPLETE, LoaderState.EMPTY, LoaderState.ERROR)
