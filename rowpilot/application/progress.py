"""
进度与遮罩状态

进度遮罩本身属于展示层，这里只维护它的状态和迁移规则，
展示层通过监听器 (state, text, percent) 接收变化。

迁移规则:
- idle -> progress: open()
- progress -> progress: update()
- progress -> complete / empty / error: finish()
- complete / empty / error -> idle: dismiss()（只有终态可以关闭）

阶段百分比:
- 压缩 0 - 30
- 模型提取 30 - 70
- 建行填充 70 - 100
"""

import threading
from typing import Callable, List, Optional, Tuple

from rowpilot.domain.entities.row_models import LoaderState
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

LoaderListener = Callable[[LoaderState, str, float], None]

PHASE_COMPRESS: Tuple[float, float] = (0.0, 30.0)
PHASE_EXTRACT: Tuple[float, float] = (30.0, 70.0)
PHASE_FILL: Tuple[float, float] = (70.0, 100.0)


def phase_percent(phase: Tuple[float, float], current: int, total: int) -> float:
    """把阶段内的 current/total 映射到整体百分比"""
    start, end = phase
    if total <= 0:
        return start
    ratio = max(0.0, min(1.0, current / total))
    return round(start + (end - start) * ratio, 1)


class LoaderStatus:
    """
    进度遮罩状态机

    非法迁移只记录日志、不抛异常（进度只是提示，不能影响主流程）。
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.state = LoaderState.IDLE
        self.text = ''
        self.percent = 0.0
        self._listeners: List[LoaderListener] = []

    def add_listener(self, listener: LoaderListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: LoaderListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self.state, self.text, self.percent)
            except Exception as e:
                logger.debug(f"进度监听器异常: {e}")

    def open(self, text: str = '处理中...') -> bool:
        with self._lock:
            if self.state != LoaderState.IDLE:
                logger.debug(f"遮罩已处于 {self.state.value}，忽略 open")
                return False
            self.state = LoaderState.PROGRESS
            self.text = text
            self.percent = 0.0
        self._notify()
        return True

    def update(self, text: Optional[str] = None, percent: Optional[float] = None) -> bool:
        with self._lock:
            if self.state != LoaderState.PROGRESS:
                return False
            if text is not None:
                self.text = text
            if percent is not None:
                self.percent = max(0.0, min(100.0, float(percent)))
        self._notify()
        return True

    def finish(self, state: LoaderState, text: str = '') -> bool:
        """进入终态 complete / empty / error"""
        if not state.is_terminal:
            raise ValueError(f"finish() 只接受终态: {state.value}")
        with self._lock:
            if self.state != LoaderState.PROGRESS:
                logger.debug(f"遮罩处于 {self.state.value}，忽略 finish")
                return False
            self.state = state
            self.text = text or self.text
            self.percent = 100.0
        self._notify()
        return True

    def dismiss(self) -> bool:
        with self._lock:
            if not self.state.is_terminal:
                return False
            self.state = LoaderState.IDLE
            self.text = ''
            self.percent = 0.0
        self._notify()
        return True
