"""
协作式中止协调器

包裹一次批量填充调用，在每个挂起点（建行等待、DOM 稳定等待、字段间隔）
检查 is_aborted()，绝不在单个字段写入过程中打断。

中止来源:
- 外部停止标志（threading.Event，如 UI 的"停止"按钮）
- 信号源（如宿主弹出阻断式对话框），每次检查时轮询

一旦触发永久保持，触发消息在批次结束时随异常传回调用方。
"""

import threading
from typing import Callable, List, Optional

from rowpilot.domain.errors import BatchAbortedError, HostAbortError
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

SignalSource = Callable[[], Optional[str]]


class AbortCoordinator:
    """
    中止协调器

    用法:
        coordinator = AbortCoordinator(stop_event, signal_sources=[host.poll_dialog])
        for record in records:
            if coordinator.is_aborted():
                break
            ...
        coordinator.raise_if_aborted(results)
    """

    def __init__(
        self,
        stop_event: Optional[threading.Event] = None,
        signal_sources: Optional[List[SignalSource]] = None,
    ):
        self.wake_event = threading.Event()
        self._stop_event = stop_event
        self._sources: List[SignalSource] = list(signal_sources or [])
        self._message = ''
        self._from_host = False

    def add_source(self, source: SignalSource):
        self._sources.append(source)

    @property
    def message(self) -> str:
        return self._message

    @property
    def from_host(self) -> bool:
        return self._from_host

    def trigger(self, message: str, from_host: bool = True):
        """触发中止（只记录第一次的消息）"""
        if self.wake_event.is_set():
            return
        self._message = str(message or '')
        self._from_host = from_host
        self.wake_event.set()
        if from_host:
            # 宿主信号需要让用户看到
            logger.error(f"🛑 宿主中止信号: {self._message}")
        else:
            logger.warning(f"🛑 已请求停止: {self._message}")

    def is_aborted(self) -> bool:
        """检查点: 轮询所有中止来源"""
        if self.wake_event.is_set():
            return True

        if self._stop_event is not None and self._stop_event.is_set():
            self.trigger("用户手动终止", from_host=False)
            return True

        for source in self._sources:
            try:
                signal = source()
            except Exception as e:
                logger.debug(f"中止信号源读取失败: {e}")
                continue
            if signal:
                self.trigger(signal, from_host=True)
                return True

        return False

    def raise_if_aborted(self, results: Optional[List[Optional[int]]] = None):
        """
        批次结束时调用，已中止则抛出

        Raises:
            HostAbortError: 宿主信号触发
            BatchAbortedError: 外部停止标志触发
        """
        if not self.wake_event.is_set():
            return
        if self._from_host:
            raise HostAbortError(self._message, results)
        raise BatchAbortedError(self._message, results)
