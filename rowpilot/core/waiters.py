"""
统一等待原语

所有"等宿主做完某事"的场景（新行出现、DOM 静默）都走 wait_for_condition:
立即检查一次，之后在唤醒事件或轮询间隔到达时重新检查，
到达绝对超时返回 False，永不无限阻塞。
"""

import threading
import time
from typing import Callable, Optional


def wait_for_condition(
    check: Callable[[], bool],
    timeout: float,
    interval: float = 0.025,
    wake: Optional[threading.Event] = None,
    is_aborted: Optional[Callable[[], bool]] = None,
) -> bool:
    """
    等待条件成立

    Args:
        check: 条件函数
        timeout: 绝对超时(秒)
        interval: 轮询间隔(秒)
        wake: 唤醒事件，置位时立即重新检查（中止时用于提前退出）
        is_aborted: 中止检查，返回 True 时立刻放弃

    Returns:
        条件成立返回 True；超时或中止返回 False
    """
    deadline = time.monotonic() + max(0.0, timeout)

    while True:
        if is_aborted is not None and is_aborted():
            return False
        if check():
            return True

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False

        step = min(interval, remaining)
        if wake is not None:
            wake.wait(step)
        else:
            time.sleep(step)


def wait_for_quiet(
    ms_since_last_mutation: Callable[[], float],
    quiet_for: float,
    budget: float,
    interval: float = 0.025,
    wake: Optional[threading.Event] = None,
    is_aborted: Optional[Callable[[], bool]] = None,
) -> bool:
    """
    等待 DOM 静默

    从调用时刻起连续 quiet_for 秒没有变动即视为稳定，调用前的静默不计入；
    budget 秒后无论是否稳定都返回。

    Returns:
        是否真正观察到静默
    """
    quiet_ms = quiet_for * 1000.0
    started = time.monotonic()

    def _quiet() -> bool:
        elapsed_ms = (time.monotonic() - started) * 1000.0
        return min(ms_since_last_mutation(), elapsed_ms) >= quiet_ms

    return wait_for_condition(
        _quiet,
        timeout=budget,
        interval=interval,
        wake=wake,
        is_aborted=is_aborted,
    )


def pause(
    seconds: float,
    is_aborted: Optional[Callable[[], bool]] = None,
    tick: float = 0.02,
):
    """可中止的短暂停顿（字段间隔等）"""
    if seconds <= 0:
        return
    deadline = time.monotonic() + seconds
    while True:
        if is_aborted is not None and is_aborted():
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return
        time.sleep(min(tick, remaining))
