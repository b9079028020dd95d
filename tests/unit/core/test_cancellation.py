"""
中止协调器测试
"""

import threading

import pytest

from rowpilot.core.cancellation import AbortCoordinator
from rowpilot.domain.errors import BatchAbortedError, HostAbortError


class TestAbortCoordinator:
    """AbortCoordinator"""

    def test_not_aborted_by_default(self):
        coordinator = AbortCoordinator()

        assert not coordinator.is_aborted()
        coordinator.raise_if_aborted([1])

    def test_stop_event(self):
        stop = threading.Event()
        coordinator = AbortCoordinator(stop)
        stop.set()

        assert coordinator.is_aborted()
        assert coordinator.message == '用户手动终止'
        assert not coordinator.from_host
        with pytest.raises(BatchAbortedError) as exc_info:
            coordinator.raise_if_aborted([3, None])
        assert not isinstance(exc_info.value, HostAbortError)
        assert exc_info.value.results == [3, None]

    def test_signal_source_is_host_abort(self):
        coordinator = AbortCoordinator(signal_sources=[lambda: 'Invalid price'])

        assert coordinator.is_aborted()
        assert coordinator.wake_event.is_set()
        with pytest.raises(HostAbortError) as exc_info:
            coordinator.raise_if_aborted([1])
        assert exc_info.value.host_message == 'Invalid price'
        assert str(exc_info.value) == 'Aborted by host signal: Invalid price'
        assert exc_info.value.code == 'HOST_SIGNAL_ABORT'

    def test_first_trigger_wins(self):
        coordinator = AbortCoordinator()
        coordinator.trigger('first')
        coordinator.trigger('second', from_host=False)

        assert coordinator.message == 'first'
        assert coordinator.from_host

    def test_sticky_after_source_clears(self):
        signals = ['dialog', None]
        coordinator = AbortCoordinator(signal_sources=[lambda: signals.pop(0) if signals else None])

        assert coordinator.is_aborted()
        assert coordinator.is_aborted()

    def test_failing_source_ignored(self):
        def broken():
            raise RuntimeError('tab closed')

        coordinator = AbortCoordinator(signal_sources=[broken])

        assert not coordinator.is_aborted()

    def test_add_source(self):
        coordinator = AbortCoordinator()
        coordinator.add_source(lambda: 'late dialog')

        assert coordinator.is_aborted()
