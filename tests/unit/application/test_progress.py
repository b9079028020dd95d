"""
进度遮罩状态测试
"""

import pytest

from rowpilot.application.progress import (
    PHASE_COMPRESS, PHASE_EXTRACT, PHASE_FILL, LoaderStatus, phase_percent
)
from rowpilot.domain.entities.row_models import LoaderState


class TestPhasePercent:
    """阶段百分比"""

    def test_phase_bounds(self):
        assert phase_percent(PHASE_COMPRESS, 0, 4) == 0.0
        assert phase_percent(PHASE_COMPRESS, 4, 4) == 30.0
        assert phase_percent(PHASE_EXTRACT, 1, 2) == 50.0
        assert phase_percent(PHASE_FILL, 3, 3) == 100.0

    def test_rounded_to_one_decimal(self):
        assert phase_percent(PHASE_FILL, 1, 3) == 80.0

    def test_zero_total(self):
        assert phase_percent(PHASE_EXTRACT, 0, 0) == 30.0

    def test_clamped(self):
        assert phase_percent(PHASE_FILL, 5, 3) == 100.0


class TestLoaderStatus:
    """LoaderStatus 迁移"""

    @pytest.fixture
    def loader(self):
        return LoaderStatus()

    def test_full_cycle(self, loader):
        seen = []
        loader.add_listener(lambda state, text, percent: seen.append((state, percent)))

        assert loader.open()
        assert loader.update('压缩图片 1/2...', 15)
        assert loader.finish(LoaderState.COMPLETE, '完成')
        assert loader.dismiss()

        assert seen == [
            (LoaderState.PROGRESS, 0.0),
            (LoaderState.PROGRESS, 15.0),
            (LoaderState.COMPLETE, 100.0),
            (LoaderState.IDLE, 0.0),
        ]

    def test_update_requires_progress(self, loader):
        assert not loader.update('x', 10)
        assert loader.percent == 0.0

    def test_percent_clamped(self, loader):
        loader.open()
        loader.update(percent=140)

        assert loader.percent == 100.0

    def test_cannot_dismiss_while_in_progress(self, loader):
        loader.open()

        assert not loader.dismiss()
        assert loader.state == LoaderState.PROGRESS

    def test_open_twice_ignored(self, loader):
        loader.open('第一次')

        assert not loader.open('第二次')
        assert loader.text == '第一次'

    def test_finish_requires_terminal_state(self, loader):
        loader.open()

        with pytest.raises(ValueError):
            loader.finish(LoaderState.PROGRESS)

    def test_finish_from_idle_ignored(self, loader):
        assert not loader.finish(LoaderState.ERROR, 'x')
        assert loader.state == LoaderState.IDLE

    def test_listener_errors_ignored(self, loader):
        def broken(state, text, percent):
            raise RuntimeError('widget destroyed')

        loader.add_listener(broken)

        assert loader.open()

    def test_remove_listener(self, loader):
        seen = []
        listener = lambda *args: seen.append(args)
        loader.add_listener(listener)
        loader.remove_listener(listener)

        loader.open()

        assert seen == []
