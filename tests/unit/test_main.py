"""
命令行入口测试
"""

import pytest

import main
from rowpilot.application.orchestrator.ocr_session_controller import SessionResult
from rowpilot.domain.entities.row_models import LoaderState
from rowpilot.domain.errors import BrowserConnectionError, HostAbortError


class FakeManager:
    """替换 BrowserManager"""

    fail = False

    def __init__(self, addr):
        self.addr = addr

    def get_host_tab(self, url_keyword=None):
        if self.fail:
            raise BrowserConnectionError('无法连接到 127.0.0.1:9222')
        return object()


class FakeController:
    """替换 OcrSessionController"""

    outcome = None

    def __init__(self, host, client):
        pass

    def run(self, sources, transaction_type=None, target_kb=None):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def patched(monkeypatch):
    monkeypatch.setattr(main, 'BrowserManager', FakeManager)
    monkeypatch.setattr(main, 'OcrSessionController', FakeController)
    monkeypatch.setattr(FakeManager, 'fail', False)
    monkeypatch.setattr(FakeController, 'outcome', SessionResult([1, None], 1, 2, LoaderState.COMPLETE))


class TestMain:
    """退出码"""

    def test_success_prints_summary(self, patched, capsys):
        assert main.main(['a.png']) == 0

        assert '1/2' in capsys.readouterr().out

    def test_schema_file_missing(self, patched, tmp_path):
        assert main.main(['a.png', '--schema', str(tmp_path / 'missing.json')]) == 2

    def test_browser_unreachable(self, patched, monkeypatch):
        monkeypatch.setattr(FakeManager, 'fail', True)

        assert main.main(['a.png']) == 2

    def test_aborted_batch(self, patched, monkeypatch):
        monkeypatch.setattr(FakeController, 'outcome', HostAbortError('Invalid value', [1]))

        assert main.main(['a.png']) == 1

    def test_requires_files(self):
        with pytest.raises(SystemExit):
            main.main([])
