"""
Pytest 配置文件

提供测试所需的 fixtures 和共享配置。
"""

import io
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

# 确保项目根目录在 Python 路径中
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from rowpilot.config import CompressionConfig, FillerConfig
from rowpilot.domain.entities.row_models import SourceImage
from rowpilot.domain.errors import ModelOverloadedError, StockSearchTimeout
from rowpilot.domain.interfaces.host_page import FieldState
from rowpilot.domain.schema import init_schema, reset_schema


# ============================================================
# Schema Fixtures
# ============================================================

@pytest.fixture(autouse=True)
def _clean_schema():
    """每个测试结束后清除进程级 Schema"""
    yield
    reset_schema()


@pytest.fixture
def registry():
    """内置默认 Schema"""
    return init_schema()


@pytest.fixture
def ordered_registry():
    """规范顺序为 C, A, B 的最小 Schema"""
    return init_schema({
        'fields': {
            'A': {'type': 'string', 'dom': {'base': 'a_', 'suffix': '{i}'}},
            'B': {'type': 'number', 'dom': {'base': 'b_', 'suffix': '{i}'}},
            'C': {'type': 'string', 'dom': {'base': 'c_', 'suffix': '{i}'}},
        },
        'transactions': {'default': ['A', 'B', 'C']},
        'fillOrder': ['C', 'A', 'B'],
    })


# ============================================================
# Config Fixtures
# ============================================================

@pytest.fixture
def fast_filler_config():
    """缩短所有等待时间的填充配置"""
    return FillerConfig(
        row_timeout=0.2,
        poll_interval=0.001,
        stable_pre=0.0,
        stable_pre_budget=0.01,
        stable_post=0.0,
        stable_post_budget=0.01,
        field_pacing=0.0,
        search_row_timeout=0.1,
        search_row_interval=0.001,
        search_timeout=0.1,
        search_interval=0.001,
        search_close_delay=0.0,
        settle_timeout=0.01,
        settle_quiet=0.0,
    )


# ============================================================
# Fake Host Page
# ============================================================

class FakeHostPage:
    """
    模拟宿主页面，实现 IHostPage 协议

    - 每次 click_add_row 新建一行（fail_clicks 中的点击序号不建行）
    - search_results 决定商品搜索的结果: select / empty / timeout / select_no_row
    - dialog_on_commit 指定的字段写入后弹出对话框
    - events 按顺序记录所有交互
    """

    def __init__(
        self,
        start_row: int = 0,
        fail_clicks=(),
        search_results: Optional[Dict[str, str]] = None,
        dialog_on_commit: Optional[str] = None,
        dialog_message: str = 'Invalid value',
        has_add_button: bool = True,
    ):
        self.max_row = start_row
        self.fail_clicks = set(fail_clicks)
        self.search_results = search_results or {}
        self.dialog_on_commit = dialog_on_commit
        self.dialog_message = dialog_message
        self.has_add_button = has_add_button

        self.click_count = 0
        self.dialog: Optional[str] = None
        self.values: Dict[str, str] = {}
        self.states: Dict[str, FieldState] = {}
        self.events: List[tuple] = []
        self.watching = False
        self.watch_sessions = 0

    # 行检测
    def current_row_index(self) -> Optional[int]:
        return self.max_row or None

    def is_row_ready(self, row_index: int) -> bool:
        return self.max_row >= row_index

    def click_add_row(self) -> bool:
        if not self.has_add_button:
            return False
        click = self.click_count
        self.click_count += 1
        self.events.append(('click_add',))
        if click not in self.fail_clicks:
            self.max_row += 1
        return True

    # DOM 变动观测
    def begin_watch(self) -> None:
        self.watching = True
        self.watch_sessions += 1

    def end_watch(self) -> None:
        self.watching = False

    def ms_since_last_mutation(self) -> float:
        return float('inf')

    # 字段访问
    def describe_field(self, name: str) -> FieldState:
        return self.states.get(name, FieldState(exists=True, visible=True))

    def commit_value(self, name: str, value: Any, typing: bool = False, suppress_inline: bool = False) -> bool:
        self.events.append(('commit', name, value, typing, suppress_inline))
        self.values[name] = value
        if self.dialog_on_commit == name:
            self.dialog = self.dialog_message
        return True

    def touch_field(self, name: str) -> bool:
        self.events.append(('touch', name))
        return True

    def toggle_field(self, name: str) -> bool:
        self.events.append(('toggle', name))
        state = self.describe_field(name)
        self.states[name] = FieldState(
            exists=True, visible=state.visible, input_type='checkbox', checked=not state.checked
        )
        return True

    def prepare_field(self, kind: str, row_index: int) -> None:
        self.events.append(('prepare', kind, row_index))

    def after_row_filled(self) -> None:
        self.events.append(('after_row',))

    # 商品搜索
    def search_stock(self, code: str, row_index: int, is_aborted) -> Optional[str]:
        self.events.append(('search', code, row_index))
        outcome = self.search_results.get(code, 'empty')
        if outcome == 'timeout':
            raise StockSearchTimeout(f"search timeout: {code}")
        if outcome == 'select':
            self.max_row += 1
            return code
        if outcome == 'select_no_row':
            return code
        return None

    # 宿主对话框
    def poll_dialog(self) -> Optional[str]:
        return self.dialog

    # 测试辅助
    def commits(self) -> List[str]:
        return [e[1] for e in self.events if e[0] == 'commit']

    def count(self, kind: str) -> int:
        return sum(1 for e in self.events if e[0] == kind)


# ============================================================
# Fake Vision Model / HTTP
# ============================================================

class ScriptedVisionModel:
    """按顺序返回预设结果的视觉模型，元素为异常时抛出"""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls: List[SourceImage] = []

    def generate(self, prompt: str, image: SourceImage) -> str:
        self.calls.append(image)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def overloaded():
    return ModelOverloadedError('模型当前过载 (503)')


class FakeResponse:
    """模拟 requests.Response"""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON object could be decoded')
        return self._payload


class FakeSession:
    """模拟 requests.Session，按顺序返回预设响应"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def post(self, url, params=None, json=None, timeout=None):
        self.requests.append({'url': url, 'params': params, 'json': json, 'timeout': timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def gemini_payload(*texts: str) -> Dict[str, Any]:
    """构造 generateContent 响应体"""
    return {'candidates': [{'content': {'parts': [{'text': t} for t in texts]}}]}


# ============================================================
# Mock Browser Tab
# ============================================================

class MockBrowserTab:
    """模拟 DrissionPage 标签页，用于测试"""

    def __init__(self):
        self.js_results: Dict[str, Any] = {}
        self.calls: List[tuple] = []
        self.states = SimpleNamespace(has_alert=False)
        self.alert_text = ''

    def run_js(self, script, *args):
        """执行 JS 脚本（返回预设结果，可为函数）"""
        self.calls.append((script, args))
        result = self.js_results.get(script)
        return result(*args) if callable(result) else result

    def handle_alert(self, accept=True, send=None, timeout=None, next_one=False):
        if not self.states.has_alert:
            return False
        return self.alert_text


@pytest.fixture
def mock_tab():
    """模拟浏览器标签页"""
    return MockBrowserTab()


# ============================================================
# Image Fixtures
# ============================================================

def encode_image(image: Image.Image, fmt: str = 'PNG') -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def noisy_png():
    """高熵图片，压缩到较小目标需要多轮迭代"""
    image = Image.effect_noise((640, 640), 120).convert('RGB')
    return SourceImage(name='noisy.png', data=encode_image(image), mime_type='image/png')


@pytest.fixture
def plain_png():
    """纯色图片，第一轮即可达标"""
    image = Image.new('RGB', (200, 120), (240, 240, 240))
    return SourceImage(name='plain.png', data=encode_image(image), mime_type='image/png')


@pytest.fixture
def transparent_png():
    """带透明通道的图片"""
    image = Image.new('RGBA', (80, 80), (255, 0, 0, 0))
    return SourceImage(name='alpha.png', data=encode_image(image), mime_type='image/png')


@pytest.fixture
def small_compression_config():
    return CompressionConfig(target_kb=20)

