"""
宿主页面与视觉模型的协议定义

核心层只依赖这里的 Protocol，DrissionPage / Gemini 实现位于 infrastructure。
"""

from .host_page import FieldState, IHostPage
from .vision_model import IVisionModel

__all__ = [
    'IHostPage',
    'FieldState',
    'IVisionModel',
]
