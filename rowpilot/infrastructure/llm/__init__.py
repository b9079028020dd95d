"""视觉模型客户端"""

from .gemini_client import GeminiVisionClient

__all__ = ['GeminiVisionClient']
