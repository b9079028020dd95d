"""
视觉语言模型接口

定义提取管道调用外部模型的抽象契约。
"""

from typing import Protocol

from rowpilot.domain.entities.row_models import SourceImage


class IVisionModel(Protocol):
    """
    视觉模型客户端接口

    每次调用只发送一张图片。
    """

    def generate(self, prompt: str, image: SourceImage) -> str:
        """
        发送提示词 + 图片，返回模型文本输出

        Raises:
            ModelOverloadedError: 服务过载（可重试）
            ModelRequestError: 其他请求失败
        """
        ...
