"""
Gemini 视觉模型客户端 - 基础设施层实现

每张图片一次 POST 请求（generateContent），图片以 inline_data 内联。
生成参数固定为低温度/低 top_p 以保证结果稳定。
"""

import base64
from typing import Any, Dict, Optional

import requests

from rowpilot.config import ExtractionConfig, extraction_config
from rowpilot.domain.entities.row_models import SourceImage
from rowpilot.domain.errors import ConfigurationError, ModelOverloadedError, ModelRequestError


class GeminiVisionClient:
    """
    Gemini generateContent 客户端

    职责:
    - 构造请求体（提示词 + 单张图片）
    - 把 HTTP 状态映射为领域异常（503 -> 过载，其他失败 -> 请求错误）
    - 拼接 candidates[0] 的文本输出
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or extraction_config
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.config.endpoint.rstrip('/')}/{self.config.model}:generateContent"

    def build_payload(self, prompt: str, image: SourceImage) -> Dict[str, Any]:
        """构造请求体"""
        return {
            'contents': [{
                'parts': [
                    {'text': prompt},
                    {
                        'inline_data': {
                            'mime_type': image.mime_type or 'image/jpeg',
                            'data': base64.b64encode(image.data).decode('ascii'),
                        }
                    },
                ]
            }],
            'generationConfig': {
                'temperature': self.config.temperature,
                'topK': self.config.top_k,
                'topP': self.config.top_p,
                'response_mime_type': 'text/plain',
            },
        }

    def generate(self, prompt: str, image: SourceImage) -> str:
        """
        发送单张图片并返回模型文本

        Raises:
            ConfigurationError: 未配置 API Key
            ModelOverloadedError: HTTP 503
            ModelRequestError: 其他 HTTP 错误、网络异常、响应非 JSON 或非对象
        """
        if not self.config.api_key:
            raise ConfigurationError("未配置模型 API Key（ROWPILOT_API_KEY / GEMINI_API_KEY）")

        try:
            response = self.session.post(
                self.url,
                params={'key': self.config.api_key},
                json=self.build_payload(prompt, image),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise ModelRequestError(f"请求异常: {e}") from e

        if response.status_code == 503:
            raise ModelOverloadedError("模型当前过载 (503)")
        if not response.ok:
            raise ModelRequestError(f"API 请求失败，状态码 {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise ModelRequestError(f"响应不是 JSON: {e}", response.status_code) from e
        if not isinstance(data, dict):
            raise ModelRequestError(f"响应结构异常: {type(data).__name__}", response.status_code)

        return self.extract_text(data)

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        """拼接 candidates[0].content.parts[*].text，结构不符的部分视为空"""
        candidates = data.get('candidates') if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates:
            return ''
        content = candidates[0].get('content') if isinstance(candidates[0], dict) else None
        parts = content.get('parts') if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ''
        texts = [part.get('text') or '' for part in parts if isinstance(part, dict)]
        return '\n'.join(str(text) for text in texts).strip()
