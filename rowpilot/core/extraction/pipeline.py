"""
提取管道

图片 -> 提示词 + 单图请求（503 重试）-> 解析 -> 规范化 -> 清洗，
各图片结果严格按输入顺序拼接。

单张图片的任何失败（网络错误、重试耗尽、解析失败）只会让该图片贡献 0 条，
不会中断整个批次；整体为空也是合法结果。
"""

import time
from typing import Callable, List, Optional, Sequence

from rowpilot.config import ExtractionConfig, extraction_config
from rowpilot.core.extraction.normalizer import normalize_items, sanitize_items
from rowpilot.core.extraction.parsing import extract_json_items
from rowpilot.core.extraction.prompt_builder import build_prompt
from rowpilot.domain.entities.row_models import ExtractionAttempt, RowRecord, SourceImage
from rowpilot.domain.errors import ConfigurationError, ModelOverloadedError, RowPilotError
from rowpilot.domain.interfaces.vision_model import IVisionModel
from rowpilot.domain.schema import ExtractionSchemaView
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

ImageCallback = Callable[[int, int], None]


class ExtractionPipeline:
    """
    提取管道

    用法:
        pipeline = ExtractionPipeline(GeminiVisionClient(), get_schema().extraction_view())
        records = pipeline.extract(images, 'default')
    """

    def __init__(
        self,
        client: IVisionModel,
        view: ExtractionSchemaView,
        config: Optional[ExtractionConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.view = view
        self.config = config or extraction_config
        self._sleep = sleep

    def extract(
        self,
        images: Sequence[SourceImage],
        transaction_type: Optional[str] = None,
        on_image: Optional[ImageCallback] = None,
    ) -> List[RowRecord]:
        """
        串行处理所有图片

        Args:
            images: 已压缩的图片
            transaction_type: 交易类型
            on_image: 每处理完一张调用 (index, total)，仅用于进度展示

        Returns:
            规范化后的行记录（可能为空）
        """
        prompt = build_prompt(self.view, transaction_type, self.config.default_string_max_len)
        total = len(images)
        records: List[RowRecord] = []

        for index, image in enumerate(images):
            attempt = self.run_attempt(index, image, prompt, transaction_type)
            records.extend(attempt.items)

            if attempt.status == 'success':
                logger.info(f"🖼️ 第 {index + 1}/{total} 张: 提取 {len(attempt.items)} 条")
            else:
                logger.warning(f"⚠️ 第 {index + 1}/{total} 张提取失败 ({attempt.status}): {attempt.error}")

            if on_image:
                on_image(index + 1, total)

        logger.info(f"📦 共提取 {len(records)} 条行项目")
        return records

    def run_attempt(
        self,
        index: int,
        image: SourceImage,
        prompt: str,
        transaction_type: Optional[str] = None,
    ) -> ExtractionAttempt:
        """单张图片: 仅 503 重试，其他失败立即结束"""
        attempt = ExtractionAttempt(image_index=index)

        while not attempt.is_terminal:
            attempt.attempts += 1
            try:
                attempt.raw_text = self.client.generate(prompt, image)
            except ModelOverloadedError as e:
                attempt.error = str(e)
                if attempt.attempts >= self.config.max_attempts:
                    attempt.status = 'exhausted'
                    break
                logger.warning(
                    f"⏳ 模型繁忙，{self.config.retry_delay:g} 秒后重试 "
                    f"({attempt.attempts}/{self.config.max_attempts})"
                )
                self._sleep(self.config.retry_delay)
                continue
            except ConfigurationError:
                raise
            except RowPilotError as e:
                attempt.error = str(e)
                attempt.status = 'failed'
                break

            # 结构上成功的响应即结束，无论能否解析
            items = extract_json_items(attempt.raw_text)
            normalized = normalize_items(items, self.view, transaction_type)
            attempt.items = sanitize_items(
                normalized, self.view, transaction_type, self.config.default_string_max_len
            )
            attempt.status = 'success'

        return attempt
