"""
图片压缩

逐步重新编码为 JPEG: 质量从 0.9 每轮降 0.1 到 0.25，
到达质量下限后按 0.85 比例缩小尺寸（不低于原图 0.4 倍），
体积 <= 目标大小或迭代 15 轮即停止，未达标时保留过程中最小的结果。

压缩内部任何失败都原样返回输入文件，本模块从不抛出异常。
"""

import io
import re
from typing import Optional

from PIL import Image

from rowpilot.config import CompressionConfig, compression_config
from rowpilot.domain.entities.row_models import SourceImage
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

_IMAGE_EXT_RE = re.compile(r'\.(png|jpeg|jpg|webp|gif)$', re.IGNORECASE)


def _jpeg_name(name: str) -> str:
    return _IMAGE_EXT_RE.sub('', name or 'image.jpg') + '.jpg'


def _encode_jpeg(frame: Image.Image, quality: float) -> bytes:
    buffer = io.BytesIO()
    frame.save(buffer, format='JPEG', quality=max(1, min(95, int(round(quality * 100)))))
    return buffer.getvalue()


def compress_image(
    image: SourceImage,
    target_kb: Optional[int] = None,
    config: Optional[CompressionConfig] = None,
) -> SourceImage:
    """
    压缩单张图片

    Args:
        image: 原始图片
        target_kb: 目标大小(KB)，默认取配置
        config: 压缩配置

    Returns:
        压缩后的 JPEG；非图片或处理失败时返回原始输入
    """
    config = config or compression_config
    if not image or not image.is_image:
        return image

    try:
        with Image.open(io.BytesIO(image.data)) as source:
            source.load()
            # 透明通道铺到白底，等价于不带 alpha 的画布
            if source.mode in ('RGBA', 'LA', 'P'):
                rgba = source.convert('RGBA')
                base = Image.new('RGB', rgba.size, (255, 255, 255))
                base.paste(rgba, mask=rgba.split()[-1])
            else:
                base = source.convert('RGB')

        width, height = base.size
        target_bytes = max(config.min_target_kb, int(target_kb or config.target_kb)) * 1024

        quality = config.start_quality
        scale = 1.0
        best: Optional[bytes] = None

        for _ in range(config.max_iterations):
            if scale < 1.0:
                size = (max(1, int(width * scale)), max(1, int(height * scale)))
                frame = base.resize(size, Image.LANCZOS)
            else:
                frame = base

            data = _encode_jpeg(frame, quality)
            if best is None or len(data) < len(best):
                best = data

            if len(data) <= target_bytes:
                best = data
                break

            # 先降质量，再缩尺寸
            if quality > config.min_quality:
                quality = max(config.min_quality, round(quality - config.quality_step, 2))
            elif scale > config.min_scale:
                scale = max(config.min_scale, round(scale * config.downscale_step, 3))
            else:
                break

    except Exception as e:
        logger.warning(f"⚠️ 压缩失败，使用原图 {image.name}: {e}")
        return image

    if best is None:
        return image

    logger.debug(f"🗜️ {image.name}: {image.size // 1024} KB -> {len(best) // 1024} KB")
    return SourceImage(name=_jpeg_name(image.name), data=best, mime_type='image/jpeg')
