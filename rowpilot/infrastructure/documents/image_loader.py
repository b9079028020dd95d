"""
源文件读取

支持图片与 PDF；其他类型忽略并告警，总数超过上限的部分丢弃。
"""

import mimetypes
from pathlib import Path
from typing import Iterable, List, Optional, Union

from rowpilot.config import CompressionConfig, DocumentConfig, compression_config
from rowpilot.domain.entities.row_models import SourceImage
from rowpilot.infrastructure.documents.pdf_renderer import render_pdf
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def guess_mime_type(path: PathLike) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or 'application/octet-stream'


def load_source_images(
    paths: Iterable[PathLike],
    config: Optional[CompressionConfig] = None,
    document: Optional[DocumentConfig] = None,
) -> List[SourceImage]:
    """
    读取源文件为内存图片列表

    Args:
        paths: 图片或 PDF 路径
        config: 压缩配置（取单批图片上限）
        document: 文档配置（PDF 页数与缩放）

    Returns:
        SourceImage 列表，保持输入顺序
    """
    config = config or compression_config
    images: List[SourceImage] = []

    for raw_path in paths:
        path = Path(raw_path)
        mime_type = guess_mime_type(path)

        if mime_type == 'application/pdf':
            images.extend(render_pdf(str(path), document))
        elif mime_type.startswith('image/'):
            try:
                images.append(SourceImage(name=path.name, data=path.read_bytes(), mime_type=mime_type))
            except OSError as e:
                logger.warning(f"⚠️ 无法读取 {path}: {e}")
        else:
            logger.warning(f"⚠️ 不支持的文件类型，已忽略: {path.name} ({mime_type})")

    if len(images) > config.max_images:
        logger.warning(f"⚠️ 图片数量 {len(images)} 超过上限 {config.max_images}，多余部分已丢弃")
        images = images[:config.max_images]

    return images
