"""
PDF 转图片

使用 pdf2image（依赖 poppler）逐页渲染为 JPEG，
单页失败只跳过该页，整份文档无法读取时返回空列表。
"""

import io
from pathlib import Path
from typing import List, Optional

from pdf2image import convert_from_path, pdfinfo_from_path

from rowpilot.config import DocumentConfig, document_config
from rowpilot.domain.entities.row_models import SourceImage
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)


def page_image_name(pdf_name: str, page_number: int) -> str:
    """第 i 页命名为 <base>_page<i>.jpg"""
    return f"{Path(pdf_name).stem}_page{page_number}.jpg"


def count_pages(path: str) -> int:
    info = pdfinfo_from_path(path)
    return int(info.get('Pages', 0))


def render_pdf(path: str, config: Optional[DocumentConfig] = None) -> List[SourceImage]:
    """
    渲染 PDF 的前 N 页

    Args:
        path: PDF 路径
        config: 文档配置（页数上限、渲染缩放）

    Returns:
        每页一张 JPEG
    """
    config = config or document_config
    dpi = int(round(72 * config.pdf_scale))

    try:
        total = count_pages(path)
    except Exception as e:
        logger.error(f"❌ 无法读取 PDF {path}: {e}")
        return []

    pages = min(total, config.pdf_max_pages)
    if total > pages:
        logger.warning(f"⚠️ {Path(path).name} 共 {total} 页，只处理前 {pages} 页")

    images: List[SourceImage] = []
    for page_number in range(1, pages + 1):
        try:
            rendered = convert_from_path(path, dpi=dpi, first_page=page_number, last_page=page_number)
            if not rendered:
                continue
            buffer = io.BytesIO()
            rendered[0].convert('RGB').save(buffer, format='JPEG', quality=92)
        except Exception as e:
            logger.warning(f"⚠️ 第 {page_number} 页渲染失败，已跳过: {e}")
            continue
        images.append(SourceImage(
            name=page_image_name(path, page_number),
            data=buffer.getvalue(),
            mime_type='image/jpeg',
        ))

    logger.info(f"📄 {Path(path).name}: 渲染 {len(images)}/{pages} 页")
    return images
