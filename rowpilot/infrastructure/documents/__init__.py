"""源文档读取（图片 / PDF）"""

from .image_loader import load_source_images
from .pdf_renderer import render_pdf

__all__ = ['load_source_images', 'render_pdf']
