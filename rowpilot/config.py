"""
RowPilot 配置中心

集中管理所有可配置参数，避免硬编码散落在各模块中。
支持从环境变量读取配置。

用法:
    from rowpilot.config import compression_config, filler_config

    # 访问配置
    target = compression_config.target_kb
    timeout = filler_config.row_timeout
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class CompressionConfig:
    """
    图片压缩配置

    先逐步降低 JPEG 质量，到达下限后再按比例缩小尺寸。
    """
    target_kb: int = 100            # 单张图片目标大小(KB)
    min_target_kb: int = 20         # 目标大小下限(KB)
    max_images: int = 50            # 单批最多图片数
    start_quality: float = 0.9      # 初始 JPEG 质量
    min_quality: float = 0.25       # 质量下限
    quality_step: float = 0.1       # 每轮质量降幅
    downscale_step: float = 0.85    # 每轮缩放系数
    min_scale: float = 0.4          # 缩放下限（相对原图）
    max_iterations: int = 15        # 最大迭代次数


@dataclass
class DocumentConfig:
    """
    源文档配置

    控制 PDF 转图片的行为参数。
    """
    pdf_max_pages: int = 88         # 最多处理页数
    pdf_scale: float = 1.5          # 渲染缩放（DPI = 72 * scale）


@dataclass
class ExtractionConfig:
    """
    模型提取配置

    生成参数固定为低温度/低 top_p，保证输出稳定。
    """
    endpoint: str = 'https://generativelanguage.googleapis.com/v1beta/models'
    model: str = 'gemini-2.5-flash-lite'
    api_key: str = ''
    max_attempts: int = 3           # 单张图片最多请求次数（仅 503 重试）
    retry_delay: float = 2.0        # 503 重试间隔(秒)
    request_timeout: float = 60.0   # 请求超时(秒)
    temperature: float = 0.1
    top_k: int = 1
    top_p: float = 0.1
    default_string_max_len: int = 120


@dataclass
class FillerConfig:
    """
    行填充配置

    控制建行等待、DOM 稳定检测与商品搜索的时间参数（秒）。
    """
    row_timeout: float = 2.5        # 建行等待超时
    poll_interval: float = 0.025    # 轮询间隔
    stable_pre: float = 0.1         # 填充前静默窗口
    stable_pre_budget: float = 0.4  # 填充前最长等待
    stable_post: float = 0.15       # 填充后静默窗口
    stable_post_budget: float = 0.6 # 填充后最长等待
    field_pacing: float = 0.005     # 字段间隔
    typing_animation: bool = False  # 逐字符模拟输入
    search_row_timeout: float = 5.0 # 搜索后等待宿主建行
    search_row_interval: float = 0.1
    search_timeout: float = 20.0    # 搜索结果等待超时
    search_interval: float = 0.12   # 搜索结果轮询间隔
    search_close_delay: float = 0.4 # 选中后关闭弹层前的延迟
    settle_timeout: float = 5.0     # 整批完成后等待表格稳定
    settle_quiet: float = 0.2


@dataclass
class HostDomConfig:
    """
    宿主页面 DOM 约定

    宿主表单的各控件选择器。
    """
    add_row_selector: str = '#gononstockbtn'
    max_row_counter_name: str = 'HddenMaxRowAdded'
    row_id_prefix: str = 'rowtr'
    row_container_selector: str = '#rowsTable tbody'
    search_input_selector: str = '#general_stk_query'
    search_overlay_selector: str = '#showrecdiv'
    search_item_selector: str = 'a[onclick*="itemselectedpart"]'
    search_empty_selector: str = 'table.results-table'
    stock_code_input_base: str = 'stkcode_code'   # 行内商品编码框 name 前缀


@dataclass
class SessionConfig:
    """
    会话配置

    浏览器地址、交易类型、Schema 文件。
    """
    transaction_type: str = 'default'
    browser_addr: str = '127.0.0.1:9222'
    schema_file: Optional[str] = None


def _get_env_float(key: str, default: float) -> float:
    """从环境变量获取浮点数配置"""
    value = os.environ.get(key)
    if value:
        try:
            return float(value)
        except ValueError:
            pass
    return default


def _get_env_int(key: str, default: int) -> int:
    """从环境变量获取整数配置"""
    value = os.environ.get(key)
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return default


def _get_env_bool(key: str, default: bool) -> bool:
    """从环境变量获取布尔配置"""
    value = os.environ.get(key)
    if value:
        return value.strip().lower() in ('1', 'true', 'yes', 'y', 'on')
    return default


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key) or default


def _load_compression() -> CompressionConfig:
    return CompressionConfig(
        target_kb=_get_env_int('ROWPILOT_TARGET_KB', 100),
        max_images=_get_env_int('ROWPILOT_MAX_IMAGES', 50),
    )


def _load_document() -> DocumentConfig:
    return DocumentConfig(
        pdf_max_pages=_get_env_int('ROWPILOT_PDF_MAX_PAGES', 88),
        pdf_scale=_get_env_float('ROWPILOT_PDF_SCALE', 1.5),
    )


def _load_extraction() -> ExtractionConfig:
    return ExtractionConfig(
        model=_get_env_str('ROWPILOT_MODEL', 'gemini-2.5-flash-lite'),
        api_key=os.environ.get('ROWPILOT_API_KEY') or os.environ.get('GEMINI_API_KEY', ''),
        request_timeout=_get_env_float('ROWPILOT_REQUEST_TIMEOUT', 60.0),
    )


def _load_filler() -> FillerConfig:
    return FillerConfig(
        row_timeout=_get_env_float('ROWPILOT_ROW_TIMEOUT', 2.5),
        stable_pre=_get_env_float('ROWPILOT_STABLE_PRE', 0.1),
        stable_pre_budget=_get_env_float('ROWPILOT_STABLE_PRE_BUDGET', 0.4),
        stable_post=_get_env_float('ROWPILOT_STABLE_POST', 0.15),
        stable_post_budget=_get_env_float('ROWPILOT_STABLE_POST_BUDGET', 0.6),
        typing_animation=_get_env_bool('ROWPILOT_TYPING', False),
    )


def _load_session() -> SessionConfig:
    return SessionConfig(
        transaction_type=_get_env_str('ROWPILOT_TXN_TYPE', 'default'),
        browser_addr=_get_env_str('ROWPILOT_BROWSER_ADDR', '127.0.0.1:9222'),
        schema_file=os.environ.get('ROWPILOT_SCHEMA_FILE') or None,
    )


# ============================================================
# 全局配置实例
# ============================================================

# 压缩配置
compression_config = _load_compression()

# 文档配置
document_config = _load_document()

# 提取配置
extraction_config = _load_extraction()

# 填充配置
filler_config = _load_filler()

# 宿主 DOM 约定
host_dom_config = HostDomConfig()

# 会话配置
session_config = _load_session()


# ============================================================
# 便捷函数
# ============================================================

def reload_config():
    """
    重新加载配置

    从环境变量重新读取配置。
    """
    global compression_config, document_config, extraction_config, filler_config, session_config

    compression_config = _load_compression()
    document_config = _load_document()
    extraction_config = _load_extraction()
    filler_config = _load_filler()
    session_config = _load_session()
