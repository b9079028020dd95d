"""
识别会话控制器

一次提交的完整流程: 读取源文件 -> 压缩 -> 模型提取 -> 建行填充 -> 等待表格稳定。

原则:
- 不包含任何 UI 代码
- 通过回调与 UI 层通信（日志回调 + 遮罩状态监听）
- 可独立进行单元测试（宿主页面与模型客户端均可注入）

阶段进度:
- 压缩 0% -> 30%
- 提取 30% -> 70%
- 填充 70% -> 100%
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from rowpilot.config import (
    CompressionConfig,
    ExtractionConfig,
    FillerConfig,
    compression_config,
    extraction_config,
    filler_config,
    session_config,
)
from rowpilot.application.progress import (
    PHASE_COMPRESS,
    PHASE_EXTRACT,
    PHASE_FILL,
    LoaderListener,
    LoaderStatus,
    phase_percent,
)
from rowpilot.core.extraction import ExtractionPipeline, compress_image
from rowpilot.core.filler import RowFillEngine
from rowpilot.core.waiters import wait_for_quiet
from rowpilot.domain.entities.row_models import LoaderState, SourceImage
from rowpilot.domain.errors import BatchAbortedError, SessionBusyError
from rowpilot.domain.interfaces.host_page import IHostPage
from rowpilot.domain.interfaces.vision_model import IVisionModel
from rowpilot.domain.schema import get_schema
from rowpilot.infrastructure.documents import load_source_images
from rowpilot.utils.logger import get_logger

Source = Union[str, Path, SourceImage]


@dataclass
class SessionResult:
    """一次提交的结果"""
    rows: List[Optional[int]] = field(default_factory=list)
    success_count: int = 0
    attempted_count: int = 0
    state: LoaderState = LoaderState.IDLE

    @property
    def summary(self) -> str:
        return f"{self.success_count}/{self.attempted_count}"


class OcrSessionController:
    """
    识别会话控制器

    职责:
    - 串联文档读取、压缩、提取、填充
    - 维护遮罩状态与阶段进度
    - 拒绝并发提交
    - 提供停止入口（协作式，在检查点生效）
    """

    def __init__(
        self,
        host: IHostPage,
        client: IVisionModel,
        loader: Optional[LoaderStatus] = None,
        log_callback: Optional[Callable[[str, str], None]] = None,
        progress_callback: Optional[LoaderListener] = None,
        compression: Optional[CompressionConfig] = None,
        extraction: Optional[ExtractionConfig] = None,
        filler: Optional[FillerConfig] = None,
    ):
        """
        Args:
            host: 宿主页面
            client: 视觉模型客户端
            loader: 遮罩状态（默认新建）
            log_callback: 日志回调 (message, level)
            progress_callback: 遮罩监听 (state, text, percent)
        """
        self.host = host
        self.client = client
        self.loader = loader or LoaderStatus()
        self.compression = compression or compression_config
        self.extraction = extraction or extraction_config
        self.filler = filler or filler_config
        self.logger = get_logger(__name__, ui_callback=log_callback)

        if progress_callback:
            self.loader.add_listener(progress_callback)

        self.abort_event = threading.Event()
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def stop(self):
        """请求停止（在下一个检查点生效）"""
        self.abort_event.set()
        self.logger.warning("🛑 用户手动终止，等待当前行完成...")

    def run(
        self,
        sources: Sequence[Source],
        transaction_type: Optional[str] = None,
        target_kb: Optional[int] = None,
    ) -> SessionResult:
        """
        执行一次提交

        Args:
            sources: 文件路径或已读入的图片
            transaction_type: 交易类型，默认取配置
            target_kb: 压缩目标大小

        Returns:
            SessionResult

        Raises:
            SessionBusyError: 已有任务在运行
            SchemaUnavailableError / ConfigurationError: 配置致命错误
            HostAbortError / BatchAbortedError: 批次被中止（携带部分结果）
        """
        if not self._run_lock.acquire(blocking=False):
            raise SessionBusyError("已有识别任务在运行，请等待完成")

        try:
            self.abort_event.clear()
            if self.loader.state.is_terminal:
                self.loader.dismiss()
            self.loader.open('正在准备图片...')

            try:
                return self._execute(sources, transaction_type or session_config.transaction_type, target_kb)
            except Exception as e:
                self.logger.error(f"❌ 识别流程失败: {e}")
                self.loader.finish(LoaderState.ERROR, f"错误: {e}")
                raise
        finally:
            self._run_lock.release()

    # ============================================================
    # 流程
    # ============================================================

    def _execute(self, sources: Sequence[Source], transaction_type: str, target_kb: Optional[int]) -> SessionResult:
        registry = get_schema()

        images = self._load(sources)
        self.logger.info(f"🚀 开始识别: {len(images)} 张图片, 交易类型 {transaction_type}")

        # 1. 压缩 (0% -> 30%)
        compressed: List[SourceImage] = []
        for index, image in enumerate(images):
            compressed.append(compress_image(image, target_kb or self.compression.target_kb, self.compression))
            self.loader.update(
                f"压缩图片 {index + 1}/{len(images)}...",
                phase_percent(PHASE_COMPRESS, index + 1, len(images)),
            )
        self._check_stop()

        # 2. 提取 (30% -> 70%)
        self.loader.update('发送至模型识别...', PHASE_EXTRACT[0])
        pipeline = ExtractionPipeline(self.client, registry.extraction_view(), self.extraction)
        records = pipeline.extract(
            compressed,
            transaction_type,
            on_image=lambda current, total: self.loader.update(
                f"已识别图片 {current}/{total}...", phase_percent(PHASE_EXTRACT, current, total)
            ),
        )
        self._check_stop()

        if not records:
            self.logger.warning("⚠️ 未从图片中提取到数据")
            self.loader.finish(LoaderState.EMPTY, '未从图片中提取到数据')
            return SessionResult(state=LoaderState.EMPTY)

        # 3. 填充 (70% -> 100%)
        self.loader.update('正在添加行...', PHASE_FILL[0])
        engine = RowFillEngine(self.host, registry.dom_view(), self.filler)
        rows = engine.fill_rows(
            records,
            on_progress=lambda current, total: self.loader.update(
                f"正在添加第 {current}/{total} 行...", phase_percent(PHASE_FILL, current, total)
            ),
            transaction_type=transaction_type,
            stop_event=self.abort_event,
        )

        self._wait_settle()

        result = SessionResult(
            rows=rows,
            success_count=sum(1 for r in rows if r is not None),
            attempted_count=len(records),
            state=LoaderState.COMPLETE,
        )
        self.logger.success(f"识别完成: 成功 {result.summary} 行")
        self.loader.finish(LoaderState.COMPLETE, '完成')
        return result

    def _load(self, sources: Sequence[Source]) -> List[SourceImage]:
        """路径交给文档读取器，已读入的图片原样保留，总数受上限约束"""
        images: List[SourceImage] = []
        for source in sources or []:
            if isinstance(source, SourceImage):
                images.append(source)
            else:
                images.extend(load_source_images([source], self.compression))

        if len(images) > self.compression.max_images:
            self.logger.warning(f"⚠️ 图片数量 {len(images)} 超过上限 {self.compression.max_images}，多余部分已丢弃")
            images = images[:self.compression.max_images]
        return images

    def _check_stop(self):
        if self.abort_event.is_set():
            raise BatchAbortedError("用户手动终止", [])

    def _wait_settle(self):
        """整批完成后等待行容器稳定"""
        self.host.begin_watch()
        try:
            wait_for_quiet(
                self.host.ms_since_last_mutation,
                quiet_for=self.filler.settle_quiet,
                budget=self.filler.settle_timeout,
                interval=self.filler.poll_interval,
            )
        finally:
            self.host.end_watch()
