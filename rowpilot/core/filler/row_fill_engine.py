"""
行填充引擎

把有序的行记录写入宿主表单，每条记录一个状态机:

    SEARCH_STOCK -> CREATE_ROW -> STABILIZE_PRE -> FILL_FIELDS -> STABILIZE_POST -> DONE

- SEARCH_STOCK: 仅当记录带有非空商品编码时进入，搜索选中后宿主会自动建行
- CREATE_ROW: 搜索没有建出新行时点击建行按钮，等待新行出现
- STABILIZE_*: 等待行容器 DOM 静默，超出预算也继续
- FILL_FIELDS: 严格按 Schema 规范顺序写入（宿主联动依赖写入顺序）

单行失败（建行/搜索超时）记为 None 并继续；
中止（宿主对话框或外部停止）时不再创建后续行，抛出携带部分结果的异常。
"""

import threading
from typing import Callable, List, Optional, Sequence

from rowpilot.config import FillerConfig, filler_config
from rowpilot.core.cancellation import AbortCoordinator
from rowpilot.core.filler.field_writer import FieldWriter, is_blank
from rowpilot.core.waiters import pause, wait_for_condition, wait_for_quiet
from rowpilot.domain.entities.row_models import RowFillPhase, RowFillState, RowRecord
from rowpilot.domain.errors import RowCreationTimeout, StockSearchTimeout
from rowpilot.domain.interfaces.host_page import IHostPage
from rowpilot.domain.schema import DomSchemaView
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class RowFillEngine:
    """
    行填充引擎

    用法:
        engine = RowFillEngine(host, get_schema().dom_view())
        rows = engine.fill_rows(records, on_progress=lambda cur, total: ...)
    """

    def __init__(
        self,
        host: IHostPage,
        schema_view: DomSchemaView,
        config: Optional[FillerConfig] = None,
    ):
        self.host = host
        self.schema_view = schema_view
        self.config = config or filler_config
        self.writer = FieldWriter(host, self.config)

    def fill_rows(
        self,
        records: Sequence[RowRecord],
        on_progress: Optional[ProgressCallback] = None,
        transaction_type: Optional[str] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> List[Optional[int]]:
        """
        批量建行并填充

        Args:
            records: 行记录
            on_progress: 每完成一行调用 (current, total)，current 从 1 开始
            transaction_type: 交易类型
            stop_event: 外部停止标志

        Returns:
            与 records 等长的列表，每项为宿主分配的行号或 None

        Raises:
            HostAbortError: 批次期间宿主弹出对话框
            BatchAbortedError: 外部停止标志被置位
        """
        records = list(records or [])
        if not records:
            logger.warning("没有可填充的行")
            return []

        coordinator = AbortCoordinator(stop_event, signal_sources=[self.host.poll_dialog])
        results: List[Optional[int]] = []
        total = len(records)

        self.host.begin_watch()
        try:
            for index, record in enumerate(records):
                if coordinator.is_aborted():
                    break

                results.append(self._fill_record(index, record or {}, transaction_type, coordinator))

                if coordinator.is_aborted():
                    break
                self._report(on_progress, index + 1, total)
        finally:
            self.host.end_watch()

        coordinator.raise_if_aborted(results)

        success = sum(1 for r in results if r is not None)
        logger.success(f"已填充 {success}/{total} 行")
        return results

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], current: int, total: int):
        if not on_progress:
            return
        try:
            on_progress(current, total)
        except Exception as e:
            logger.debug(f"进度回调异常: {e}")

    # ============================================================
    # 单行状态机
    # ============================================================

    def _fill_record(
        self,
        index: int,
        record: RowRecord,
        transaction_type: Optional[str],
        coordinator: AbortCoordinator,
    ) -> Optional[int]:
        state = RowFillState(record_index=index)
        state.base_row_index = self.host.current_row_index() or 0

        try:
            if self._wants_stock_search(record, transaction_type):
                state.advance(RowFillPhase.SEARCH_STOCK)
                self._search_stock(state, record, coordinator)

            if state.row_index is None:
                if coordinator.is_aborted():
                    return None
                state.advance(RowFillPhase.CREATE_ROW)
                self._create_row(state, coordinator)
        except (RowCreationTimeout, StockSearchTimeout) as e:
            state.advance(RowFillPhase.FAILED)
            logger.warning(f"⚠️ 第 {index + 1} 条记录未能建行: {e}")
            return None

        if state.row_index is None:
            return None

        state.advance(RowFillPhase.STABILIZE_PRE)
        self._stabilize(self.config.stable_pre, self.config.stable_pre_budget, coordinator)

        state.advance(RowFillPhase.FILL_FIELDS)
        self._fill_fields(state, record, transaction_type, coordinator)

        state.advance(RowFillPhase.STABILIZE_POST)
        state.stable_observed = self._stabilize(
            self.config.stable_post, self.config.stable_post_budget, coordinator
        )

        state.advance(RowFillPhase.DONE)
        logger.info(f"➕ 第 {index + 1} 条记录 -> 行 {state.row_index} ({len(state.written_fields)} 个字段)")
        return state.row_index

    def _wants_stock_search(self, record: RowRecord, transaction_type: Optional[str]) -> bool:
        stock_field = self.schema_view.stock_code_field
        if not stock_field or stock_field not in self.schema_view.fill_order(transaction_type):
            return False
        return not is_blank(record.get(stock_field))

    def _search_stock(self, state: RowFillState, record: RowRecord, coordinator: AbortCoordinator):
        """
        商品搜索；选中后等待宿主建行

        明确无结果或搜索后没有新行时，交给 CREATE_ROW 处理。

        Raises:
            StockSearchTimeout: 搜索超时
        """
        code = str(record[self.schema_view.stock_code_field]).strip()
        selected = self.host.search_stock(code, state.expected_row_index, coordinator.is_aborted)
        if selected is None or coordinator.is_aborted():
            return

        base = state.base_row_index
        created = wait_for_condition(
            lambda: (self.host.current_row_index() or 0) > base,
            timeout=self.config.search_row_timeout,
            interval=self.config.search_row_interval,
            wake=coordinator.wake_event,
            is_aborted=coordinator.is_aborted,
        )
        if created:
            state.row_index = self.host.current_row_index()
            state.from_stock_search = True
        else:
            logger.info(f"ℹ️ 商品 '{code}' 选中后未生成新行，改为直接建行")

    def _create_row(self, state: RowFillState, coordinator: AbortCoordinator):
        """
        点击建行按钮并等待新行出现

        Raises:
            RowCreationTimeout: 建行按钮不存在或等待超时
        """
        if not self.host.click_add_row():
            raise RowCreationTimeout("建行按钮不存在")

        expected = state.expected_row_index
        ready = wait_for_condition(
            lambda: self.host.is_row_ready(expected),
            timeout=self.config.row_timeout,
            interval=self.config.poll_interval,
            wake=coordinator.wake_event,
            is_aborted=coordinator.is_aborted,
        )
        if not ready:
            if coordinator.is_aborted():
                return
            raise RowCreationTimeout(f"等待第 {expected} 行出现超时")
        state.row_index = expected

    def _stabilize(self, quiet_for: float, budget: float, coordinator: AbortCoordinator) -> bool:
        return wait_for_quiet(
            self.host.ms_since_last_mutation,
            quiet_for=quiet_for,
            budget=budget,
            interval=self.config.poll_interval,
            wake=coordinator.wake_event,
            is_aborted=coordinator.is_aborted,
        )

    def _fill_fields(
        self,
        state: RowFillState,
        record: RowRecord,
        transaction_type: Optional[str],
        coordinator: AbortCoordinator,
    ):
        order = self.schema_view.fill_order(transaction_type)

        for cursor, field_id in enumerate(order):
            state.field_cursor = cursor
            if coordinator.is_aborted():
                break
            if field_id not in record or is_blank(record[field_id]):
                continue

            spec = self.schema_view.field(field_id)
            # 搜索建行时这些字段已由宿主带出
            if state.from_stock_search and spec.search_populated:
                continue

            dom_name = spec.dom_name(state.row_index)
            try:
                written = self.writer.write(spec, dom_name, record[field_id], state.row_index)
            except Exception as e:
                logger.warning(f"⚠️ 写入 {dom_name} 失败: {e}")
                continue
            if written:
                state.written_fields.append(field_id)

            pause(self.config.field_pacing, coordinator.is_aborted)

        self.host.after_row_filled()
