"""
宿主页面适配器 - 基础设施层实现

基于 DrissionPage 的 tab 对象实现 IHostPage 协议。
每个 DOM 操作都是一次 run_js 调用，脚本集中在 ScriptStore 中。

宿主弹出 alert/confirm 时浏览器会阻塞页面脚本，
此时 poll_dialog() 只读取对话框文本、不点击按钮，用户仍能看到它。
"""

import time
from typing import Any, Callable, Optional

from DrissionPage.errors import AlertExistsError

from rowpilot.config import FillerConfig, HostDomConfig, filler_config, host_dom_config
from rowpilot.domain.errors import StockSearchTimeout
from rowpilot.domain.interfaces.host_page import FieldState
from rowpilot.core.waiters import pause, wait_for_condition
from rowpilot.infrastructure.js.script_store import ScriptStore
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)


class DrissionHostPage:
    """
    DrissionPage 宿主页面

    用法:
        tab = BrowserManager(addr).connect()
        host = DrissionHostPage(tab)
        engine = RowFillEngine(host, get_schema().dom_view())
    """

    def __init__(
        self,
        tab: Any,
        dom: Optional[HostDomConfig] = None,
        config: Optional[FillerConfig] = None,
    ):
        self.tab = tab
        self.dom = dom or host_dom_config
        self.config = config or filler_config

    def _run(self, script: str, *args: Any) -> Any:
        """执行脚本；对话框打开期间页面脚本被阻塞，返回 None"""
        try:
            return self.tab.run_js(script, *args)
        except AlertExistsError:
            logger.debug("页面存在未处理的对话框，脚本未执行")
            return None

    # ============================================================
    # 行检测
    # ============================================================

    def current_row_index(self) -> Optional[int]:
        result = self._run(ScriptStore.ROW_INDEX, self.dom.max_row_counter_name, self.dom.row_id_prefix)
        return int(result) if isinstance(result, (int, float)) else None

    def is_row_ready(self, row_index: int) -> bool:
        return bool(self._run(
            ScriptStore.ROW_READY, self.dom.max_row_counter_name, self.dom.row_id_prefix, row_index
        ))

    def click_add_row(self) -> bool:
        clicked = bool(self._run(ScriptStore.CLICK_ADD_ROW, self.dom.add_row_selector))
        if not clicked:
            logger.warning(f"⚠️ 未找到建行按钮 {self.dom.add_row_selector}")
        return clicked

    # ============================================================
    # DOM 变动观测
    # ============================================================

    def begin_watch(self) -> None:
        self._run(ScriptStore.WATCH_INSTALL, self.dom.row_container_selector, self.dom.max_row_counter_name)

    def end_watch(self) -> None:
        # 对话框打开时脚本无法执行，观测器随页面生命周期自然失效
        if self.poll_dialog() is None:
            self._run(ScriptStore.WATCH_UNINSTALL)

    def _watch_state(self) -> dict:
        state = self._run(ScriptStore.WATCH_STATE)
        return state if isinstance(state, dict) else {}

    def ms_since_last_mutation(self) -> float:
        state = self._watch_state()
        # 没有观测器时视为一直静默
        return float(state.get('idle', float('inf'))) if state else float('inf')

    # ============================================================
    # 字段访问
    # ============================================================

    def describe_field(self, name: str) -> FieldState:
        info = self._run(ScriptStore.DESCRIBE_FIELD, name)
        if not isinstance(info, dict) or not info.get('exists'):
            return FieldState(exists=False)
        return FieldState(
            exists=True,
            visible=bool(info.get('visible')),
            readonly=bool(info.get('readonly')),
            input_type=info.get('type') or 'text',
            checked=info.get('checked'),
        )

    def commit_value(self, name: str, value: Any, typing: bool = False, suppress_inline: bool = False) -> bool:
        text = '' if value is None else str(value)
        if typing and not suppress_inline:
            return self._type_value(name, text)
        return bool(self._run(ScriptStore.COMMIT_VALUE, name, text, suppress_inline))

    def _type_value(self, name: str, text: str) -> bool:
        """逐字符输入（keydown/keypress/input/keyup），结束时 change + blur"""
        if not self._run(ScriptStore.TYPE_BEGIN, name):
            return False
        for character in text:
            self._run(ScriptStore.TYPE_CHAR, name, character)
            time.sleep(0.006)
        return bool(self._run(ScriptStore.TYPE_END, name))

    def touch_field(self, name: str) -> bool:
        return bool(self._run(ScriptStore.TOUCH_FIELD, name))

    def toggle_field(self, name: str) -> bool:
        return bool(self._run(ScriptStore.TOGGLE_FIELD, name))

    def prepare_field(self, kind: str, row_index: int) -> None:
        if kind == 'price':
            self._run(ScriptStore.PREPARE_PRICE, row_index)
        elif kind == 'uom':
            self._run(ScriptStore.PREPARE_UOM, row_index)

    def after_row_filled(self) -> None:
        self._run(ScriptStore.AFTER_ROW_FILLED)

    # ============================================================
    # 商品搜索
    # ============================================================

    def search_stock(self, code: str, row_index: int, is_aborted: Callable[[], bool]) -> Optional[str]:
        """
        驱动宿主的商品搜索弹层

        流程: 点击行内编码框 -> 等待搜索框 -> 输入并回车 -> 轮询结果 -> 选中 -> 关闭弹层

        Returns:
            选中项文本；明确无结果（或中止）时返回 None

        Raises:
            StockSearchTimeout: 搜索框未出现，或超时仍无结果
        """
        cfg = self.config
        self._run(ScriptStore.SEARCH_OPEN, f"{self.dom.stock_code_input_base}{row_index}")

        input_ready = wait_for_condition(
            lambda: bool(self._run(ScriptStore.SEARCH_INPUT_READY, self.dom.search_input_selector)),
            timeout=cfg.search_row_timeout,
            interval=cfg.search_row_interval,
            is_aborted=is_aborted,
        )
        if is_aborted():
            return None
        if not input_ready:
            raise StockSearchTimeout(f"搜索框 {self.dom.search_input_selector} 未出现")

        self._run(ScriptStore.SEARCH_SUBMIT, self.dom.search_input_selector, code)
        pause(0.12, is_aborted)
        self._run(ScriptStore.SEARCH_BLUR, self.dom.search_input_selector)

        outcome = {}

        def _poll() -> bool:
            result = self._run(
                ScriptStore.SEARCH_POLL, code, self.dom.search_item_selector, self.dom.search_empty_selector
            )
            if isinstance(result, dict) and result.get('status') in ('selected', 'empty'):
                outcome.update(result)
                return True
            return False

        finished = wait_for_condition(
            _poll, timeout=cfg.search_timeout, interval=cfg.search_interval, is_aborted=is_aborted
        )
        if not finished:
            if is_aborted():
                return None
            raise StockSearchTimeout(f"商品 '{code}' 搜索超时: 既无结果也无空结果提示")

        if outcome['status'] == 'empty':
            logger.info(f"ℹ️ 商品 '{code}' 无搜索结果")
            self._run(ScriptStore.SEARCH_CLOSE, self.dom.search_overlay_selector)
            return None

        # 宿主选中后异步关闭弹层，稍等再兜底关闭
        pause(cfg.search_close_delay, is_aborted)
        self._run(ScriptStore.SEARCH_CLOSE, self.dom.search_overlay_selector)
        if not outcome.get('ok'):
            logger.warning(f"⚠️ 商品 '{code}' 选中项的 onclick 执行失败")
            return None

        selected = outcome.get('text') or code
        logger.info(f"🔎 已选中商品: {selected}")
        return selected

    # ============================================================
    # 宿主对话框
    # ============================================================

    def poll_dialog(self) -> Optional[str]:
        """读取当前对话框文本（不点击任何按钮）"""
        try:
            if not self.tab.states.has_alert:
                return None
            text = self.tab.handle_alert(accept=None, timeout=0)
        except Exception as e:
            logger.debug(f"读取对话框失败: {e}")
            return None
        if text is False:
            return None
        return str(text or 'alert')
