"""
日志

所有模块通过 get_logger(__name__) 获取日志器。会话控制器额外挂上 ui_callback，
让进度界面同步看到同一条消息。

    setup_logging(level=logging.DEBUG, log_file='logs/rowpilot.log')
    logger = get_logger(__name__)
    logger.success("已填充 5/5 行")      # -> "✅ 已填充 5/5 行"
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Literal, Optional

LogLevel = Literal["debug", "info", "success", "warning", "error", "critical"]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TIME_FORMAT = "%H:%M:%S"

# 介于 INFO 与 WARNING 之间
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "success": SUCCESS,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# 第三方库只保留告警以上
_NOISY_LIBRARIES = ("urllib3", "requests", "PIL", "pdf2image", "websocket", "DrissionPage")

UICallback = Callable[[str, str], None]


class RowPilotLogger:
    """
    标准 logging 之上的薄封装

    - success 级别，消息自动加 ✅ 前缀
    - 可选 ui_callback(message, level)，回调异常不会影响主流程
    """

    def __init__(self, name: str, ui_callback: Optional[UICallback] = None):
        self.logger = logging.getLogger(name)
        self.ui_callback = ui_callback

    def _emit(self, level_name: str, message: str, exc_info: bool = False):
        self.logger.log(_LEVELS[level_name], message, exc_info=exc_info)
        if self.ui_callback is None:
            return
        try:
            self.ui_callback(message, level_name)
        except Exception:
            self.logger.debug("UI 日志回调异常", exc_info=True)

    def debug(self, message: str):
        self._emit("debug", message)

    def info(self, message: str):
        self._emit("info", message)

    def success(self, message: str):
        self._emit("success", f"✅ {message}")

    def warning(self, message: str):
        self._emit("warning", message)

    def error(self, message: str, exc_info: bool = False):
        self._emit("error", message, exc_info=exc_info)

    def critical(self, message: str):
        self._emit("critical", message)

    def set_ui_callback(self, callback: Optional[UICallback]):
        self.ui_callback = callback


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: str = DEFAULT_FORMAT
):
    """
    配置根日志器（程序启动时调用一次，重复调用会替换已有 handler）

    Args:
        level: 日志级别
        log_file: 额外写入的日志文件，父目录不存在时自动创建
        format_string: 日志格式
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=TIME_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, ui_callback: Optional[UICallback] = None) -> RowPilotLogger:
    return RowPilotLogger(name, ui_callback)


_default_logger: Optional[RowPilotLogger] = None


def log(message: str, level: LogLevel = "info"):
    """模块外的快捷日志，未知级别按 info 处理"""
    global _default_logger
    if _default_logger is None:
        _default_logger = get_logger("rowpilot")

    getattr(_default_logger, level, _default_logger.info)(message)
