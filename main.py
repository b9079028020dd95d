"""
RowPilot - 单据图片识别并自动添加表单行

程序入口: 识别图片/PDF 中的行项目，并在已打开的宿主网页中逐行添加。

用法:
    python main.py invoice1.jpg invoice2.pdf --txn default --addr 127.0.0.1:9222

退出码:
    0 完成（包括没有提取到数据）
    1 批次被中止或流程出错
    2 启动失败（Schema 不可用 / 浏览器无法连接）
"""

import argparse
import logging
import os
import sys

# 确保程序根目录在 Python 路径中
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rowpilot.config import session_config
from rowpilot.application.orchestrator.ocr_session_controller import OcrSessionController
from rowpilot.domain.errors import BatchAbortedError, BrowserConnectionError, RowPilotError, SchemaUnavailableError
from rowpilot.domain.schema import init_schema
from rowpilot.infrastructure.browser import BrowserManager, DrissionHostPage
from rowpilot.infrastructure.llm import GeminiVisionClient
from rowpilot.utils.logger import get_logger, setup_logging

logger = get_logger("rowpilot.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rowpilot",
        description="识别单据图片中的行项目，并在宿主网页中自动添加行",
    )
    parser.add_argument("files", nargs="+", help="图片或 PDF 文件")
    parser.add_argument("--txn", default=session_config.transaction_type, help="交易类型（默认 %(default)s）")
    parser.add_argument("--addr", default=session_config.browser_addr, help="浏览器调试地址（默认 %(default)s）")
    parser.add_argument("--schema", default=session_config.schema_file, help="自定义 Schema JSON 文件")
    parser.add_argument("--target-kb", type=int, default=None, help="单张图片压缩目标大小(KB)")
    parser.add_argument("--url", default=None, help="宿主标签页 URL 关键字（默认当前标签页）")
    parser.add_argument("--log-file", default=None, help="日志文件路径")
    parser.add_argument("--verbose", action="store_true", help="输出调试日志")
    return parser


def main(argv=None) -> int:
    """程序入口"""
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    # 启动阶段: Schema 与浏览器都是致命依赖
    try:
        registry = init_schema(args.schema)
    except SchemaUnavailableError as e:
        logger.critical(f"❌ {e}")
        return 2

    if not registry.has_profile(args.txn):
        logger.warning(f"⚠️ 交易类型 '{args.txn}' 未定义，将使用 default 字段集")

    try:
        tab = BrowserManager(args.addr).get_host_tab(args.url)
    except BrowserConnectionError as e:
        logger.critical(f"❌ {e}")
        return 2

    controller = OcrSessionController(DrissionHostPage(tab), GeminiVisionClient())

    try:
        result = controller.run(args.files, transaction_type=args.txn, target_kb=args.target_kb)
    except BatchAbortedError as e:
        done = sum(1 for r in e.results if r is not None)
        logger.error(f"🛑 {e}（已完成 {done} 行）")
        return 1
    except RowPilotError as e:
        logger.error(f"❌ {e}")
        return 1

    print(f"{result.success_count}/{result.attempted_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
