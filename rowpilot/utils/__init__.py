"""
Utils 模块初始化文件
"""

from .logger import get_logger, log, setup_logging
from .port_check import PortChecker, split_addr

__all__ = [
    'get_logger',
    'setup_logging',
    'log',
    'PortChecker',
    'split_addr',
]
