# -*- coding: utf-8 -*-
"""
Tally Logs - 日志库

支持：
- 多种日志格式（glog、text、json）
- 标准输出/标准错误输出
"""

from .config import (
    LogConfig,
    LogFormatter,
    LogLevel,
    LogRedirect,
    install_logs,
    get_logger,
)
from .formatter import GlogFormatter, JsonFormatter, TextFormatter

__all__ = [
    # 配置类
    "LogConfig",
    "LogFormatter",
    "LogLevel",
    "LogRedirect",
    # 核心函数
    "install_logs",
    "get_logger",
    # 格式化器
    "GlogFormatter",
    "JsonFormatter",
    "TextFormatter",
]
