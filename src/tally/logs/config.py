# -*- coding: utf-8 -*-
"""
日志配置模块

支持：
- 多种日志格式（glog、text、json）
- 多种日志级别
- 输出到 stdout 或 stderr
"""

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .formatter import GlogFormatter, JsonFormatter, TextFormatter


class LogFormatter(str, Enum):
    """日志格式枚举"""
    GLOG = "glog"
    TEXT = "text"
    JSON = "json"


class LogLevel(str, Enum):
    """日志级别枚举"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    CRITICAL = "critical"


class LogRedirect(str, Enum):
    """日志输出目标枚举"""
    STDOUT = "stdout"
    STDERR = "stderr"


LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


@dataclass
class LogConfig:
    """
    日志配置

    Attributes:
        formatter: 日志格式（glog、text、json）
        level: 日志级别
        redirect: 输出目标（stdout、stderr）
        report_caller: 是否报告调用者信息
        enable_colors: 是否启用颜色输出
        logger_name: 安装到哪个 logger，空字符串表示根 logger
    """
    formatter: str = "glog"
    level: str = "info"
    redirect: str = "stdout"
    report_caller: bool = True
    enable_colors: bool = False
    logger_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        """从字典创建配置，未知键忽略"""
        return cls(
            formatter=data.get("formatter", "glog"),
            level=data.get("level", "info"),
            redirect=data.get("redirect", "stdout"),
            report_caller=data.get("report_caller", True),
            enable_colors=data.get("enable_colors", False),
            logger_name=data.get("logger_name", ""),
        )


def _create_formatter(config: LogConfig) -> logging.Formatter:
    name = config.formatter.lower()
    if name == LogFormatter.GLOG.value:
        return GlogFormatter(
            enable_colors=config.enable_colors,
            report_caller=config.report_caller,
        )
    if name == LogFormatter.JSON.value:
        return JsonFormatter(report_caller=config.report_caller)
    return TextFormatter(report_caller=config.report_caller)


def install_logs(config: Optional[LogConfig] = None) -> logging.Logger:
    """
    安装日志配置

    清除目标 logger 上已有的处理器，再挂上新的处理器。

    Args:
        config: 日志配置，如果为 None 则使用默认配置

    Returns:
        被配置的 logger
    """
    if config is None:
        config = LogConfig()

    level = LEVEL_MAP.get(config.level.lower(), logging.INFO)
    stream = sys.stderr if config.redirect.lower() == LogRedirect.STDERR.value else sys.stdout

    target = logging.getLogger(config.logger_name or None)
    target.setLevel(level)
    target.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(_create_formatter(config))
    target.addHandler(handler)

    logging.getLogger(__name__).info(
        "logs installed: level=%s, formatter=%s, redirect=%s",
        config.level,
        config.formatter,
        config.redirect,
    )
    return target


def get_logger(name: Optional[str] = None, **fields: Any) -> logging.Logger:
    """
    获取日志记录器

    Args:
        name: 日志记录器名称
        **fields: 附加到每条日志的字段（如 meter="my.module"）
    """
    logger = logging.getLogger(name)
    if fields:
        return LoggerAdapter(logger, fields)
    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """把固定字段作为 extra_fields 附加到日志记录上"""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra["extra_fields"] = dict(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs
