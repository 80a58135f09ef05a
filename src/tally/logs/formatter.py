# -*- coding: utf-8 -*-
"""
日志格式化器

- GlogFormatter：[LEVEL] [DATETIME] [PID] [FILE:LINE](FUNC) MESSAGE key=value ...
- TextFormatter：DATETIME - NAME - LEVEL - MESSAGE
- JsonFormatter：每条日志一行 JSON
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime

_PID = os.getpid()


def _extra_fields(record: logging.LogRecord) -> dict:
    return getattr(record, "extra_fields", None) or {}


class GlogFormatter(logging.Formatter):
    """
    Glog 风格格式化器

    示例：
    [INFO] [20240917 23:00:00.123456] [12345] [meter.py:10](install) Meter installed
    """

    LEVEL_MAP = {
        logging.DEBUG: "DEBU",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERRO",
        logging.CRITICAL: "FATA",
    }

    COLORS = {
        logging.DEBUG: "\033[37m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        datefmt: str = "%Y%m%d %H:%M:%S",
        enable_colors: bool = False,
        enable_thread_id: bool = False,
        report_caller: bool = True,
    ):
        """
        Args:
            datefmt: 日期格式（后面追加微秒）
            enable_colors: 是否启用颜色（仅终端生效）
            enable_thread_id: 显示线程 ID 而不是进程 ID
            report_caller: 是否输出调用位置
        """
        super().__init__()
        self.datefmt = datefmt
        self.enable_colors = enable_colors
        self.enable_thread_id = enable_thread_id
        self.report_caller = report_caller
        self._is_terminal = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

    def _colorize(self, text: str, level: int) -> str:
        if not self.enable_colors or not self._is_terminal:
            return text
        color = self.COLORS.get(level, "")
        return f"{color}{text}{self.RESET}" if color else text

    def format(self, record: logging.LogRecord) -> str:
        level_text = self.LEVEL_MAP.get(record.levelno, "UNKN")
        parts = [self._colorize(f"[{level_text}]", record.levelno)]

        created = datetime.fromtimestamp(record.created)
        parts.append(f"[{created.strftime(self.datefmt)}.{created.microsecond:06d}]")

        if self.enable_thread_id:
            parts.append(f"[{threading.current_thread().ident}]")
        else:
            parts.append(f"[{_PID}]")

        if self.report_caller:
            filename = os.path.basename(record.pathname)
            parts.append(f"[{filename}:{record.lineno}]({record.funcName})")

        parts.append(record.getMessage())

        for key, value in _extra_fields(record).items():
            parts.append(f"{key}={value}")

        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


class TextFormatter(logging.Formatter):
    """文本格式化器"""

    def __init__(
        self,
        datefmt: str = "%Y-%m-%d %H:%M:%S",
        report_caller: bool = True,
    ):
        if report_caller:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        else:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt=fmt, datefmt=datefmt)


class JsonFormatter(logging.Formatter):
    """JSON 格式化器"""

    def __init__(self, report_caller: bool = True):
        super().__init__()
        self.report_caller = report_caller

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if self.report_caller:
            log_data["file"] = record.pathname
            log_data["line"] = record.lineno
            log_data["function"] = record.funcName

        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)
