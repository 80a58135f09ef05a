# -*- coding: utf-8 -*-
"""
MeterProvider 与进程级 Meter 访问入口

提供：
- MeterProvider：按 instrumentation 名称获取 Meter
- DefaultMeterProvider：总是返回 DefaultMeter 单例
- get_meter_provider / set_meter_provider / get_meter：进程级访问入口

首次访问时自动安装 DefaultMeterProvider，可以重复调用。
"""

import logging
import threading
from typing import Optional

from tally.metric.meter import DefaultMeter, Meter
from tally.metric.utils import check_not_null

logger = logging.getLogger(__name__)

# ========== 进程级 MeterProvider ==========
_meter_provider: Optional["MeterProvider"] = None
_meter_provider_lock = threading.Lock()


class MeterProvider:
    """MeterProvider 基类"""

    def get_meter(
        self,
        instrumentation_name: str,
        instrumentation_version: str = "",
    ) -> Meter:
        """
        获取 Meter

        Args:
            instrumentation_name: 埋点库名称（通常是模块名）
            instrumentation_version: 埋点库版本

        Returns:
            Meter 实例
        """
        raise NotImplementedError


class DefaultMeterProvider(MeterProvider):
    """参考实现：忽略名称，返回 DefaultMeter 单例"""

    def get_meter(
        self,
        instrumentation_name: str,
        instrumentation_version: str = "",
    ) -> Meter:
        check_not_null(instrumentation_name, "instrumentation_name")
        return DefaultMeter.get_instance()


def get_meter_provider() -> MeterProvider:
    """获取进程级 MeterProvider，首次调用时安装 DefaultMeterProvider"""
    global _meter_provider
    if _meter_provider is None:
        with _meter_provider_lock:
            if _meter_provider is None:
                _meter_provider = DefaultMeterProvider()
    return _meter_provider


def set_meter_provider(provider: MeterProvider) -> None:
    """替换进程级 MeterProvider"""
    global _meter_provider
    check_not_null(provider, "provider")
    with _meter_provider_lock:
        _meter_provider = provider
    logger.info("MeterProvider installed: %s", type(provider).__name__)


def reset_meter_provider() -> None:
    """恢复到首次访问之前的状态（主要用于测试）"""
    global _meter_provider
    with _meter_provider_lock:
        _meter_provider = None


def get_meter(name: str, version: str = "") -> Meter:
    """
    获取 Meter 实例

    示例:
        ```python
        meter = get_meter("my.module")
        counter = meter.long_counter_builder("requests_total").build()
        counter.add(1)
        ```
    """
    return get_meter_provider().get_meter(name, version)
