#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
pytest 配置文件

提供测试夹具和配置
"""

import sys
from pathlib import Path
from typing import Dict, List

import pytest

# 将 src 目录添加到 Python 路径
ROOT_DIR = Path(__file__).parent.parent
SRC_DIR = ROOT_DIR / "src"
sys.path.insert(0, str(SRC_DIR))

from opentelemetry.sdk.metrics import MeterProvider  # noqa: E402
from opentelemetry.sdk.metrics.export import InMemoryMetricReader  # noqa: E402

from tally.metric import DefaultMeter, reset_meter_provider  # noqa: E402
from tally.otel import OtelMeter  # noqa: E402


@pytest.fixture(scope="function")
def meter() -> DefaultMeter:
    """参考实现 Meter"""
    return DefaultMeter.get_instance()


@pytest.fixture(autouse=True)
def _reset_global_provider():
    """每个测试前后恢复进程级 MeterProvider"""
    reset_meter_provider()
    yield
    reset_meter_provider()


@pytest.fixture(scope="function")
def memory_reader() -> InMemoryMetricReader:
    """内存读取器"""
    return InMemoryMetricReader()


@pytest.fixture(scope="function")
def sdk_provider(memory_reader):
    """带内存读取器的 SDK MeterProvider"""
    provider = MeterProvider(metric_readers=[memory_reader])
    yield provider
    provider.shutdown()


@pytest.fixture(scope="function")
def otel_meter(sdk_provider) -> OtelMeter:
    """OpenTelemetry 后端 Meter"""
    return OtelMeter(sdk_provider.get_meter("tally.tests"))


def collect_points(reader: InMemoryMetricReader) -> Dict[str, List]:
    """采集一次，返回 {指标名: 数据点列表}"""
    points: Dict[str, List] = {}
    data = reader.get_metrics_data()
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                points.setdefault(metric.name, []).extend(metric.data.data_points)
    return points
