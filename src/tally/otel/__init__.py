# -*- coding: utf-8 -*-
"""
OpenTelemetry 后端模块

提供：
- OtelMeter / OtelMeterProvider：把校验过的度量转交给 OpenTelemetry
- MetricPipeline：SDK MeterProvider 管理（Stdout / InMemory 读取器）
"""

from tally.otel.meter import OtelMeter, OtelMeterProvider, OtelSink
from tally.otel.pipeline import (
    InMemoryReaderBuilder,
    MetricPipeline,
    ReaderBuilder,
    StdoutReaderBuilder,
    create_resource,
)

__all__ = [
    "OtelMeter",
    "OtelMeterProvider",
    "OtelSink",
    "MetricPipeline",
    "ReaderBuilder",
    "StdoutReaderBuilder",
    "InMemoryReaderBuilder",
    "create_resource",
]
