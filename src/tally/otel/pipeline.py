# -*- coding: utf-8 -*-
"""
OpenTelemetry SDK 管道

提供：
- Resource 创建
- MetricReader 构建器（Stdout / InMemory）
- MetricPipeline：创建和管理 SDK MeterProvider
"""

import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TextIO

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    InMemoryMetricReader,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

logger = logging.getLogger(__name__)


def create_resource(
    service_name: str,
    service_version: str = "",
    attributes: Optional[Dict[str, str]] = None,
) -> Resource:
    """
    创建 Resource

    Args:
        service_name: 服务名称
        service_version: 服务版本
        attributes: 自定义属性
    """
    attrs = {SERVICE_NAME: service_name}
    if service_version:
        attrs[SERVICE_VERSION] = service_version
    if attributes:
        attrs.update(attributes)
    return Resource.create(attrs)


class ReaderBuilder(ABC):
    """
    MetricReader 构建器基类

    所有读取器实现都需要继承此类。
    """

    @abstractmethod
    def build(self) -> MetricReader:
        pass


class StdoutReaderBuilder(ReaderBuilder):
    """
    Stdout 读取器构建器

    周期性地把指标输出到控制台，调试用。
    """

    def __init__(
        self,
        pretty_print: bool = True,
        out: Optional[TextIO] = None,
        export_interval_ms: int = 60000,
    ):
        self._pretty_print = pretty_print
        self._out = out or sys.stdout
        self._export_interval_ms = export_interval_ms

    def build(self) -> MetricReader:
        indent = 2 if self._pretty_print else None

        def formatter(metrics_data) -> str:
            return metrics_data.to_json(indent=indent) + os.linesep

        exporter = ConsoleMetricExporter(out=self._out, formatter=formatter)

        logger.info("Stdout metric reader created: pretty_print=%s", self._pretty_print)

        return PeriodicExportingMetricReader(
            exporter=exporter,
            export_interval_millis=self._export_interval_ms,
        )


class InMemoryReaderBuilder(ReaderBuilder):
    """
    内存读取器构建器

    采集结果保存在内存中，通过 reader.get_metrics_data() 拉取，测试用。
    """

    def __init__(self):
        self.reader: Optional[InMemoryMetricReader] = None

    def build(self) -> MetricReader:
        self.reader = InMemoryMetricReader()
        return self.reader


class MetricPipeline:
    """
    SDK 管道

    负责：
    - 创建和配置 SDK MeterProvider
    - 管理读取器
    """

    def __init__(
        self,
        resource: Optional[Resource] = None,
        reader_builders: Optional[List[ReaderBuilder]] = None,
    ):
        self._resource = resource or Resource.create({})
        self._reader_builders = list(reader_builders or [])
        self._provider: Optional[MeterProvider] = None

    def install(self, set_global: bool = False) -> MeterProvider:
        """
        创建 SDK MeterProvider

        Args:
            set_global: 是否同时设置为 OpenTelemetry 全局 Provider

        Returns:
            MeterProvider 实例
        """
        readers = [builder.build() for builder in self._reader_builders]

        self._provider = MeterProvider(
            resource=self._resource,
            metric_readers=readers,
        )

        if set_global:
            metrics.set_meter_provider(self._provider)

        logger.info(
            "Metric pipeline installed: readers=%d, set_global=%s",
            len(readers),
            set_global,
        )

        return self._provider

    def shutdown(self) -> None:
        """关闭 MeterProvider"""
        if self._provider:
            self._provider.shutdown()
            self._provider = None
            logger.info("Metric pipeline shutdown completed")

    @property
    def provider(self) -> Optional[MeterProvider]:
        return self._provider
