# -*- coding: utf-8 -*-
"""
MetricService 服务类

提供：
- 统一的初始化入口
- 配置驱动的后端安装（参考实现 / OpenTelemetry）
- 支持 YAML 配置文件
"""

import logging
from typing import Optional

from tally.config import (
    BackendType,
    ReaderType,
    TallyConfig,
    load_config,
    load_config_from_file,
)
from tally.logs import LogConfig, install_logs
from tally.metric.meter import Meter
from tally.metric.provider import (
    DefaultMeterProvider,
    MeterProvider,
    get_meter,
    set_meter_provider,
)
from tally.otel.meter import OtelMeterProvider
from tally.otel.pipeline import (
    InMemoryReaderBuilder,
    MetricPipeline,
    ReaderBuilder,
    StdoutReaderBuilder,
    create_resource,
)

logger = logging.getLogger(__name__)


class MetricService:
    """
    Metric 服务

    示例:
        ```python
        # 从 YAML 配置文件创建
        service = MetricService.from_config_file("config.yaml")
        service.install()

        # 使用 Builder
        config = (
            TallyConfigBuilder()
            .with_resource(service_name="my-service")
            .with_otel_stdout(collect_interval="30s")
            .build()
        )
        service = MetricService(config).install()

        counter = service.meter.long_counter_builder("requests").build()
        counter.add(1)

        service.shutdown()
        ```
    """

    def __init__(self, config: TallyConfig):
        self._config = config
        self._pipeline: Optional[MetricPipeline] = None
        self._memory_reader_builder: Optional[InMemoryReaderBuilder] = None
        self._provider: Optional[MeterProvider] = None

    @classmethod
    def from_config_file(cls, config_file: str) -> "MetricService":
        """从 YAML 配置文件创建"""
        return cls(load_config_from_file(config_file))

    @classmethod
    def from_config_dict(cls, config_dict: dict) -> "MetricService":
        """从配置字典创建"""
        return cls(load_config(config_dict=config_dict))

    def _create_reader_builder(self) -> Optional[ReaderBuilder]:
        otel_config = self._config.otel

        if otel_config.reader_type == ReaderType.STDOUT:
            return StdoutReaderBuilder(
                pretty_print=otel_config.stdout.pretty_print,
                export_interval_ms=int(otel_config.collect_interval_seconds * 1000),
            )
        if otel_config.reader_type == ReaderType.MEMORY:
            self._memory_reader_builder = InMemoryReaderBuilder()
            return self._memory_reader_builder

        return None

    def _install_otel(self) -> MeterProvider:
        resource_config = self._config.resource
        resource = create_resource(
            service_name=resource_config.service_name,
            service_version=resource_config.service_version,
            attributes=resource_config.attributes,
        )
        reader_builder = self._create_reader_builder()

        self._pipeline = MetricPipeline(
            resource=resource,
            reader_builders=[reader_builder] if reader_builder else [],
        )
        otel_provider = self._pipeline.install(set_global=self._config.otel.set_global)
        return OtelMeterProvider(otel_provider)

    def install_logs(self) -> None:
        """按配置安装日志"""
        logs_config = self._config.logs
        if not logs_config.enabled:
            return
        install_logs(
            LogConfig(
                formatter=logs_config.formatter,
                level=logs_config.level,
                redirect=logs_config.redirect,
                report_caller=logs_config.report_caller,
            )
        )

    def install(self) -> "MetricService":
        """
        安装所有组件

        按顺序安装：
        1. 日志
        2. MeterProvider（设置为进程级 Provider）

        Returns:
            self（支持链式调用）
        """
        self.install_logs()

        if not self._config.enabled:
            logger.info("Tally is disabled, using DefaultMeterProvider")
            self._provider = DefaultMeterProvider()
        elif self._config.backend == BackendType.OPENTELEMETRY:
            self._provider = self._install_otel()
        else:
            self._provider = DefaultMeterProvider()

        set_meter_provider(self._provider)

        logger.info(
            "Metric service installed: backend=%s, reader_type=%s",
            self._config.backend.value,
            self._config.otel.reader_type.value,
        )
        return self

    def shutdown(self) -> None:
        """关闭 SDK 管道并恢复参考实现"""
        if self._pipeline:
            self._pipeline.shutdown()
            self._pipeline = None
        set_meter_provider(DefaultMeterProvider())
        self._provider = None
        logger.info("Metric service shutdown completed")

    @property
    def config(self) -> TallyConfig:
        return self._config

    @property
    def provider(self) -> Optional[MeterProvider]:
        return self._provider

    @property
    def pipeline(self) -> Optional[MetricPipeline]:
        return self._pipeline

    @property
    def memory_reader(self):
        """ReaderType.MEMORY 时的 InMemoryMetricReader"""
        if self._memory_reader_builder:
            return self._memory_reader_builder.reader
        return None

    @property
    def meter(self) -> Meter:
        """按配置的 Meter 名称获取进程级 Meter"""
        return get_meter(self._config.meter.name, self._config.meter.version)
