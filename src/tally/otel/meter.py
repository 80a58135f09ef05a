# -*- coding: utf-8 -*-
"""
OpenTelemetry 后端

将校验过的度量转交给 OpenTelemetry 的 Instrument：
- Counter → create_counter
- UpDownCounter → create_up_down_counter
- ValueRecorder → create_histogram
- SumObserver → create_observable_counter
- UpDownSumObserver → create_observable_up_down_counter
- ValueObserver → create_observable_gauge

聚合与导出由 OpenTelemetry SDK 负责。
"""

import logging
import threading
from typing import Any, Dict, Iterable, Optional, Tuple

from opentelemetry import metrics
from opentelemetry.metrics import CallbackOptions, Observation

from tally.metric.instrument import (
    SYNCHRONOUS_INSTRUMENTS,
    Instrument,
    InstrumentDescriptor,
    InstrumentKind,
    MeasurementSink,
    merge_labels,
)
from tally.metric.meter import Meter
from tally.metric.observer import OBSERVER_INSTRUMENTS, Observer
from tally.metric.provider import MeterProvider
from tally.metric.utils import check_not_null

logger = logging.getLogger(__name__)


class OtelSink(MeasurementSink):
    """把度量写入一个 OpenTelemetry 同步 Instrument"""

    def __init__(self, descriptor: InstrumentDescriptor, otel_instrument: Any):
        self._descriptor = descriptor
        self._otel_instrument = otel_instrument
        if descriptor.kind == InstrumentKind.VALUE_RECORDER:
            self._write = otel_instrument.record
        else:
            self._write = otel_instrument.add

    @property
    def otel_instrument(self) -> Any:
        return self._otel_instrument

    def apply(self, value: Any, label_pairs: Tuple[Any, ...]) -> None:
        self._write(value, attributes=merge_labels(self._descriptor.constant_labels, label_pairs))

    def release(self, label_pairs: Tuple[Any, ...]) -> None:
        # SDK 按属性集合管理聚合状态，这里没有需要释放的句柄
        logger.debug("unbind %s labels=%s", self._descriptor.name, label_pairs)


class OtelMeter(Meter):
    """
    基于 OpenTelemetry 的 Meter

    示例:
        ```python
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import InMemoryMetricReader

        reader = InMemoryMetricReader()
        provider = MeterProvider(metric_readers=[reader])
        meter = OtelMeter(provider.get_meter("my.module"))

        counter = meter.long_counter_builder("requests").build()
        counter.add(1, {"method": "GET"})
        ```
    """

    def __init__(self, otel_meter: metrics.Meter):
        super().__init__()
        self._otel_meter = check_not_null(otel_meter, "otel_meter")

    @property
    def otel_meter(self) -> metrics.Meter:
        return self._otel_meter

    def _create_instrument(self, descriptor: InstrumentDescriptor) -> Instrument:
        """
        创建 Instrument 并注册到 OpenTelemetry

        SDK 对名称和单位的要求比这里更严格（名称以字母开头，
        单位为不超过 63 个字符的 ASCII）。SDK 拒绝时仍返回做校验的
        Instrument，只是度量不再转交。
        """
        if descriptor.kind.synchronous:
            otel_instrument = self._register(descriptor, self._create_synchronous, descriptor)
            sink = OtelSink(descriptor, otel_instrument) if otel_instrument is not None else None
            return SYNCHRONOUS_INSTRUMENTS[descriptor.kind](descriptor, sink=sink)

        observer = OBSERVER_INSTRUMENTS[descriptor.kind](descriptor)
        self._register(descriptor, self._create_observable, descriptor, observer)
        return observer

    def _register(self, descriptor: InstrumentDescriptor, create, *args) -> Any:
        try:
            return create(*args)
        except Exception as e:
            # SDK 校验失败时抛出的是 Exception 本身
            logger.warning(
                "OpenTelemetry rejected instrument, measurements will not be exported: "
                "name=%s, unit=%s, error=%s",
                descriptor.name,
                descriptor.unit,
                e,
            )
            return None

    def _create_synchronous(self, descriptor: InstrumentDescriptor) -> Any:
        kwargs = dict(
            name=descriptor.name,
            unit=descriptor.unit,
            description=descriptor.description,
        )
        if descriptor.kind == InstrumentKind.COUNTER:
            return self._otel_meter.create_counter(**kwargs)
        if descriptor.kind == InstrumentKind.UP_DOWN_COUNTER:
            return self._otel_meter.create_up_down_counter(**kwargs)
        return self._otel_meter.create_histogram(**kwargs)

    def _create_observable(self, descriptor: InstrumentDescriptor, observer: Observer) -> Any:
        constant_labels = descriptor.constant_labels

        def callback(options: CallbackOptions) -> Iterable[Observation]:
            return [
                Observation(value, merge_labels(constant_labels, label_pairs))
                for value, label_pairs in observer.observe()
            ]

        kwargs = dict(
            name=descriptor.name,
            callbacks=[callback],
            unit=descriptor.unit,
            description=descriptor.description,
        )
        if descriptor.kind == InstrumentKind.SUM_OBSERVER:
            return self._otel_meter.create_observable_counter(**kwargs)
        if descriptor.kind == InstrumentKind.UP_DOWN_SUM_OBSERVER:
            return self._otel_meter.create_observable_up_down_counter(**kwargs)
        return self._otel_meter.create_observable_gauge(**kwargs)


class OtelMeterProvider(MeterProvider):
    """
    基于 OpenTelemetry MeterProvider 的 Provider

    同一个 (name, version) 返回同一个 OtelMeter。
    """

    def __init__(self, otel_provider: Optional[metrics.MeterProvider] = None):
        """
        Args:
            otel_provider: OpenTelemetry MeterProvider，默认使用全局 Provider
        """
        self._otel_provider = otel_provider
        self._meters: Dict[Tuple[str, str], OtelMeter] = {}
        self._lock = threading.Lock()

    def get_meter(
        self,
        instrumentation_name: str,
        instrumentation_version: str = "",
    ) -> Meter:
        check_not_null(instrumentation_name, "instrumentation_name")
        key = (instrumentation_name, instrumentation_version)
        with self._lock:
            meter = self._meters.get(key)
            if meter is None:
                provider = self._otel_provider or metrics.get_meter_provider()
                meter = OtelMeter(
                    provider.get_meter(
                        instrumentation_name,
                        version=instrumentation_version or None,
                    )
                )
                self._meters[key] = meter
                logger.debug(
                    "OtelMeter created: name=%s, version=%s",
                    instrumentation_name,
                    instrumentation_version,
                )
        return meter
