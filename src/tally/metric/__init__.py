# -*- coding: utf-8 -*-
"""
Metric 模块

提供指标埋点契约及其参考实现：
- Meter：指标构建器工厂
- Counter / UpDownCounter / ValueRecorder：同步指标
- SumObserver / UpDownSumObserver / ValueObserver：异步指标
- BatchRecorder：批量上报
- MeterProvider：进程级 Meter 访问入口
"""

from tally.metric.batch import BatchRecorder
from tally.metric.builder import InstrumentBuilder
from tally.metric.errors import InvalidArgumentError
from tally.metric.instrument import (
    COUNTERS_CAN_ONLY_INCREASE,
    BoundCounter,
    BoundInstrument,
    BoundUpDownCounter,
    BoundValueRecorder,
    Counter,
    Instrument,
    InstrumentDescriptor,
    InstrumentKind,
    MeasurementSink,
    NumberType,
    SynchronousInstrument,
    UpDownCounter,
    ValueRecorder,
)
from tally.metric.meter import DefaultMeter, Meter
from tally.metric.observer import (
    Observer,
    ObserverResult,
    SumObserver,
    UpDownSumObserver,
    ValueObserver,
)
from tally.metric.provider import (
    DefaultMeterProvider,
    MeterProvider,
    get_meter,
    get_meter_provider,
    reset_meter_provider,
    set_meter_provider,
)
from tally.metric.utils import (
    ERROR_MESSAGE_INVALID_NAME,
    NAME_MAX_LENGTH,
    check_argument,
    check_not_null,
    is_valid_metric_name,
    validate_label_pairs,
)

__all__ = [
    # Meter
    "Meter",
    "DefaultMeter",
    "InstrumentBuilder",
    "BatchRecorder",
    # Provider
    "MeterProvider",
    "DefaultMeterProvider",
    "get_meter",
    "get_meter_provider",
    "set_meter_provider",
    "reset_meter_provider",
    # Instrument
    "Instrument",
    "InstrumentDescriptor",
    "InstrumentKind",
    "NumberType",
    "MeasurementSink",
    "SynchronousInstrument",
    "Counter",
    "UpDownCounter",
    "ValueRecorder",
    "BoundInstrument",
    "BoundCounter",
    "BoundUpDownCounter",
    "BoundValueRecorder",
    "Observer",
    "ObserverResult",
    "SumObserver",
    "UpDownSumObserver",
    "ValueObserver",
    # 校验
    "InvalidArgumentError",
    "COUNTERS_CAN_ONLY_INCREASE",
    "ERROR_MESSAGE_INVALID_NAME",
    "NAME_MAX_LENGTH",
    "is_valid_metric_name",
    "validate_label_pairs",
    "check_not_null",
    "check_argument",
]
