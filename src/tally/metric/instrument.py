# -*- coding: utf-8 -*-
"""
Instrument 同步指标实现

提供：
- InstrumentKind / NumberType：指标种类与数值类型
- InstrumentDescriptor：不可变的指标描述
- Counter / UpDownCounter / ValueRecorder：同步指标
- BoundCounter / BoundUpDownCounter / BoundValueRecorder：绑定了固定 Label 的指标

同步指标本身不持有聚合状态，所有调用先做校验，
再交给 MeasurementSink（由后端提供，参考实现中为空）。
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from tally.metric.utils import (
    Labels,
    check_argument,
    check_number,
    labels_to_pairs,
    pairs_to_dict,
)

COUNTERS_CAN_ONLY_INCREASE = "Counters can only increase"


class InstrumentKind(str, Enum):
    """指标种类"""
    COUNTER = "counter"
    UP_DOWN_COUNTER = "up_down_counter"
    VALUE_RECORDER = "value_recorder"
    SUM_OBSERVER = "sum_observer"
    UP_DOWN_SUM_OBSERVER = "up_down_sum_observer"
    VALUE_OBSERVER = "value_observer"

    @property
    def synchronous(self) -> bool:
        """是否为同步指标"""
        return self in (
            InstrumentKind.COUNTER,
            InstrumentKind.UP_DOWN_COUNTER,
            InstrumentKind.VALUE_RECORDER,
        )


class NumberType(str, Enum):
    """数值类型"""
    DOUBLE = "double"
    LONG = "long"


@dataclass(frozen=True)
class InstrumentDescriptor:
    """
    指标描述

    由 Builder 在 build() 时冻结，归 Instrument 所有。
    """
    name: str
    kind: InstrumentKind
    number_type: NumberType
    description: str = ""
    unit: str = "1"
    constant_labels: Dict[str, str] = field(default_factory=dict)


class MeasurementSink:
    """
    度量接收端

    后端通过实现该接口接收已校验的度量值。
    参考实现不设置 sink，所有度量直接丢弃。
    """

    def apply(self, value: Any, label_pairs: Tuple[Any, ...]) -> None:
        """接收一次度量"""
        raise NotImplementedError

    def release(self, label_pairs: Tuple[Any, ...]) -> None:
        """释放某个 Label 组合关联的状态（unbind 时调用）"""
        pass


class Instrument:
    """Instrument 基类"""

    def __init__(self, descriptor: InstrumentDescriptor):
        self._descriptor = descriptor

    @property
    def descriptor(self) -> InstrumentDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def kind(self) -> InstrumentKind:
        return self._descriptor.kind

    @property
    def number_type(self) -> NumberType:
        return self._descriptor.number_type

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"number_type={self.number_type.value!r})"
        )


class BoundInstrument:
    """
    绑定指标基类

    持有 (instrument, 固定 Label)。unbind() 可以重复调用；
    unbind 之后的度量调用仍做数值校验，但不再生效。
    """

    def __init__(self, instrument: "SynchronousInstrument", label_pairs: Tuple[Any, ...]):
        self._instrument = instrument
        self._label_pairs = label_pairs
        self._bound = True
        self._lock = threading.Lock()

    @property
    def instrument(self) -> "SynchronousInstrument":
        return self._instrument

    @property
    def label_pairs(self) -> Tuple[Any, ...]:
        return self._label_pairs

    @property
    def labels(self) -> Dict[Any, Any]:
        return pairs_to_dict(self._label_pairs)

    @property
    def is_bound(self) -> bool:
        return self._bound

    def _apply(self, value: Any) -> None:
        self._instrument._check_value(value)
        if self._bound:
            self._instrument._apply(value, self._label_pairs)

    def unbind(self) -> None:
        """解除绑定，并发调用时只释放一次"""
        with self._lock:
            if not self._bound:
                return
            self._bound = False
        self._instrument._release(self._label_pairs)


class BoundCounter(BoundInstrument):
    """绑定的 Counter"""

    def add(self, value: Any) -> None:
        self._apply(value)


class BoundUpDownCounter(BoundInstrument):
    """绑定的 UpDownCounter"""

    def add(self, value: Any) -> None:
        self._apply(value)


class BoundValueRecorder(BoundInstrument):
    """绑定的 ValueRecorder"""

    def record(self, value: Any) -> None:
        self._apply(value)


class SynchronousInstrument(Instrument):
    """
    同步指标基类

    子类通过 _check_value 声明数值前置条件，
    通过 bound_class 声明 bind() 返回的句柄类型。
    """

    bound_class = BoundInstrument

    def __init__(
        self,
        descriptor: InstrumentDescriptor,
        sink: Optional[MeasurementSink] = None,
    ):
        super().__init__(descriptor)
        self._sink = sink

    def _check_value(self, value: Any) -> None:
        check_number(value)

    def _apply(self, value: Any, label_pairs: Tuple[Any, ...]) -> None:
        if self._sink is not None:
            self._sink.apply(value, label_pairs)

    def _release(self, label_pairs: Tuple[Any, ...]) -> None:
        if self._sink is not None:
            self._sink.release(label_pairs)

    def _measure(self, value: Any, labels: Labels) -> None:
        # Label 校验优先于数值校验
        label_pairs = labels_to_pairs(labels)
        self._check_value(value)
        self._apply(value, label_pairs)

    def bind(self, labels: Labels = None) -> BoundInstrument:
        """
        绑定一组固定 Label

        Args:
            labels: 字典或扁平键值对序列

        Returns:
            绑定后的句柄，调用方用完后应调用 unbind()
        """
        return self.bound_class(self, labels_to_pairs(labels))


class Counter(SynchronousInstrument):
    """
    Counter 计数器

    只增不减，add 的值必须 >= 0。

    示例:
        ```python
        counter = meter.long_counter_builder("requests").set_unit("1").build()
        counter.add(5, {"method": "GET"})

        bound = counter.bind(["method", "POST"])
        bound.add(1)
        bound.unbind()
        ```
    """

    bound_class = BoundCounter

    def _check_value(self, value: Any) -> None:
        super()._check_value(value)
        check_argument(value >= 0, COUNTERS_CAN_ONLY_INCREASE)

    def add(self, value: Any, labels: Labels = None) -> None:
        self._measure(value, labels)

    def bind(self, labels: Labels = None) -> BoundCounter:
        return super().bind(labels)


class UpDownCounter(SynchronousInstrument):
    """UpDownCounter 可增可减的计数器"""

    bound_class = BoundUpDownCounter

    def add(self, value: Any, labels: Labels = None) -> None:
        self._measure(value, labels)

    def bind(self, labels: Labels = None) -> BoundUpDownCounter:
        return super().bind(labels)


class ValueRecorder(SynchronousInstrument):
    """ValueRecorder 记录瞬时值/分布值，无单调性约束"""

    bound_class = BoundValueRecorder

    def record(self, value: Any, labels: Labels = None) -> None:
        self._measure(value, labels)

    def bind(self, labels: Labels = None) -> BoundValueRecorder:
        return super().bind(labels)


SYNCHRONOUS_INSTRUMENTS = {
    InstrumentKind.COUNTER: Counter,
    InstrumentKind.UP_DOWN_COUNTER: UpDownCounter,
    InstrumentKind.VALUE_RECORDER: ValueRecorder,
}


def merge_labels(
    constant_labels: Dict[str, str], label_pairs: Sequence[Any]
) -> Dict[Any, Any]:
    """合并常量 Label 与调用 Label，调用 Label 覆盖同名常量 Label"""
    merged = dict(constant_labels)
    merged.update(pairs_to_dict(label_pairs))
    return merged
