# -*- coding: utf-8 -*-
"""
Meter 指标工厂

提供：
- Meter：所有指标种类的构建器工厂 + BatchRecorder 工厂
- DefaultMeter：只做校验、不做聚合的参考实现（单例）

后端通过覆写 _create_instrument / _create_batch_recorder 接入。
"""

import logging
import threading
from typing import Optional

from tally.metric.batch import BatchRecorder
from tally.metric.builder import InstrumentBuilder
from tally.metric.instrument import (
    SYNCHRONOUS_INSTRUMENTS,
    Instrument,
    InstrumentDescriptor,
    InstrumentKind,
    NumberType,
)
from tally.metric.observer import OBSERVER_INSTRUMENTS
from tally.metric.utils import (
    ERROR_MESSAGE_INVALID_NAME,
    Labels,
    check_argument,
    check_not_null,
    is_valid_metric_name,
    labels_to_pairs,
)

logger = logging.getLogger(__name__)


class Meter:
    """
    Meter 基类

    示例:
        ```python
        meter = DefaultMeter.get_instance()

        counter = meter.long_counter_builder("requests").set_unit("1").build()
        counter.add(5)

        recorder = meter.double_value_recorder_builder("latency").build()
        meter.new_batch_recorder({"host": "a"}).put(counter, 3).put(recorder, 2.5).record()
        ```
    """

    def __init__(self):
        # 同一个 Meter 下所有批次共用，保证批次之间不交错
        self._commit_lock = threading.Lock()

    def builder(
        self,
        kind: InstrumentKind,
        number_type: NumberType,
        name: str,
    ) -> InstrumentBuilder:
        """
        获取指定种类的构建器

        Args:
            kind: 指标种类
            number_type: 数值类型（double/long）
            name: 指标名称

        Returns:
            新的 InstrumentBuilder
        """
        check_not_null(name, "name")
        check_argument(is_valid_metric_name(name), ERROR_MESSAGE_INVALID_NAME)
        return InstrumentBuilder(self, name, InstrumentKind(kind), NumberType(number_type))

    def double_counter_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.COUNTER, NumberType.DOUBLE, name)

    def long_counter_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.COUNTER, NumberType.LONG, name)

    def double_up_down_counter_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.UP_DOWN_COUNTER, NumberType.DOUBLE, name)

    def long_up_down_counter_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.UP_DOWN_COUNTER, NumberType.LONG, name)

    def double_value_recorder_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.VALUE_RECORDER, NumberType.DOUBLE, name)

    def long_value_recorder_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.VALUE_RECORDER, NumberType.LONG, name)

    def double_sum_observer_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.SUM_OBSERVER, NumberType.DOUBLE, name)

    def long_sum_observer_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.SUM_OBSERVER, NumberType.LONG, name)

    def double_up_down_sum_observer_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.UP_DOWN_SUM_OBSERVER, NumberType.DOUBLE, name)

    def long_up_down_sum_observer_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.UP_DOWN_SUM_OBSERVER, NumberType.LONG, name)

    def double_value_observer_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.VALUE_OBSERVER, NumberType.DOUBLE, name)

    def long_value_observer_builder(self, name: str) -> InstrumentBuilder:
        return self.builder(InstrumentKind.VALUE_OBSERVER, NumberType.LONG, name)

    def new_batch_recorder(self, labels: Labels = None) -> BatchRecorder:
        """
        创建批量上报器

        Args:
            labels: 整批共用的 Label（字典或扁平键值对序列）
        """
        return self._create_batch_recorder(labels_to_pairs(labels))

    def _create_instrument(self, descriptor: InstrumentDescriptor) -> Instrument:
        """根据描述创建具体的 Instrument（后端覆写）"""
        raise NotImplementedError

    def _create_batch_recorder(self, label_pairs) -> BatchRecorder:
        return BatchRecorder(label_pairs, commit_lock=self._commit_lock)


class DefaultMeter(Meter):
    """
    参考实现

    只校验参数，不保存任何度量，线程安全。
    """

    _instance: Optional["DefaultMeter"] = None
    _instance_lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "DefaultMeter":
        """获取单例"""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.debug("DefaultMeter created")
        return cls._instance

    def _create_instrument(self, descriptor: InstrumentDescriptor) -> Instrument:
        if descriptor.kind.synchronous:
            return SYNCHRONOUS_INSTRUMENTS[descriptor.kind](descriptor)
        return OBSERVER_INSTRUMENTS[descriptor.kind](descriptor)
