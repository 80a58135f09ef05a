# -*- coding: utf-8 -*-
"""
Instrument 构建器

所有指标种类共用一个按 (kind, number_type) 参数化的构建器，
支持链式调用：

    counter = (
        meter.double_counter_builder("bytes_sent")
        .set_description("Bytes sent to clients")
        .set_unit("By")
        .set_constant_labels({"region": "eu"})
        .build()
    )

构建器不是线程共享的，build() 之前只能由一个调用方使用。
"""

from typing import TYPE_CHECKING, Dict, Mapping

from tally.metric.instrument import (
    Instrument,
    InstrumentDescriptor,
    InstrumentKind,
    NumberType,
)
from tally.metric.utils import check_map_keys_not_null, check_not_null

if TYPE_CHECKING:
    from tally.metric.meter import Meter


class InstrumentBuilder:
    """Instrument 构建器"""

    def __init__(
        self,
        meter: "Meter",
        name: str,
        kind: InstrumentKind,
        number_type: NumberType,
    ):
        self._meter = meter
        self._name = name
        self._kind = kind
        self._number_type = number_type
        self._description = ""
        self._unit = "1"
        self._constant_labels: Dict[str, str] = {}

    @property
    def kind(self) -> InstrumentKind:
        return self._kind

    @property
    def number_type(self) -> NumberType:
        return self._number_type

    def set_description(self, description: str) -> "InstrumentBuilder":
        """设置描述"""
        self._description = check_not_null(description, "description")
        return self

    def set_unit(self, unit: str) -> "InstrumentBuilder":
        """设置单位"""
        self._unit = check_not_null(unit, "unit")
        return self

    def set_constant_labels(self, constant_labels: Mapping[str, str]) -> "InstrumentBuilder":
        """
        设置常量 Label

        保存一份拷贝，后续修改传入的字典不影响构建结果。
        """
        check_not_null(constant_labels, "constant_labels")
        check_map_keys_not_null(constant_labels, "constant_labels")
        self._constant_labels = dict(constant_labels)
        return self

    def build(self) -> Instrument:
        """冻结配置并创建 Instrument"""
        descriptor = InstrumentDescriptor(
            name=self._name,
            kind=self._kind,
            number_type=self._number_type,
            description=self._description,
            unit=self._unit,
            constant_labels=dict(self._constant_labels),
        )
        return self._meter._create_instrument(descriptor)
