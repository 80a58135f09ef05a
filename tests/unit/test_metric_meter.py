"""
Meter 与 InstrumentBuilder 测试
"""

import pytest

from tally.metric import (
    ERROR_MESSAGE_INVALID_NAME,
    NAME_MAX_LENGTH,
    BatchRecorder,
    Counter,
    DefaultMeter,
    InstrumentBuilder,
    InstrumentKind,
    InvalidArgumentError,
    NumberType,
    SumObserver,
    UpDownCounter,
    UpDownSumObserver,
    ValueObserver,
    ValueRecorder,
)

BUILDER_FACTORIES = [
    ("double_counter_builder", Counter, NumberType.DOUBLE),
    ("long_counter_builder", Counter, NumberType.LONG),
    ("double_up_down_counter_builder", UpDownCounter, NumberType.DOUBLE),
    ("long_up_down_counter_builder", UpDownCounter, NumberType.LONG),
    ("double_value_recorder_builder", ValueRecorder, NumberType.DOUBLE),
    ("long_value_recorder_builder", ValueRecorder, NumberType.LONG),
    ("double_sum_observer_builder", SumObserver, NumberType.DOUBLE),
    ("long_sum_observer_builder", SumObserver, NumberType.LONG),
    ("double_up_down_sum_observer_builder", UpDownSumObserver, NumberType.DOUBLE),
    ("long_up_down_sum_observer_builder", UpDownSumObserver, NumberType.LONG),
    ("double_value_observer_builder", ValueObserver, NumberType.DOUBLE),
    ("long_value_observer_builder", ValueObserver, NumberType.LONG),
]


class TestDefaultMeter:
    """DefaultMeter 测试"""

    def test_singleton(self):
        """测试单例"""
        assert DefaultMeter.get_instance() is DefaultMeter.get_instance()

    @pytest.mark.parametrize("factory, cls, number_type", BUILDER_FACTORIES)
    def test_factories_build_expected_kind(self, meter, factory, cls, number_type):
        """测试每个工厂方法构建出对应种类的指标"""
        instrument = getattr(meter, factory)("metric").build()
        assert isinstance(instrument, cls)
        assert instrument.number_type == number_type
        assert instrument.name == "metric"

    @pytest.mark.parametrize("factory, cls, number_type", BUILDER_FACTORIES)
    def test_none_name(self, meter, factory, cls, number_type):
        """测试名称为 None"""
        with pytest.raises(InvalidArgumentError, match="name must not be None"):
            getattr(meter, factory)(None)

    @pytest.mark.parametrize("factory, cls, number_type", BUILDER_FACTORIES)
    @pytest.mark.parametrize("name", ["", "x" * (NAME_MAX_LENGTH + 1), "请求数"])
    def test_invalid_name(self, meter, factory, cls, number_type, name):
        """测试非法名称"""
        with pytest.raises(InvalidArgumentError) as exc_info:
            getattr(meter, factory)(name)
        assert str(exc_info.value) == ERROR_MESSAGE_INVALID_NAME

    def test_max_length_name(self, meter):
        """测试最大长度名称"""
        meter.long_counter_builder("x" * NAME_MAX_LENGTH).build()

    def test_double_value_recorder_builder_none(self, meter):
        """测试 double_value_recorder_builder(None) 在返回构建器之前失败"""
        with pytest.raises(InvalidArgumentError):
            meter.double_value_recorder_builder(None)

    def test_builders_are_independent(self, meter):
        """测试每次返回新的构建器"""
        b1 = meter.long_counter_builder("a")
        b2 = meter.long_counter_builder("a")
        assert b1 is not b2
        b1.set_description("first")
        assert b2.build().descriptor.description == ""

    def test_generic_builder(self, meter):
        """测试通用 builder 方法"""
        builder = meter.builder(InstrumentKind.VALUE_RECORDER, NumberType.LONG, "latency")
        assert isinstance(builder, InstrumentBuilder)
        assert builder.kind == InstrumentKind.VALUE_RECORDER
        assert isinstance(builder.build(), ValueRecorder)

    def test_new_batch_recorder(self, meter):
        """测试创建 BatchRecorder"""
        recorder = meter.new_batch_recorder(["host", "a"])
        assert isinstance(recorder, BatchRecorder)
        assert recorder.labels == {"host": "a"}
        assert meter.new_batch_recorder() is not recorder

    def test_new_batch_recorder_validates_labels(self, meter):
        """测试 BatchRecorder 的 Label 立即校验"""
        with pytest.raises(InvalidArgumentError):
            meter.new_batch_recorder(["host"])
        with pytest.raises(InvalidArgumentError):
            meter.new_batch_recorder([None, "a"])


class TestInstrumentBuilder:
    """InstrumentBuilder 测试"""

    def test_defaults(self, meter):
        """测试默认值"""
        descriptor = meter.double_counter_builder("c").build().descriptor
        assert descriptor.description == ""
        assert descriptor.unit == "1"
        assert descriptor.constant_labels == {}
        assert descriptor.kind == InstrumentKind.COUNTER

    def test_round_trip(self, meter):
        """测试构建后可以读回配置"""
        instrument = (
            meter.long_value_recorder_builder("latency")
            .set_description("d")
            .set_unit("u")
            .set_constant_labels({"a": "b"})
            .build()
        )
        descriptor = instrument.descriptor
        assert descriptor.description == "d"
        assert descriptor.unit == "u"
        assert descriptor.constant_labels == {"a": "b"}

    def test_constant_labels_keep_order(self, meter):
        """测试常量 Label 保持调用方顺序"""
        labels = {"z": "1", "a": "2", "m": "3"}
        instrument = meter.long_counter_builder("c").set_constant_labels(labels).build()
        assert list(instrument.descriptor.constant_labels) == ["z", "a", "m"]

    def test_constant_labels_copied(self, meter):
        """测试常量 Label 拷贝保存"""
        labels = {"a": "b"}
        builder = meter.long_counter_builder("c").set_constant_labels(labels)
        labels["c"] = "d"
        assert builder.build().descriptor.constant_labels == {"a": "b"}

    def test_fluent(self, meter):
        """测试链式调用返回同一个构建器"""
        builder = meter.long_counter_builder("c")
        assert builder.set_description("d") is builder
        assert builder.set_unit("u") is builder
        assert builder.set_constant_labels({}) is builder

    @pytest.mark.parametrize("setter", ["set_description", "set_unit", "set_constant_labels"])
    def test_none_argument(self, meter, setter):
        """测试参数为 None"""
        builder = meter.double_up_down_counter_builder("c")
        with pytest.raises(InvalidArgumentError):
            getattr(builder, setter)(None)

    def test_constant_labels_none_key(self, meter):
        """测试常量 Label 中 None 键"""
        with pytest.raises(InvalidArgumentError):
            meter.long_sum_observer_builder("c").set_constant_labels({None: "v"})

    def test_build_returns_new_instances(self, meter):
        """测试每次 build 返回新的指标"""
        builder = meter.long_counter_builder("c")
        assert builder.build() is not builder.build()
