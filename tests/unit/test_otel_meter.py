"""
OpenTelemetry 后端测试

使用 SDK 的 InMemoryMetricReader 验证度量真正到达 OpenTelemetry。
"""

import logging

import pytest
from conftest import collect_points

from tally.metric import (
    COUNTERS_CAN_ONLY_INCREASE,
    Counter,
    InvalidArgumentError,
    ValueObserver,
)
from tally.otel import (
    InMemoryReaderBuilder,
    MetricPipeline,
    OtelMeter,
    OtelMeterProvider,
    create_resource,
)


def _by_attributes(points):
    return {tuple(sorted(dict(p.attributes).items())): p for p in points}


class TestOtelSynchronous:
    """同步指标转交测试"""

    def test_counter(self, otel_meter, memory_reader):
        """测试 Counter 累加"""
        counter = otel_meter.long_counter_builder("requests").set_unit("1").build()
        counter.add(5, {"method": "GET"})
        counter.add(2, ["method", "GET"])
        with pytest.raises(InvalidArgumentError, match=COUNTERS_CAN_ONLY_INCREASE):
            counter.add(-1, {"method": "GET"})

        points = collect_points(memory_reader)["requests"]
        assert len(points) == 1
        assert points[0].value == 7
        assert dict(points[0].attributes) == {"method": "GET"}

    def test_up_down_counter(self, otel_meter, memory_reader):
        """测试 UpDownCounter 可减"""
        counter = otel_meter.long_up_down_counter_builder("queue_size").build()
        counter.add(10)
        counter.add(-4)
        assert collect_points(memory_reader)["queue_size"][0].value == 6

    def test_value_recorder(self, otel_meter, memory_reader):
        """测试 ValueRecorder 映射为 Histogram"""
        recorder = otel_meter.double_value_recorder_builder("latency").set_unit("ms").build()
        recorder.record(1.5)
        recorder.record(2.5)
        point = collect_points(memory_reader)["latency"][0]
        assert point.count == 2
        assert point.sum == pytest.approx(4.0)

    def test_constant_labels_merged(self, otel_meter, memory_reader):
        """测试常量 Label 与调用 Label 合并"""
        counter = (
            otel_meter.long_counter_builder("hits")
            .set_constant_labels({"region": "eu", "method": "default"})
            .build()
        )
        counter.add(1, {"method": "GET"})
        point = collect_points(memory_reader)["hits"][0]
        assert dict(point.attributes) == {"region": "eu", "method": "GET"}

    def test_bound_unbind(self, otel_meter, memory_reader):
        """测试 unbind 之后不再生效"""
        counter = otel_meter.long_counter_builder("bound_hits").build()
        bound = counter.bind({"k": "v"})
        bound.add(1)
        bound.add(2)
        bound.unbind()
        bound.add(100)
        bound.unbind()

        point = collect_points(memory_reader)["bound_hits"][0]
        assert point.value == 3
        assert dict(point.attributes) == {"k": "v"}

    def test_invalid_labels_not_forwarded(self, otel_meter, memory_reader):
        """测试校验失败的调用不产生任何数据"""
        counter = otel_meter.long_counter_builder("rejected").build()
        with pytest.raises(InvalidArgumentError):
            counter.add(1, ["k"])
        assert "rejected" not in collect_points(memory_reader)


class TestOtelRejectedInstrument:
    """SDK 拒绝的名称/单位测试"""

    @pytest.mark.parametrize(
        "name, unit",
        [
            ("1requests", "1"),
            ("http requests", "1"),
            ("a:b", "1"),
            ("requests", "u" * 64),
            ("requests", "µs"),
        ],
    )
    def test_counter_still_validates(self, otel_meter, memory_reader, caplog, name, unit):
        """测试 build 成功、仍做校验，但不上报"""
        with caplog.at_level(logging.WARNING, logger="tally.otel.meter"):
            counter = otel_meter.long_counter_builder(name).set_unit(unit).build()

        assert isinstance(counter, Counter)
        assert "OpenTelemetry rejected instrument" in caplog.text
        counter.add(1, {"k": "v"})
        counter.bind(["k", "v"]).add(2)
        with pytest.raises(InvalidArgumentError, match=COUNTERS_CAN_ONLY_INCREASE):
            counter.add(-1)
        with pytest.raises(InvalidArgumentError):
            counter.add(1, ["k"])
        assert name not in collect_points(memory_reader)

    def test_batch_with_rejected_instrument(self, otel_meter, memory_reader):
        """测试批次中混合被拒绝的 Instrument"""
        rejected = otel_meter.long_counter_builder("1rejected").build()
        accepted = otel_meter.long_counter_builder("accepted").build()
        otel_meter.new_batch_recorder({"k": "v"}).put(rejected, 1).put(accepted, 2).record()

        points = collect_points(memory_reader)
        assert "1rejected" not in points
        assert points["accepted"][0].value == 2

    def test_observer(self, otel_meter, memory_reader):
        """测试 Observer 被拒绝时不上报"""
        observer = otel_meter.double_value_observer_builder("room temperature").build()
        assert isinstance(observer, ValueObserver)
        observer.set_callback(lambda result: result.observe(21.5))
        assert observer.callback is not None
        assert "room temperature" not in collect_points(memory_reader)

    def test_long_valid_name(self, otel_meter, memory_reader):
        """测试最长的合法名称可以正常上报"""
        name = "x" * 255
        otel_meter.long_counter_builder(name).build().add(3)
        assert collect_points(memory_reader)[name][0].value == 3


class TestOtelBatch:
    """批量上报测试"""

    def test_batch_commit(self, otel_meter, memory_reader):
        """测试整批提交"""
        counter = otel_meter.long_counter_builder("counter_x").build()
        recorder = otel_meter.double_value_recorder_builder("recorder_y").build()

        batch = otel_meter.new_batch_recorder(["host", "a"]).put(counter, 3).put(recorder, 2.5)
        assert "counter_x" not in collect_points(memory_reader)

        batch.record()

        points = collect_points(memory_reader)
        assert points["counter_x"][0].value == 3
        assert dict(points["counter_x"][0].attributes) == {"host": "a"}
        assert points["recorder_y"][0].sum == pytest.approx(2.5)


class TestOtelObserver:
    """异步指标测试"""

    def test_value_observer(self, otel_meter, memory_reader):
        """测试 ValueObserver 映射为 ObservableGauge"""
        observer = (
            otel_meter.double_value_observer_builder("temperature")
            .set_constant_labels({"site": "lab"})
            .build()
        )

        def callback(result):
            result.observe(21.5, {"room": "a"})
            result.observe(19.0, {"room": "b"})

        observer.set_callback(callback)

        points = _by_attributes(collect_points(memory_reader)["temperature"])
        assert points[(("room", "a"), ("site", "lab"))].value == pytest.approx(21.5)
        assert points[(("room", "b"), ("site", "lab"))].value == pytest.approx(19.0)

    def test_sum_observer(self, otel_meter, memory_reader):
        """测试 SumObserver 映射为 ObservableCounter"""
        observer = otel_meter.long_sum_observer_builder("cpu_time").build()
        observer.set_callback(lambda result: result.observe(42))
        assert collect_points(memory_reader)["cpu_time"][0].value == 42

    def test_up_down_sum_observer(self, otel_meter, memory_reader):
        """测试 UpDownSumObserver 映射为 ObservableUpDownCounter"""
        observer = otel_meter.long_up_down_sum_observer_builder("memory").build()
        observer.set_callback(lambda result: result.observe(-5))
        assert collect_points(memory_reader)["memory"][0].value == -5

    def test_observer_without_callback(self, otel_meter, memory_reader):
        """测试未设置回调时不上报"""
        otel_meter.long_value_observer_builder("idle").build()
        assert "idle" not in collect_points(memory_reader)


class TestOtelMeterProvider:
    """OtelMeterProvider 测试"""

    def test_meter_cached(self, sdk_provider):
        """测试相同名称返回同一个 Meter"""
        provider = OtelMeterProvider(sdk_provider)
        meter = provider.get_meter("lib", "1.0")
        assert isinstance(meter, OtelMeter)
        assert provider.get_meter("lib", "1.0") is meter
        assert provider.get_meter("lib", "2.0") is not meter

    def test_none_name(self, sdk_provider):
        """测试名称为 None"""
        with pytest.raises(InvalidArgumentError):
            OtelMeterProvider(sdk_provider).get_meter(None)

    def test_none_otel_meter(self):
        """测试 OtelMeter 参数为 None"""
        with pytest.raises(InvalidArgumentError):
            OtelMeter(None)


class TestMetricPipeline:
    """MetricPipeline 测试"""

    def test_install_and_shutdown(self):
        """测试安装、上报与关闭"""
        builder = InMemoryReaderBuilder()
        pipeline = MetricPipeline(
            resource=create_resource("svc", "1.2.3", {"team": "metrics"}),
            reader_builders=[builder],
        )
        sdk_provider = pipeline.install()
        assert pipeline.provider is sdk_provider

        meter = OtelMeterProvider(sdk_provider).get_meter("pipeline.test")
        meter.long_counter_builder("events").build().add(4)

        data = builder.reader.get_metrics_data()
        resource_attrs = dict(data.resource_metrics[0].resource.attributes)
        assert resource_attrs["service.name"] == "svc"
        assert resource_attrs["service.version"] == "1.2.3"
        assert resource_attrs["team"] == "metrics"
        assert collect_points(builder.reader)["events"][0].value == 4

        pipeline.shutdown()
        assert pipeline.provider is None
        pipeline.shutdown()
