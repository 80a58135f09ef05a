#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tally 使用示例

演示：
1. 从 YAML 配置文件初始化
2. 使用 Builder 创建配置
3. 同步指标与 bound 指标
4. Observer 回调
5. BatchRecorder 批量上报
"""

import os
from pathlib import Path

from tally.metric import InvalidArgumentError

# ========== 1. 从 YAML 配置文件初始化 ==========


def example_from_config_file():
    """从 YAML 配置文件初始化"""
    from tally.service import MetricService

    config_file = Path(__file__).parent / "config.yaml"
    service = MetricService.from_config_file(str(config_file))
    service.install()

    print("Tally initialized from config file")
    return service


# ========== 2. 使用 Builder 创建配置 ==========


def example_with_builder():
    """使用 Builder 创建配置"""
    from tally.config import TallyConfigBuilder
    from tally.service import MetricService

    config = (
        TallyConfigBuilder()
        .with_meter("example.shop", "1.0.0")
        .with_resource(service_name="example-shop", service_version="1.0.0")
        .with_otel_stdout(pretty_print=True, collect_interval="10s")
        .with_logs(level="info")
        .build()
    )

    service = MetricService(config)
    service.install()

    print("Tally initialized with Builder")
    return service


# ========== 3. 同步指标 ==========


def example_synchronous(meter):
    """Counter / UpDownCounter / ValueRecorder"""
    requests = (
        meter.long_counter_builder("requests_total")
        .set_description("number of handled requests")
        .set_unit("1")
        .set_constant_labels({"component": "api"})
        .build()
    )
    requests.add(1, {"method": "GET", "status": "200"})
    requests.add(1, ["method", "POST", "status", "201"])

    try:
        requests.add(-1)
    except InvalidArgumentError as e:
        print(f"rejected: {e}")

    in_flight = meter.long_up_down_counter_builder("requests_in_flight").build()
    in_flight.add(1)
    in_flight.add(-1)

    latency = meter.double_value_recorder_builder("request_duration_ms").set_unit("ms").build()

    # 热路径上提前绑定 Label
    bound = latency.bind({"handler": "index"})
    for cost in (12.5, 8.1, 30.2):
        bound.record(cost)
    bound.unbind()

    print("Synchronous instrument examples completed")


# ========== 4. Observer ==========


def example_observer(meter):
    """注册采集回调"""
    observer = meter.long_up_down_sum_observer_builder("process_pid").build()
    observer.set_callback(lambda result: result.observe(os.getpid(), {"host": "local"}))

    cpu = meter.double_sum_observer_builder("process_cpu_seconds").set_unit("s").build()
    cpu.set_callback(lambda result: result.observe(sum(os.times()[:2])))

    print("Observer examples completed")


# ========== 5. BatchRecorder ==========


def example_batch(meter):
    """多个指标共用一组 Label 一次提交"""
    orders = meter.long_counter_builder("orders_total").build()
    amount = meter.double_value_recorder_builder("order_amount").set_unit("USD").build()

    (
        meter.new_batch_recorder({"region": "us-west"})
        .put(orders, 1)
        .put(amount, 99.99)
        .record()
    )

    print("BatchRecorder examples completed")


# ========== Main ==========


def main():
    """主函数"""
    print("=" * 50)
    print("Tally Examples")
    print("=" * 50)

    # 使用 stdout 读取器演示（方便查看输出）
    service = example_with_builder()
    meter = service.meter

    print("\n--- Synchronous Instruments ---")
    example_synchronous(meter)

    print("\n--- Observers ---")
    example_observer(meter)

    print("\n--- BatchRecorder ---")
    example_batch(meter)

    print("\n--- Shutdown ---")
    service.shutdown()

    print("\nAll examples completed!")


if __name__ == "__main__":
    main()
