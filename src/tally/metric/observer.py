# -*- coding: utf-8 -*-
"""
Observer 异步指标实现

异步指标不直接上报，而是注册回调，由后端的采集周期调用。
回调收到一个 ObserverResult，通过 observe() 上报 (value, labels)。

参考实现只保存回调，从不调用。
"""

from typing import Any, Callable, List, Optional, Tuple

from tally.metric.instrument import (
    Instrument,
    InstrumentDescriptor,
    InstrumentKind,
)
from tally.metric.utils import Labels, check_not_null, labels_to_pairs

Observation = Tuple[Any, Tuple[Any, ...]]
ObserverCallback = Callable[["ObserverResult"], None]


class ObserverResult:
    """
    Observer 回调的上报接收端

    示例:
        ```python
        def callback(result):
            result.observe(queue.qsize(), {"queue": "jobs"})

        observer.set_callback(callback)
        ```
    """

    def __init__(self):
        self._observations: List[Observation] = []

    def observe(self, value: Any, labels: Labels = None) -> None:
        """上报一次观测值"""
        self._observations.append((value, labels_to_pairs(labels)))

    @property
    def observations(self) -> List[Observation]:
        """已上报的 (value, label_pairs) 列表（按上报顺序）"""
        return list(self._observations)


class Observer(Instrument):
    """Observer 基类"""

    def __init__(self, descriptor: InstrumentDescriptor):
        super().__init__(descriptor)
        self._callback: Optional[ObserverCallback] = None

    def set_callback(self, callback: ObserverCallback) -> None:
        """
        设置采集回调

        Args:
            callback: 接收 ObserverResult 的回调函数
        """
        self._callback = check_not_null(callback, "callback")

    @property
    def callback(self) -> Optional[ObserverCallback]:
        return self._callback

    def observe(self) -> List[Observation]:
        """
        执行一次回调并返回观测值

        由后端的采集周期调用；未设置回调时返回空列表。
        """
        if self._callback is None:
            return []
        result = ObserverResult()
        self._callback(result)
        return result.observations


class SumObserver(Observer):
    """单调递增的累计值观测（如 CPU 累计时间）"""
    pass


class UpDownSumObserver(Observer):
    """可增可减的累计值观测（如进程内存）"""
    pass


class ValueObserver(Observer):
    """瞬时值观测（如温度）"""
    pass


OBSERVER_INSTRUMENTS = {
    InstrumentKind.SUM_OBSERVER: SumObserver,
    InstrumentKind.UP_DOWN_SUM_OBSERVER: UpDownSumObserver,
    InstrumentKind.VALUE_OBSERVER: ValueObserver,
}
