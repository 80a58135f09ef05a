# -*- coding: utf-8 -*-
"""
BatchRecorder 批量上报

一次 record() 提交多个 (instrument, value)，所有条目共用创建时的 Label。

状态机：Open（接受 put）→ record() → Committed（终态）。
"""

import threading
from contextlib import nullcontext
from typing import Any, List, Optional, Tuple

from tally.metric.errors import InvalidArgumentError
from tally.metric.instrument import (
    Counter,
    SynchronousInstrument,
    UpDownCounter,
    ValueRecorder,
)
from tally.metric.utils import check_argument, pairs_to_dict

ERROR_MESSAGE_ALREADY_RECORDED = "BatchRecorder has already been recorded"


class BatchRecorder:
    """
    批量上报器

    示例:
        ```python
        (
            meter.new_batch_recorder(["host", "a"])
            .put(requests, 3)
            .put(latency, 2.5)
            .record()
        )
        ```
    """

    def __init__(
        self,
        label_pairs: Tuple[Any, ...] = (),
        commit_lock: Optional[threading.Lock] = None,
    ):
        """
        Args:
            label_pairs: 已校验的扁平 Label
            commit_lock: 提交时持有的锁，同一个 Meter 的所有批次共用
        """
        self._label_pairs = label_pairs
        self._commit_lock = commit_lock
        self._entries: List[Tuple[SynchronousInstrument, Any]] = []
        self._recorded = False

    @property
    def labels(self):
        return pairs_to_dict(self._label_pairs)

    @property
    def entries(self) -> List[Tuple[SynchronousInstrument, Any]]:
        return list(self._entries)

    @property
    def is_recorded(self) -> bool:
        return self._recorded

    def put(self, instrument: SynchronousInstrument, value: Any) -> "BatchRecorder":
        """
        添加一条度量

        Args:
            instrument: Counter / UpDownCounter / ValueRecorder
            value: 度量值（数值；Counter 必须 >= 0）

        Returns:
            self（支持链式调用）
        """
        check_argument(not self._recorded, ERROR_MESSAGE_ALREADY_RECORDED)
        if instrument is None:
            raise InvalidArgumentError("instrument must not be None")
        if not isinstance(instrument, (Counter, UpDownCounter, ValueRecorder)):
            raise InvalidArgumentError(
                f"{type(instrument).__name__} cannot be recorded in a batch"
            )
        instrument._check_value(value)

        self._entries.append((instrument, value))
        return self

    def record(self) -> None:
        """提交整批度量"""
        check_argument(not self._recorded, ERROR_MESSAGE_ALREADY_RECORDED)
        self._recorded = True

        with self._commit_lock or nullcontext():
            for instrument, value in self._entries:
                instrument._apply(value, self._label_pairs)
