# -*- coding: utf-8 -*-
"""
Metric 校验工具

提供：
- 指标名称校验
- Label 键值对校验与规范化
- 通用前置条件检查
"""

import numbers
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Optional, Tuple, TypeVar, Union

from tally.metric.errors import InvalidArgumentError

T = TypeVar("T")

# 指标名称最大长度
NAME_MAX_LENGTH = 255

ERROR_MESSAGE_INVALID_NAME = (
    "Name should be a ASCII string with a length no greater than "
    f"{NAME_MAX_LENGTH} characters."
)
ERROR_MESSAGE_ODD_LABELS = "You must provide an even number of key/value pair arguments."
ERROR_MESSAGE_NULL_LABEL_KEY = "You cannot provide null keys for label creation."

# 调用方可以传入的 Label 形式：扁平序列 / 字典 / None
Labels = Optional[Union[Sequence, Mapping]]


def check_not_null(value: Optional[T], arg_name: str) -> T:
    """
    检查参数不为 None

    Returns:
        原值，便于链式使用
    """
    if value is None:
        raise InvalidArgumentError(f"{arg_name} must not be None")
    return value


def check_argument(condition: bool, message: str) -> None:
    """条件不满足时抛出 InvalidArgumentError"""
    if not condition:
        raise InvalidArgumentError(message)


def check_number(value: Any) -> None:
    """检查度量值不为 None 且为实数"""
    check_not_null(value, "value")
    if not isinstance(value, numbers.Real):
        raise InvalidArgumentError(
            f"value must be a number, got {type(value).__name__}"
        )


def check_map_keys_not_null(mapping: Mapping, arg_name: str) -> None:
    """检查字典中不存在 None 键"""
    for key in mapping:
        if key is None:
            raise InvalidArgumentError(f"{arg_name} keys must not be None")


def is_valid_metric_name(name: Any) -> bool:
    """
    判断指标名称是否合法

    合法条件：非空、仅包含 ASCII 字符、长度不超过 NAME_MAX_LENGTH。
    """
    if not isinstance(name, str) or not name:
        return False
    if len(name) > NAME_MAX_LENGTH:
        return False
    return all(ord(c) < 128 for c in name)


def validate_label_pairs(pairs: Sequence) -> None:
    """
    校验扁平的 Label 键值对序列

    序列形如 ["k1", "v1", "k2", "v2"]，长度必须为偶数，
    偶数下标位置（键）不能为 None。
    """
    check_argument(len(pairs) % 2 == 0, ERROR_MESSAGE_ODD_LABELS)
    for i in range(0, len(pairs), 2):
        check_argument(pairs[i] is not None, ERROR_MESSAGE_NULL_LABEL_KEY)


def labels_to_pairs(labels: Labels) -> Tuple[Any, ...]:
    """
    将调用方传入的 Labels 规范化为校验过的扁平元组

    Args:
        labels: None、字典或扁平键值对序列

    Returns:
        扁平键值对元组（保持调用方顺序）
    """
    if labels is None:
        return ()

    if isinstance(labels, Mapping):
        check_map_keys_not_null(labels, "labels")
        pairs = []
        for key, value in labels.items():
            pairs.append(key)
            pairs.append(value)
        return tuple(pairs)

    # str 本身也是 Sequence，但不是键值对序列
    if isinstance(labels, (str, bytes)) or not isinstance(labels, Sequence):
        raise InvalidArgumentError(
            "labels must be a mapping or a sequence of key/value pairs"
        )

    validate_label_pairs(labels)
    return tuple(labels)


def pairs_to_dict(pairs: Sequence) -> Dict[Any, Any]:
    """扁平键值对转字典（保持顺序，重复键以后者为准）"""
    return {pairs[i]: pairs[i + 1] for i in range(0, len(pairs), 2)}
