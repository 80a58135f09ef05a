# -*- coding: utf-8 -*-
"""
Metric 错误定义

契约中唯一的错误类型：参数不合法。
"""


class InvalidArgumentError(ValueError):
    """参数不合法（前置条件检查失败）"""

    pass
