# -*- coding: utf-8 -*-
"""
Tally 配置模块

提供配置定义，支持 YAML 文件、字典和环境变量加载。

YAML 示例:
    ```yaml
    tally:
      backend: opentelemetry
      meter:
        name: my.service
      otel:
        reader_type: stdout
        collect_interval: 30s
      resource:
        service_name: my-service
      logs:
        enabled: true
        level: debug
    ```
"""

import os
import re
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from tally.metric.utils import is_valid_metric_name

ROOT_KEY = "tally"


def parse_duration(value: Union[str, int, float]) -> float:
    """
    解析时间字符串为秒数

    支持格式：
    - 纯数字：直接作为秒数
    - "30s"：30 秒
    - "5m"：5 分钟
    - "1h"：1 小时
    - "1h30m"：1 小时 30 分钟
    - "100ms"：100 毫秒

    无法解析时返回 0.0。
    """
    if isinstance(value, (int, float)):
        return float(value)

    if not isinstance(value, str):
        return 0.0

    value = value.strip().lower()
    if not value:
        return 0.0

    try:
        return float(value)
    except ValueError:
        pass

    units = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001, "us": 0.000001}
    tokens = re.findall(r"(\d+(?:\.\d+)?)\s*(ms|us|h|m|s)", value)
    if not tokens or "".join(n + u for n, u in tokens) != value.replace(" ", ""):
        return 0.0

    return sum(float(number) * units[unit] for number, unit in tokens)


class BackendType(str, Enum):
    """Meter 后端类型"""
    DEFAULT = "default"
    OPENTELEMETRY = "opentelemetry"


class ReaderType(str, Enum):
    """OpenTelemetry 读取器类型"""
    NONE = "none"
    STDOUT = "stdout"
    MEMORY = "memory"


class MeterConfig(BaseModel):
    """Meter 配置"""
    name: str = Field(default="tally", description="instrumentation 名称")
    version: str = Field(default="", description="instrumentation 版本")

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not is_valid_metric_name(value):
            raise ValueError("meter name must be a non-empty ASCII string")
        return value


class StdoutConfig(BaseModel):
    """Stdout 读取器配置"""
    pretty_print: bool = Field(default=True, description="是否格式化输出")


class OtelConfig(BaseModel):
    """OpenTelemetry 后端配置"""
    reader_type: ReaderType = Field(default=ReaderType.NONE, description="读取器类型")
    stdout: StdoutConfig = Field(default_factory=StdoutConfig, description="Stdout 配置")
    collect_interval: str = Field(default="60s", description="采集间隔")
    set_global: bool = Field(default=False, description="是否设置为 OpenTelemetry 全局 Provider")

    @property
    def collect_interval_seconds(self) -> float:
        """获取采集间隔秒数"""
        return parse_duration(self.collect_interval)


class ResourceConfig(BaseModel):
    """Resource 资源配置"""
    service_name: str = Field(default="unknown-service", description="服务名称")
    service_version: str = Field(default="", description="服务版本")
    attributes: Dict[str, str] = Field(default_factory=dict, description="自定义属性")


class LogsConfig(BaseModel):
    """日志配置"""
    enabled: bool = Field(default=False, description="是否由 MetricService 安装日志")
    formatter: str = Field(default="glog", description="日志格式（glog/text/json）")
    level: str = Field(default="info", description="日志级别")
    redirect: str = Field(default="stdout", description="输出目标（stdout/stderr）")
    report_caller: bool = Field(default=True, description="是否报告调用者")


class TallyConfig(BaseModel):
    """Tally 完整配置"""
    enabled: bool = Field(default=True, description="是否启用")
    backend: BackendType = Field(default=BackendType.DEFAULT, description="Meter 后端")
    meter: MeterConfig = Field(default_factory=MeterConfig, description="Meter 配置")
    otel: OtelConfig = Field(default_factory=OtelConfig, description="OpenTelemetry 配置")
    resource: ResourceConfig = Field(default_factory=ResourceConfig, description="Resource 配置")
    logs: LogsConfig = Field(default_factory=LogsConfig, description="日志配置")


def load_config(
    config_file: Optional[str] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    env_prefix: str = "",
) -> TallyConfig:
    """
    加载配置

    优先级：环境变量 > config_dict > config_file > 默认值

    Args:
        config_file: YAML 配置文件路径
        config_dict: 配置字典
        env_prefix: 环境变量前缀，如 "TALLY"

    Returns:
        TallyConfig 实例
    """
    data: Dict[str, Any] = {}

    if config_file and os.path.exists(config_file):
        import yaml

        with open(config_file, "r", encoding="utf-8") as f:
            file_data = yaml.safe_load(f) or {}
        data = file_data.get(ROOT_KEY) or file_data

    if config_dict:
        _deep_merge(data, config_dict.get(ROOT_KEY) or config_dict)

    if env_prefix:
        _override_from_env(data, env_prefix)

    return TallyConfig(**data)


def load_config_from_file(config_file: str) -> TallyConfig:
    """从 YAML 文件加载配置"""
    return load_config(config_file=config_file)


def _deep_merge(base: Dict, override: Dict) -> None:
    """深度合并字典"""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _override_from_env(data: Dict, prefix: str) -> None:
    """从环境变量覆盖配置"""
    prefix = prefix.upper()

    env_mappings = {
        f"{prefix}_ENABLED": ("enabled",),
        f"{prefix}_BACKEND": ("backend",),
        f"{prefix}_METER_NAME": ("meter", "name"),
        f"{prefix}_OTEL_READER_TYPE": ("otel", "reader_type"),
        f"{prefix}_OTEL_COLLECT_INTERVAL": ("otel", "collect_interval"),
        f"{prefix}_RESOURCE_SERVICE_NAME": ("resource", "service_name"),
        f"{prefix}_LOGS_ENABLED": ("logs", "enabled"),
        f"{prefix}_LOGS_LEVEL": ("logs", "level"),
    }

    for env_var, path in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(data, path, _parse_env_value(value))


def _set_nested(data: Dict, path: tuple, value: Any) -> None:
    """设置嵌套字典的值"""
    for key in path[:-1]:
        data = data.setdefault(key, {})
    data[path[-1]] = value


def _parse_env_value(value: str) -> Any:
    """解析环境变量值（布尔值，其余保留字符串交给 pydantic 转换）"""
    lower = value.lower()
    if lower in ("true", "yes"):
        return True
    if lower in ("false", "no"):
        return False
    return value


class TallyConfigBuilder:
    """Tally 配置构建器"""

    def __init__(self):
        self._config: Dict[str, Any] = {
            "enabled": True,
            "meter": {},
            "otel": {},
            "resource": {},
            "logs": {},
        }

    def with_enabled(self, enabled: bool = True) -> "TallyConfigBuilder":
        """设置是否启用"""
        self._config["enabled"] = enabled
        return self

    def with_meter(self, name: str, version: str = "") -> "TallyConfigBuilder":
        """设置 Meter 名称"""
        self._config["meter"] = {"name": name, "version": version}
        return self

    def with_resource(
        self,
        service_name: str,
        service_version: str = "",
        **attributes: str,
    ) -> "TallyConfigBuilder":
        """设置 Resource 配置"""
        self._config["resource"] = {
            "service_name": service_name,
            "service_version": service_version,
            "attributes": attributes,
        }
        return self

    def with_default_backend(self) -> "TallyConfigBuilder":
        """使用只校验的参考实现"""
        self._config["backend"] = BackendType.DEFAULT.value
        return self

    def with_otel_stdout(
        self,
        pretty_print: bool = True,
        collect_interval: str = "60s",
    ) -> "TallyConfigBuilder":
        """使用 OpenTelemetry 后端，输出到控制台"""
        self._config["backend"] = BackendType.OPENTELEMETRY.value
        self._config["otel"] = {
            "reader_type": ReaderType.STDOUT.value,
            "stdout": {"pretty_print": pretty_print},
            "collect_interval": collect_interval,
        }
        return self

    def with_otel_memory(self) -> "TallyConfigBuilder":
        """使用 OpenTelemetry 后端，采集结果保存在内存"""
        self._config["backend"] = BackendType.OPENTELEMETRY.value
        self._config["otel"] = {"reader_type": ReaderType.MEMORY.value}
        return self

    def with_logs(
        self,
        level: str = "info",
        formatter: str = "glog",
        redirect: str = "stdout",
    ) -> "TallyConfigBuilder":
        """由 MetricService 安装日志"""
        self._config["logs"] = {
            "enabled": True,
            "level": level,
            "formatter": formatter,
            "redirect": redirect,
        }
        return self

    def build(self) -> TallyConfig:
        """构建配置对象"""
        return TallyConfig(**self._config)
