"""
Tally is a metric instrumentation toolkit for python services.
Libraries record measurements through a small, validating API
without depending on any particular metrics backend.

Modules:
- tally.metric: Instrument contract (Meter, Counter, ValueRecorder, Observer, BatchRecorder)
- tally.otel: OpenTelemetry backend
- tally.config: Configuration (YAML / dict / env)
- tally.service: Config driven installation
- tally.logs: Logging utilities
"""

from tally.__version__ import __version__
from tally.metric import get_meter, get_meter_provider, set_meter_provider

__all__ = ["__version__", "get_meter", "get_meter_provider", "set_meter_provider"]
