"""Telemetry utilities: metric sinks for gathered records and self-instrumentation."""

from .metric_sink import (
    ClickHouseMetricSink,
    FileMetricSink,
    MetricSink,
    NullMetricSink,
    sink_from_settings,
)
from .metrics import (
    configure_metrics,
    record_gather_duration,
    record_pull_requests_emitted,
    increment_gather_errors,
    shutdown_metrics,
    collect_prometheus_metrics,
)

__all__ = [
    "ClickHouseMetricSink",
    "FileMetricSink",
    "MetricSink",
    "NullMetricSink",
    "sink_from_settings",
    "configure_metrics",
    "record_gather_duration",
    "record_pull_requests_emitted",
    "increment_gather_errors",
    "shutdown_metrics",
    "collect_prometheus_metrics",
]
