"""Self-instrumentation of gather cycles through OpenTelemetry."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from prmetrics.core.config import settings

_logger = logging.getLogger(__name__)

_provider: MeterProvider | None = None
# Instrument name -> instrument; empty while metrics are disabled.
_instruments: dict[str, Any] = {}

GATHER_DURATION = "prmetrics.gather.duration"
PULL_REQUESTS_EMITTED = "prmetrics.gather.pull_requests"
GATHER_ERRORS = "prmetrics.gather.errors"


def _metric_reader(exporter_name: str) -> MetricReader:
    if exporter_name == "prometheus":
        try:
            from opentelemetry.exporter.prometheus import PrometheusMetricReader  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "Prometheus exporter selected but opentelemetry-exporter-prometheus is not installed."
            ) from exc
        return PrometheusMetricReader()
    if exporter_name != "console":
        _logger.warning("Unsupported OTEL exporter '%s'; defaulting to console", exporter_name)
    return PeriodicExportingMetricReader(ConsoleMetricExporter())


def metrics_enabled() -> bool:
    return bool(_instruments)


def configure_metrics() -> None:
    """Create the gather instruments once, when ``otel_enabled`` is set."""

    global _provider

    if not settings.otel_enabled or metrics_enabled():
        return

    reader = _metric_reader(settings.otel_exporter.lower().strip())
    _provider = MeterProvider(metric_readers=[reader], resource=Resource.create({"service.name": "prmetrics"}))
    metrics.set_meter_provider(_provider)
    meter = _provider.get_meter("prmetrics")
    _instruments[GATHER_DURATION] = meter.create_histogram(
        name=GATHER_DURATION,
        unit="s",
        description="Gather cycle duration in seconds",
    )
    _instruments[PULL_REQUESTS_EMITTED] = meter.create_counter(
        name=PULL_REQUESTS_EMITTED,
        unit="1",
        description="Pull request records emitted to the sink",
    )
    _instruments[GATHER_ERRORS] = meter.create_counter(
        name=GATHER_ERRORS,
        unit="1",
        description="Errors reported during gather cycles",
    )


def record_gather_duration(seconds: float) -> None:
    histogram = _instruments.get(GATHER_DURATION)
    if histogram is not None:
        histogram.record(max(seconds, 0.0))


def record_pull_requests_emitted(count: int) -> None:
    counter = _instruments.get(PULL_REQUESTS_EMITTED)
    if counter is not None and count:
        counter.add(count)


def increment_gather_errors() -> None:
    counter = _instruments.get(GATHER_ERRORS)
    if counter is not None:
        counter.add(1)


def collect_prometheus_metrics() -> tuple[bytes, str]:
    """Render the default Prometheus registry for the /metrics endpoint."""

    from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


def shutdown_metrics() -> None:
    global _provider
    if _provider is None:
        return
    provider, _provider = _provider, None
    _instruments.clear()
    provider.shutdown()
