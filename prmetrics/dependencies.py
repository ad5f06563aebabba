"""Application dependency wiring."""

from __future__ import annotations

from functools import lru_cache

import httpx

from prmetrics.bitbucket.auth import new_client
from prmetrics.core.config import settings
from prmetrics.services.gather import GatherService
from prmetrics.telemetry import MetricSink, sink_from_settings


@lru_cache
def get_http_client() -> httpx.Client:
    return new_client(settings)


@lru_cache
def get_metric_sink() -> MetricSink:
    return sink_from_settings()


@lru_cache
def get_gather_service() -> GatherService:
    return GatherService(
        get_http_client(),
        get_metric_sink(),
        base_url=settings.bitbucket_api_base_url,
        measurement=settings.measurement,
        max_workers=settings.max_workers,
    )
