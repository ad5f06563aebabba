"""Gather cycle orchestration: resolve entities, collect pull requests, emit metrics."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import partial
from typing import Sequence

import httpx

from prmetrics.bitbucket.collector import (
    collect_pull_requests,
    member_pull_requests_url,
    repository_pull_requests_url,
)
from prmetrics.bitbucket.paginator import Paginator
from prmetrics.bitbucket.reducer import reduce_pull_request
from prmetrics.bitbucket.resolver import EntityResolver
from prmetrics.core.errors import ConfigurationError
from prmetrics.models.bitbucket import GatherType, PullRequest, Repository, User
from prmetrics.models.gather import GatherSummary
from prmetrics.telemetry import (
    MetricSink,
    NullMetricSink,
    increment_gather_errors,
    record_gather_duration,
    record_pull_requests_emitted,
)

_logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_gather_type(value: str) -> GatherType:
    try:
        return GatherType(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"invalid gather_type {value!r}, must be either `team`, `user`, or `repos`"
        ) from exc


class GatherService:
    """Runs gather cycles against one shared, authenticated HTTP client."""

    def __init__(
        self,
        client: httpx.Client,
        sink: MetricSink | None = None,
        *,
        base_url: str,
        measurement: str = "bitbucket",
        max_workers: int | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._paginator = Paginator(client)
        self._resolver = EntityResolver(self._paginator, self._base_url)
        self._sink = sink or NullMetricSink()
        self._measurement = measurement
        self._max_workers = max_workers

    def gather(self, owner: str, gather_type: str) -> GatherSummary:
        """Run one cycle and emit a record per gathered pull request.

        Raises ``ConfigurationError`` for an unknown ``gather_type`` after
        reporting it; every other failure is reported to the sink and the cycle
        emits whatever was gathered successfully.
        """

        started_at = _now()
        started = time.perf_counter()
        errors: list[Exception] = []

        def report(error: Exception) -> None:
            errors.append(error)
            increment_gather_errors()
            self._sink.add_error(error)

        try:
            mode = parse_gather_type(gather_type)
        except ConfigurationError as exc:
            report(exc)
            raise

        _logger.info("Starting %s gather for %s", mode.value, owner)
        entities, pull_requests = self._gather_mode(mode, owner, report)

        timestamp = _now()
        for pr in pull_requests:
            fields, tags = reduce_pull_request(pr)
            self._sink.add_fields(self._measurement, fields, tags, timestamp)
        record_pull_requests_emitted(len(pull_requests))

        duration = time.perf_counter() - started
        record_gather_duration(duration)
        _logger.info(
            "Finished %s gather for %s: %d pull requests, %d errors in %.2fs",
            mode.value,
            owner,
            len(pull_requests),
            len(errors),
            duration,
        )
        return GatherSummary(
            owner=owner,
            gather_type=mode,
            started_at=started_at,
            entities=len(entities),
            pull_requests=len(pull_requests),
            errors=len(errors),
            duration_seconds=duration,
        )

    def _gather_mode(self, mode: GatherType, owner: str, report) -> tuple[Sequence, list[PullRequest]]:
        entities: Sequence[User] | Sequence[Repository]
        try:
            if mode is GatherType.TEAM:
                entities = self._resolver.resolve_members(owner)
            elif mode is GatherType.USER:
                entities = [User(uuid=owner)]
            else:
                entities = self._resolver.resolve_repositories(owner)
        except Exception as exc:
            _logger.warning("Resolving %s entities for %s failed: %s", mode.value, owner, exc)
            report(exc)
            return [], []

        if mode is GatherType.REPOS:
            url_for = partial(repository_pull_requests_url, self._base_url, owner)
        else:
            url_for = partial(member_pull_requests_url, self._base_url)
        pull_requests = collect_pull_requests(
            self._paginator,
            entities,
            url_for,
            report,
            max_workers=self._max_workers,
        )
        return entities, pull_requests
