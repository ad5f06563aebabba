"""Metric sink implementations that receive reduced pull request records."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import requests

from prmetrics.core.config import settings

_logger = logging.getLogger(__name__)

# Rows for reported gather errors share the metrics table under this measurement.
ERROR_MEASUREMENT = "gather_error"


class MetricSink(Protocol):
    """Write-only destination for metrics and the errors of a gather cycle."""

    def add_fields(
        self,
        measurement: str,
        fields: dict[str, Any],
        tags: dict[str, str],
        timestamp: datetime,
    ) -> None:  # pragma: no cover - interface
        ...

    def add_error(self, error: Exception) -> None:  # pragma: no cover - interface
        ...

    def close(self) -> None:  # pragma: no cover - interface
        ...


def _metric_row(measurement: str, fields: dict[str, Any], tags: dict[str, str], timestamp: datetime) -> dict:
    return {
        "kind": "metric",
        "measurement": measurement,
        "fields": fields,
        "tags": tags,
        "timestamp": timestamp.isoformat(),
    }


def _error_row(error: Exception) -> dict:
    return {
        "kind": "error",
        "error_type": type(error).__name__,
        "message": str(error),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class NullMetricSink:
    """Drops metrics; errors are still logged."""

    def add_fields(self, measurement, fields, tags, timestamp) -> None:
        return None

    def add_error(self, error: Exception) -> None:
        _logger.error("Gather error: %s", error)

    def close(self) -> None:
        return None


class FileMetricSink:
    """Appends metrics and errors to newline-delimited JSON."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def add_fields(self, measurement, fields, tags, timestamp) -> None:
        self._write(_metric_row(measurement, fields, tags, timestamp))

    def add_error(self, error: Exception) -> None:
        _logger.error("Gather error: %s", error)
        self._write(_error_row(error))

    def _write(self, row: dict) -> None:
        payload = json.dumps(row, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
        with self._lock, self.path.open("a", encoding="utf-8") as handle:
            handle.write(payload)
            handle.write("\n")

    def close(self) -> None:
        return None


class ClickHouseMetricSink:
    """Writes metrics and reported errors into ClickHouse via the HTTP interface."""

    def __init__(
        self,
        url: str,
        table: str,
        *,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        batch_size: int = 25,
    ) -> None:
        self._url = url.rstrip("/")
        self._table = table
        self._database = database
        self._batch_size = max(batch_size, 1)
        self._auth = (user, password) if user and password else None
        self._buffer: list[str] = []
        self._lock = threading.Lock()
        self._session = requests.Session()

    def _table_reference(self) -> str:
        if self._database and "." not in self._table:
            return f"{self._database}.{self._table}"
        return self._table

    def add_fields(self, measurement, fields, tags, timestamp) -> None:
        self._append(measurement, fields, tags, timestamp)

    def add_error(self, error: Exception) -> None:
        _logger.error("Gather error: %s", error)
        self._append(
            ERROR_MEASUREMENT,
            {"message": str(error)},
            {"error_type": type(error).__name__},
            datetime.now(timezone.utc),
        )

    def _append(self, measurement: str, fields: dict[str, Any], tags: dict[str, str], timestamp: datetime) -> None:
        row = {
            "measurement": measurement,
            "event_time": timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            "tags": tags,
            "fields": json.dumps(fields, separators=(",", ":"), sort_keys=True, ensure_ascii=False),
        }
        payload = json.dumps(row, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
        with self._lock:
            self._buffer.append(payload)
            if len(self._buffer) >= self._batch_size:
                self._flush_locked()

    def close(self) -> None:
        with self._lock:
            self._flush_locked()
        self._session.close()

    def _flush_locked(self) -> None:
        if not self._buffer:
            return
        data = "\n".join(self._buffer)
        query = f"INSERT INTO {self._table_reference()} FORMAT JSONEachRow\n{data}\n"
        response = self._session.post(
            self._url,
            data=query.encode("utf-8"),
            auth=self._auth,
            headers={"Content-Type": "application/json"},
            timeout=30,
        )
        if response.status_code >= 400:
            raise RuntimeError(f"ClickHouse insert failed ({response.status_code}): {response.text}")
        self._buffer.clear()


def sink_from_settings() -> MetricSink:
    """Factory to construct a metric sink based on app settings."""

    backend = settings.sink_backend.lower().strip()
    if backend == "file":
        return FileMetricSink(settings.sink_path)
    if backend == "clickhouse":
        if not (settings.clickhouse_url and settings.sink_table):
            raise ValueError("ClickHouse backend requires PRMETRICS_CLICKHOUSE_URL and PRMETRICS_SINK_TABLE")
        return ClickHouseMetricSink(
            url=settings.clickhouse_url,
            table=settings.sink_table,
            database=settings.clickhouse_database,
            user=settings.clickhouse_user,
            password=settings.clickhouse_password,
            batch_size=settings.sink_batch_size,
        )
    if backend in {"off", "none", "disabled"}:
        return NullMetricSink()
    raise ValueError(f"Unsupported sink backend: {settings.sink_backend}")
