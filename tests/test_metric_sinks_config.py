import json
from datetime import datetime, timezone

import pytest

from prmetrics.core.config import Settings
from prmetrics.telemetry.metric_sink import (
    ClickHouseMetricSink,
    FileMetricSink,
    NullMetricSink,
    sink_from_settings,
)


class _StubResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class _StubSession:
    def __init__(self) -> None:
        self.posts = []
        self.closed = False

    def post(self, url, **kwargs):
        self.posts.append((url, kwargs))
        return _StubResponse()

    def close(self):
        self.closed = True


def test_file_sink_is_default(monkeypatch, tmp_path):
    custom = Settings(sink_path=str(tmp_path / "out.jsonl"))
    monkeypatch.setattr("prmetrics.telemetry.metric_sink.settings", custom)
    assert isinstance(sink_from_settings(), FileMetricSink)


def test_clickhouse_sink_configuration(monkeypatch):
    custom = Settings(
        sink_backend="clickhouse",
        clickhouse_url="http://clickhouse:8123/",
        clickhouse_database="metrics",
        sink_table="bitbucket_prs",
        sink_batch_size=2,
    )
    monkeypatch.setattr("prmetrics.telemetry.metric_sink.settings", custom)
    sink = sink_from_settings()
    assert isinstance(sink, ClickHouseMetricSink)

    session = _StubSession()
    sink._session = session
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    sink.add_fields("bitbucket", {"id": 1}, {"state": "OPEN"}, now)
    assert session.posts == []
    sink.add_fields("bitbucket", {"id": 2}, {"state": "MERGED"}, now)
    sink.close()

    assert len(session.posts) == 1
    url, kwargs = session.posts[0]
    assert url == "http://clickhouse:8123"
    body = kwargs["data"].decode("utf-8")
    assert body.startswith("INSERT INTO metrics.bitbucket_prs FORMAT JSONEachRow")
    assert '"state":"MERGED"' in body
    assert session.closed


def test_clickhouse_requires_config(monkeypatch):
    custom = Settings(sink_backend="clickhouse")
    monkeypatch.setattr("prmetrics.telemetry.metric_sink.settings", custom)
    with pytest.raises(ValueError):
        sink_from_settings()


def test_disabled_sink(monkeypatch):
    custom = Settings(sink_backend="off")
    monkeypatch.setattr("prmetrics.telemetry.metric_sink.settings", custom)
    assert isinstance(sink_from_settings(), NullMetricSink)


def test_unknown_backend(monkeypatch):
    custom = Settings(sink_backend="carrier-pigeon")
    monkeypatch.setattr("prmetrics.telemetry.metric_sink.settings", custom)
    with pytest.raises(ValueError):
        sink_from_settings()


def test_clickhouse_sink_writes_error_rows():
    sink = ClickHouseMetricSink("http://clickhouse:8123", "bitbucket_prs", batch_size=10)
    session = _StubSession()
    sink._session = session

    sink.add_error(RuntimeError("Response from Bitbucket API: 503 Service Unavailable"))
    sink.close()

    assert len(session.posts) == 1
    body = session.posts[0][1]["data"].decode("utf-8")
    header, row_line = body.strip().split("\n")
    assert header == "INSERT INTO bitbucket_prs FORMAT JSONEachRow"
    row = json.loads(row_line)
    assert row["measurement"] == "gather_error"
    assert row["tags"] == {"error_type": "RuntimeError"}
    assert json.loads(row["fields"]) == {"message": "Response from Bitbucket API: 503 Service Unavailable"}
