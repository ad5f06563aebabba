from __future__ import annotations

import json
from typing import Any, Callable, Iterator

import httpx
import pytest

BASE_URL = "https://api.example.com/2.0"


class RecordingSink:
    """Keeps everything a gather cycle emits so tests can inspect it."""

    def __init__(self) -> None:
        self.metrics: list[tuple[str, dict, dict, Any]] = []
        self.errors: list[Exception] = []
        self.closed = False

    def add_fields(self, measurement, fields, tags, timestamp) -> None:
        self.metrics.append((measurement, fields, tags, timestamp))

    def add_error(self, error: Exception) -> None:
        self.errors.append(error)

    def close(self) -> None:
        self.closed = True


def page_response(values: list, next_url: str | None = None, status_code: int = 200) -> httpx.Response:
    body: dict[str, Any] = {"values": values}
    if next_url:
        body["next"] = next_url
    return httpx.Response(status_code, content=json.dumps(body).encode("utf-8"))


def pull_request_payload(
    pr_id: int,
    *,
    title: str = "example-pr",
    state: str = "OPEN",
    repo_slug: str = "example-repo",
    participants: list[dict] | None = None,
) -> dict:
    return {
        "id": pr_id,
        "title": title,
        "state": state,
        "comment_count": 2,
        "task_count": 1,
        "author": {"display_name": "Example Dude"},
        "created_on": "2020-02-06T16:51:48.000000+00:00",
        "updated_on": "2020-02-06T16:52:40.000000+00:00",
        "source": {
            "repository": {"name": repo_slug, "full_name": f"example-team/{repo_slug}", "slug": repo_slug},
            "branch": {"name": "example_branch"},
        },
        "destination": {
            "repository": {"name": repo_slug, "full_name": f"example-team/{repo_slug}", "slug": repo_slug},
            "branch": {"name": "master"},
        },
        "participants": participants or [],
        "links": {"html": {"href": f"https://example.com/pr/{pr_id}"}},
    }


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_client() -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]]:
    clients: list[httpx.Client] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler), timeout=5.0)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
