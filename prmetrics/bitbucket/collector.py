"""Concurrent pull request collection across members or repositories."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Protocol, Sequence
from urllib.parse import quote


from prmetrics.bitbucket.paginator import Paginator
from prmetrics.bitbucket.resolver import parse_records
from prmetrics.core.errors import EntityFetchError
from prmetrics.models.bitbucket import PullRequest, Repository, User

_logger = logging.getLogger(__name__)

PULL_REQUEST_FIELDS = ",".join(
    [
        "values.id",
        "values.title",
        "values.state",
        "values.comment_count",
        "values.task_count",
        "values.author.display_name",
        "values.created_on",
        "values.updated_on",
        "values.source.repository.name",
        "values.source.repository.full_name",
        "values.source.repository.slug",
        "values.source.branch.name",
        "values.destination.repository.name",
        "values.destination.repository.full_name",
        "values.destination.branch.name",
        "values.participants.role",
        "values.participants.approved",
        "values.participants.user.display_name",
        "values.links.html",
    ]
)
# The pullrequests endpoints reject the listing maximum of 100.
PULL_REQUEST_PAGELEN = 25


class Entity(Protocol):
    @property
    def entity_id(self) -> str: ...


def member_pull_requests_url(base_url: str, member: User) -> str:
    return f"{base_url.rstrip('/')}/pullrequests/{quote(member.entity_id, safe='')}"


def repository_pull_requests_url(base_url: str, owner: str, repository: Repository) -> str:
    return (
        f"{base_url.rstrip('/')}/repositories/{quote(owner, safe='')}/"
        f"{quote(repository.slug, safe='')}/pullrequests"
    )


def fetch_pull_requests(paginator: Paginator, url: str) -> list[PullRequest]:
    raw = paginator.fetch_all(url, PULL_REQUEST_FIELDS, PULL_REQUEST_PAGELEN)
    return parse_records(PullRequest, raw)


def collect_pull_requests(
    paginator: Paginator,
    entities: Sequence[Entity],
    url_for: Callable[[Entity], str],
    on_error: Callable[[Exception], None],
    *,
    max_workers: int | None = None,
) -> list[PullRequest]:
    """Fetch the pull requests of every entity concurrently and merge them.

    One worker runs per entity unless ``max_workers`` caps the pool. A failing
    entity is reported through ``on_error`` and contributes nothing; the others
    are unaffected. Results are concatenated in entity order once every worker
    has finished.
    """

    if not entities:
        return []

    workers = max_workers or len(entities)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="prmetrics-fetch") as executor:
        futures: list[tuple[Entity, Future[list[PullRequest]]]] = [
            (entity, executor.submit(fetch_pull_requests, paginator, url_for(entity))) for entity in entities
        ]

    pull_requests: list[PullRequest] = []
    for entity, future in futures:
        try:
            pull_requests.extend(future.result())
        except Exception as exc:
            error = EntityFetchError(entity.entity_id, exc)
            _logger.warning("%s", error)
            on_error(error)
    _logger.info("Collected %d pull requests from %d entities", len(pull_requests), len(entities))
    return pull_requests
