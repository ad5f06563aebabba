"""Resolve an owner account into the members or repositories to fan out over."""

from __future__ import annotations

from typing import Any, Iterable, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from prmetrics.bitbucket.paginator import Paginator
from prmetrics.core.errors import RecordParseError
from prmetrics.models.bitbucket import Repository, User

MEMBER_FIELDS = "values.uuid"
REPOSITORY_FIELDS = "values.name,values.full_name,values.slug"
# 100 is the largest page the listing endpoints accept.
LISTING_PAGELEN = 100

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_records(model: type[ModelT], raw_records: Iterable[Any]) -> list[ModelT]:
    """Parse every record, failing on the first one that does not fit ``model``."""

    parsed: list[ModelT] = []
    for index, raw in enumerate(raw_records):
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as exc:
            raise RecordParseError(f"Record {index} is not a valid {model.__name__}: {exc}") from exc
    return parsed


class EntityResolver:
    """Lists team members or owned repositories via the paginated API."""

    def __init__(self, paginator: Paginator, base_url: str) -> None:
        self._paginator = paginator
        self._base_url = base_url.rstrip("/")

    def resolve_members(self, team: str) -> list[User]:
        url = f"{self._base_url}/users/{quote(team, safe='')}/members"
        raw = self._paginator.fetch_all(url, MEMBER_FIELDS, LISTING_PAGELEN)
        return parse_records(User, raw)

    def resolve_repositories(self, owner: str) -> list[Repository]:
        url = f"{self._base_url}/repositories/{quote(owner, safe='')}"
        raw = self._paginator.fetch_all(url, REPOSITORY_FIELDS, LISTING_PAGELEN)
        return parse_records(Repository, raw)
