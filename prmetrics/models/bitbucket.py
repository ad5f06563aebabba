"""Bitbucket Cloud API models parsed from paginated listings."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class GatherType(str, Enum):
    """Which set of entities a gather cycle fans out over."""

    TEAM = "team"
    USER = "user"
    REPOS = "repos"


class ParticipantRole(str, Enum):
    """Roles Bitbucket assigns to pull request participants."""

    REVIEWER = "REVIEWER"
    PARTICIPANT = "PARTICIPANT"


class Page(BaseModel):
    """One page of a paginated listing."""

    next: Optional[str] = Field(None, description="Absolute URL of the following page, absent on the last page.")
    values: list[Any] = Field(default_factory=list)


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


class User(_Value):
    uuid: str = ""
    display_name: str = ""

    @property
    def entity_id(self) -> str:
        return self.uuid


class Repository(_Value):
    name: str = ""
    full_name: str = ""
    slug: str = ""

    @property
    def entity_id(self) -> str:
        return self.slug


class Branch(_Value):
    name: str = ""


class Endpoint(_Value):
    """Either side of a pull request: a branch in a repository."""

    repository: Repository = Field(default_factory=Repository)
    branch: Branch = Field(default_factory=Branch)


class Participant(_Value):
    user: User = Field(default_factory=User)
    role: str = ""
    approved: bool = False


class Link(_Value):
    href: str = ""


class Links(_Value):
    html: Link = Field(default_factory=Link)


class PullRequest(_Value):
    """A pull request as returned by the pullrequests listings."""

    id: int
    title: str = ""
    state: str = ""
    comment_count: int = 0
    task_count: int = 0
    author: User = Field(default_factory=User)
    created_on: AwareDatetime
    updated_on: AwareDatetime
    source: Endpoint = Field(default_factory=Endpoint)
    destination: Endpoint = Field(default_factory=Endpoint)
    participants: tuple[Participant, ...] = ()
    links: Links = Field(default_factory=Links)
