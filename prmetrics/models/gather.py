"""Models describing the outcome of a gather cycle."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from prmetrics.models.bitbucket import GatherType


class GatherSummary(BaseModel):
    """What one gather cycle resolved, emitted, and reported."""

    owner: str
    gather_type: GatherType
    started_at: datetime
    entities: int = Field(0, description="Members or repositories the cycle fanned out over.")
    pull_requests: int = Field(0, description="Pull request records emitted to the sink.")
    errors: int = Field(0, description="Errors reported to the sink during the cycle.")
    duration_seconds: float = 0.0
