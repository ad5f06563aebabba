"""API schemas for triggering gather cycles."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class GatherRequest(BaseModel):
    """Request body for POST /v1/gather; omitted values fall back to settings."""

    owner: Optional[str] = Field(None, description="Team name, user UUID, or repository owner.")
    gather_type: Optional[str] = Field(None, description="One of `team`, `user`, or `repos`.")
