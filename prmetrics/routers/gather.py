"""API routes for running gather cycles on demand."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from prmetrics.core.config import settings
from prmetrics.core.errors import ConfigurationError
from prmetrics.dependencies import get_gather_service
from prmetrics.models.gather import GatherSummary
from prmetrics.schemas.gather import GatherRequest
from prmetrics.services.gather import GatherService


router = APIRouter(prefix=f"{settings.api_v1_prefix}/gather", tags=["gather"])


@router.post("", response_model=GatherSummary)
def run_gather(
    payload: GatherRequest | None = None,
    gather_service: GatherService = Depends(get_gather_service),
) -> GatherSummary:
    owner = (payload.owner if payload else None) or settings.owner
    gather_type = (payload.gather_type if payload else None) or settings.gather_type
    if not owner:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No owner configured")
    try:
        return gather_service.gather(owner, gather_type)
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
