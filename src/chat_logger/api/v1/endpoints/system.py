"""System and statistics endpoints for the Chat Logger API."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from chat_logger.api.v1.dependencies import MessageServiceDep, get_current_user
from chat_logger.schemas.message import StatsResponse

router = APIRouter(tags=["system"])


@router.get("/stats", response_model=StatsResponse, dependencies=[Depends(get_current_user)])
def get_stats(service: MessageServiceDep) -> StatsResponse:
    """Return message and participant totals plus the retention cap."""
    return StatsResponse.model_validate(service.stats())
