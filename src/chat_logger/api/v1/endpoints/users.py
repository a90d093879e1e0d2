"""Participant listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from chat_logger.api.v1.dependencies import CurrentUserDep, DirectoryDep, get_current_user
from chat_logger.schemas.user import ParticipantListResponse, ParticipantResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=ParticipantListResponse, dependencies=[Depends(get_current_user)])
def list_users(directory: DirectoryDep) -> ParticipantListResponse:
    """Return every known participant, ordered by display name."""
    return ParticipantListResponse(
        users=[ParticipantResponse.model_validate(p) for p in directory.list_participants()]
    )


@router.get("/me", response_model=ParticipantResponse)
def read_me(current_user: CurrentUserDep) -> ParticipantResponse:
    return ParticipantResponse.model_validate(current_user)
