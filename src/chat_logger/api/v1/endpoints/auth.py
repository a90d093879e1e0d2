# src/chat_logger/api/v1/endpoints/auth.py
"""Authentication endpoints for the Chat Logger API."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter
from jose import jwt

from chat_logger.api.v1.dependencies import DirectoryDep
from chat_logger.core.settings import settings
from chat_logger.schemas.user import LoginResponse, ParticipantResponse, SimpleLoginRequest

router = APIRouter(prefix="/auth", tags=["authentication"])

LOCAL_DOMAIN = "local"


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create JWT access token for participant authentication."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


@router.post(
    "/simple",
    summary="Sign in with a bare username",
    response_model=LoginResponse,
)
def simple_login(payload: SimpleLoginRequest, directory: DirectoryDep) -> LoginResponse:
    """Register or refresh ``<username>@local`` and issue a token for it."""
    participant = directory.upsert(f"{payload.username}@{LOCAL_DOMAIN}", payload.username)
    token = create_access_token(participant.id, {"name": participant.display_name})
    return LoginResponse(token=token, user=ParticipantResponse.model_validate(participant))
