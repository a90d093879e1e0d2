"""Participant-related Pydantic schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class SimpleLoginRequest(BaseModel):
    """Username-only sign-in used by local deployments."""

    username: str = Field(..., min_length=1, max_length=64, description="Chat handle")

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        """Allow letters, digits, dots, dashes and underscores only."""
        cleaned = value.strip()
        if not cleaned or not USERNAME_PATTERN.match(cleaned):
            raise ValueError("Username may only contain letters, digits, '.', '-' and '_'")
        return cleaned


class ParticipantResponse(BaseModel):
    """Schema for participant information returned by the API."""

    id: str
    display_name: str
    avatar_url: str
    last_active: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Response returned after a successful sign-in."""

    token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    user: ParticipantResponse


class ParticipantListResponse(BaseModel):
    users: list[ParticipantResponse]
