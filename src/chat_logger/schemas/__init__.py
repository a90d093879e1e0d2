# src/chat_logger/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .message import (
    ClearResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
    StatsResponse,
)
from .user import LoginResponse, ParticipantListResponse, ParticipantResponse, SimpleLoginRequest

__all__ = [
    "ClearResponse", "MessageCreate", "MessageListResponse", "MessageResponse", "StatsResponse",
    "LoginResponse", "ParticipantListResponse", "ParticipantResponse", "SimpleLoginRequest",
]
