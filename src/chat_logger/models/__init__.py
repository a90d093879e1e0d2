# src/chat_logger/models/__init__.py
"""SQLAlchemy models for the Chat Logger application."""

from .message import ChatMessage
from .participant import Participant

__all__ = ["ChatMessage", "Participant"]
