"""Shared API dependencies for authentication and service wiring."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from chat_logger.core.settings import settings
from chat_logger.db.session import SessionLocal
from chat_logger.services import (
    ConversationStore,
    MessageCipher,
    MessageService,
    ParticipantView,
    UserDirectory,
)

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()


@lru_cache
def get_cipher() -> MessageCipher:
    """Return the process-wide message cipher."""
    return MessageCipher(settings.encryption_key)


@lru_cache
def get_conversation_store() -> ConversationStore:
    """Return the process-wide store; its conversation locks must be shared."""
    return ConversationStore(SessionLocal)


def get_user_directory() -> UserDirectory:
    return UserDirectory(SessionLocal)


def get_message_service(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> MessageService:
    """Build the message service over the shared store and cipher."""
    return MessageService(get_conversation_store(), get_cipher(), directory)


DirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]
MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    directory: DirectoryDep,
) -> ParticipantView:
    """Get the current participant from the JWT bearer token.

    Raises:
        HTTPException: If the token is invalid or the participant is unknown
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    participant = directory.get(subject)
    if participant is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return participant


# Type alias for current user dependency
CurrentUserDep = Annotated[ParticipantView, Depends(get_current_user)]
