# src/chat_logger/api/v1/endpoints/messages.py
"""Chat message endpoints for the Chat Logger API.

Handlers are plain functions so FastAPI runs them in its threadpool; the
conversation store blocks on database I/O and per-conversation locks.
"""

from __future__ import annotations

import re
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from chat_logger.api.v1.dependencies import CurrentUserDep, MessageServiceDep
from chat_logger.db.time import utcnow
from chat_logger.schemas.message import (
    ClearResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)

router = APIRouter(prefix="/messages", tags=["messages"])

ModeQuery = Annotated[str, Query(description="Chat mode: shared or direct")]
WithQuery = Annotated[
    str | None,
    Query(alias="with", description="Counterpart participant id for direct conversations"),
]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
def send_message(
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    service: MessageServiceDep,
) -> MessageResponse:
    """Encrypt and store a message, trimming the conversation to its cap."""
    sent = service.send(
        current_user.id,
        current_user.display_name,
        current_user.avatar_url,
        message_data.mode,
        message_data.to,
        message_data.message,
        client_id=message_data.client_id,
    )
    return MessageResponse.model_validate(sent)


@router.get("", response_model=MessageListResponse)
def list_messages(
    current_user: CurrentUserDep,
    service: MessageServiceDep,
    mode: ModeQuery = "shared",
    counterpart: WithQuery = None,
    since: Annotated[int | None, Query(ge=0, description="Only messages newer than this epoch ms")] = None,
) -> MessageListResponse:
    """Return the retained messages of a conversation, oldest first."""
    messages = service.list_messages(current_user.id, mode, counterpart, since=since)
    return MessageListResponse(messages=[MessageResponse.model_validate(m) for m in messages])


@router.delete("", response_model=ClearResponse)
def clear_messages(
    current_user: CurrentUserDep,
    service: MessageServiceDep,
    mode: ModeQuery = "shared",
    counterpart: WithQuery = None,
) -> ClearResponse:
    """Delete every message of a conversation."""
    return ClearResponse(removed=service.clear(current_user.id, mode, counterpart))


@router.get("/export", response_class=Response)
def export_messages(
    current_user: CurrentUserDep,
    service: MessageServiceDep,
    mode: ModeQuery = "shared",
    counterpart: WithQuery = None,
) -> Response:
    """Download a conversation as a plain-text transcript."""
    text = service.export_text(current_user.id, mode, counterpart)
    label = _UNSAFE_FILENAME_CHARS.sub("_", counterpart.split("@", 1)[0]) if counterpart else "global"
    filename = f"chat_{label}_{utcnow().date().isoformat()}.txt"
    return Response(
        content=text,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
