# src/chat_logger/services/message_service.py
"""Send, list, clear and export chat messages.

Every operation resolves the addressed conversation first, checks that the
requester belongs to it, and only then touches the store. Bodies are
encrypted before they reach the store and decrypted one by one on the way
out, so a single unreadable record never hides its neighbours.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from chat_logger.core.exceptions import ValidationError
from chat_logger.core.settings import settings
from chat_logger.services import conversation_key
from chat_logger.services.cipher import MessageCipher
from chat_logger.services.conversation_key import ChatMode, ConversationKey
from chat_logger.services.conversation_store import (
    MAX_CLIENT_ID_LENGTH,
    ConversationStore,
    StoredMessage,
)
from chat_logger.services.transcript import format_transcript, transcript_title
from chat_logger.services.user_service import UserDirectory

logger = logging.getLogger(__name__)

_CLIENT_ID_PATTERN = re.compile(rf"^[A-Za-z0-9_-]{{1,{MAX_CLIENT_ID_LENGTH}}}$")


@dataclass(frozen=True)
class MessageView:
    """Decrypted message as returned to callers."""

    id: str
    conversation_id: str
    mode: str
    sender_id: str
    sender_display_name: str
    sender_avatar: str
    recipient_id: str | None
    recipient_display_name: str | None
    body: str
    created_at: int
    client_id: str | None = None


@dataclass(frozen=True)
class ChatStats:
    total_messages: int
    participants: int
    conversations: int
    average_conversation_size: int
    max_conversation_size: int


class MessageService:
    """Application-facing chat operations over a bounded conversation store."""

    def __init__(
        self,
        store: ConversationStore,
        cipher: MessageCipher,
        directory: UserDirectory,
        max_conversation_size: int | None = None,
    ) -> None:
        size = settings.max_conversation_size if max_conversation_size is None else max_conversation_size
        if size < 1:
            raise ValueError("max_conversation_size must be at least 1")
        self.store = store
        self.cipher = cipher
        self.directory = directory
        self.max_conversation_size = size

    def send(
        self,
        sender_id: str,
        sender_display: str,
        sender_avatar: str,
        mode: ChatMode | str,
        recipient_id: str | None,
        body: str,
        *,
        client_id: str | None = None,
    ) -> MessageView:
        """Store a message and trim its conversation to the retention cap.

        The body is validated after trimming but stored exactly as typed.
        The returned view echoes the plaintext that was sent. Resending with
        a ``client_id`` this sender already used in the conversation stores
        nothing and returns the original message.

        Raises:
            ValidationError: Empty body, missing sender, bad recipient or client id.
            StoreUnavailable: The store could not be written.
        """
        if not isinstance(body, str) or not body.strip():
            raise ValidationError("Message body must not be empty")
        sender_id = (sender_id or "").strip()
        if not sender_id:
            raise ValidationError("sender id must not be empty")
        if client_id is not None and not _CLIENT_ID_PATTERN.match(client_id):
            raise ValidationError("client id must be 1-32 letters, digits, '-' or '_'")

        key = conversation_key.resolve(mode, sender_id, recipient_id)
        counterpart = key.counterpart_of(sender_id)

        pending = StoredMessage(
            conversation_id=key.id,
            mode=key.mode.value,
            sender_id=sender_id,
            sender_display_name=sender_display or "",
            sender_avatar=sender_avatar or "",
            recipient_id=counterpart,
            recipient_display_name=self.directory.display_name_for(counterpart) if counterpart else None,
            ciphertext=self.cipher.encrypt(body),
            client_id=client_id,
        )
        stored, evicted = self.store.append_and_evict(pending, self.max_conversation_size)
        if evicted:
            logger.debug("Send to %s evicted %d old messages", key.id, evicted)
        if stored.ciphertext != pending.ciphertext:
            return _view(stored, self.cipher.decrypt(stored.ciphertext))
        return _view(stored, body)

    def list_messages(
        self,
        requester_id: str,
        mode: ChatMode | str,
        counterpart_id: str | None = None,
        since: int | None = None,
    ) -> list[MessageView]:
        """Return the requester's view of a conversation, oldest first."""
        key = self._authorize(requester_id, mode, counterpart_id)
        return [
            _view(stored, self.cipher.decrypt(stored.ciphertext))
            for stored in self.store.query(key.id, since=since)
        ]

    def clear(self, requester_id: str, mode: ChatMode | str, counterpart_id: str | None = None) -> int:
        """Delete every message of a conversation; clearing twice is harmless."""
        key = self._authorize(requester_id, mode, counterpart_id)
        return self.store.delete_conversation(key.id)

    def export_text(
        self,
        requester_id: str,
        mode: ChatMode | str,
        counterpart_id: str | None = None,
    ) -> str:
        """Render a conversation as a plain-text transcript."""
        key = self._authorize(requester_id, mode, counterpart_id)
        counterpart = key.counterpart_of(requester_id)
        if counterpart:
            counterpart = self.directory.display_name_for(counterpart) or counterpart
        messages = [
            _view(stored, self.cipher.decrypt(stored.ciphertext))
            for stored in self.store.query(key.id)
        ]
        return format_transcript(transcript_title(counterpart), messages)

    def stats(self) -> ChatStats:
        """Return totals across every conversation."""
        sizes = self.store.conversation_sizes()
        total = sum(sizes.values())
        return ChatStats(
            total_messages=total,
            participants=self.directory.count(),
            conversations=len(sizes),
            average_conversation_size=round(total / len(sizes)) if sizes else 0,
            max_conversation_size=self.max_conversation_size,
        )

    def _authorize(
        self,
        requester_id: str,
        mode: ChatMode | str,
        counterpart_id: str | None,
    ) -> ConversationKey:
        requester_id = (requester_id or "").strip()
        if not requester_id:
            raise ValidationError("requester id must not be empty")
        key = conversation_key.resolve(mode, requester_id, counterpart_id)
        key.ensure_party(requester_id)
        return key


def _view(stored: StoredMessage, body: str) -> MessageView:
    return MessageView(
        id=stored.id or "",
        conversation_id=stored.conversation_id,
        mode=stored.mode,
        sender_id=stored.sender_id,
        sender_display_name=stored.sender_display_name,
        sender_avatar=stored.sender_avatar,
        recipient_id=stored.recipient_id,
        recipient_display_name=stored.recipient_display_name,
        body=body,
        created_at=stored.created_at or 0,
        client_id=stored.client_id,
    )
