# src/chat_logger/services/conversation_store.py
"""Bounded, conversation-scoped message storage with FIFO eviction."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, replace

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chat_logger.core.exceptions import StoreUnavailable
from chat_logger.db.time import now_ms
from chat_logger.models import ChatMessage
from chat_logger.services.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)

MAX_CLIENT_ID_LENGTH = 32


@dataclass(frozen=True)
class StoredMessage:
    """Immutable snapshot of a message row.

    ``id`` and ``created_at`` may be left unset on messages handed to
    :meth:`ConversationStore.append`; the store fills them in.
    """

    conversation_id: str
    mode: str
    sender_id: str
    ciphertext: str
    sender_display_name: str = ""
    sender_avatar: str = ""
    recipient_id: str | None = None
    recipient_display_name: str | None = None
    id: str | None = None
    client_id: str | None = None
    created_at: int | None = None
    seq: int | None = None


def _to_stored(row: ChatMessage) -> StoredMessage:
    return StoredMessage(
        conversation_id=row.conversation_id,
        mode=row.mode,
        sender_id=row.sender_id,
        ciphertext=row.ciphertext,
        sender_display_name=row.sender_display_name,
        sender_avatar=row.sender_avatar,
        recipient_id=row.recipient_id,
        recipient_display_name=row.recipient_display_name,
        id=row.id,
        client_id=row.client_id,
        created_at=row.created_at,
        seq=row.seq,
    )


class ConversationStore:
    """Persistent message collection grouped by conversation id.

    Every write to a conversation runs under that conversation's lock, and
    append plus eviction can share one transaction, so the retained set never
    grows past the cap and concurrent evictions cannot remove more than the
    excess. Reads take no lock; each is a single SELECT.

    Timestamps handed out for a conversation never go backwards while the
    store lives, even across a clear, so a poller's ``since`` cursor stays
    valid. A fresh process starts again from the stored rows and the clock.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        locks: KeyedLock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._locks = locks or KeyedLock()
        # Last created_at assigned per conversation; written under that conversation's lock.
        self._high_water: dict[str, int] = {}

    def conversation_lock(self, conversation_id: str) -> AbstractContextManager[None]:
        """Return the re-entrant critical section guarding one conversation."""
        return self._locks.hold(conversation_id)

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as err:
            logger.error("Message store %s failed: %s", action, err, exc_info=True)
            raise StoreUnavailable(f"Message store unavailable during {action}") from err

    # --- writes -----------------------------------------------------------------

    def append(self, message: StoredMessage) -> StoredMessage:
        """Insert a message, assigning ``id`` and ``created_at`` when unset.

        A message carrying a ``client_id`` that the same sender already used
        in the same conversation is not inserted again; the existing record
        is returned instead.
        """
        with self.conversation_lock(message.conversation_id):
            with self._transaction("append") as session:
                return self._insert(session, message)

    def evict_excess(self, conversation_id: str, max_size: int) -> int:
        """Delete the oldest messages beyond ``max_size``; return how many were removed."""
        if max_size < 0:
            raise ValueError("max_size must not be negative")
        with self.conversation_lock(conversation_id):
            with self._transaction("evict") as session:
                return self._evict(session, conversation_id, max_size)

    def append_and_evict(self, message: StoredMessage, max_size: int) -> tuple[StoredMessage, int]:
        """Append a message and trim its conversation in one transaction."""
        if max_size < 0:
            raise ValueError("max_size must not be negative")
        with self.conversation_lock(message.conversation_id):
            with self._transaction("append") as session:
                stored = self._insert(session, message)
                evicted = self._evict(session, message.conversation_id, max_size)
        return stored, evicted

    def delete_conversation(self, conversation_id: str) -> int:
        """Remove every message of a conversation; return how many were removed."""
        with self.conversation_lock(conversation_id):
            with self._transaction("delete") as session:
                result = session.execute(
                    delete(ChatMessage)
                    .where(ChatMessage.conversation_id == conversation_id)
                    .execution_options(synchronize_session=False)
                )
                removed = result.rowcount or 0
        if removed:
            logger.info("Cleared %d messages from conversation %s", removed, conversation_id)
        return removed

    # --- reads ------------------------------------------------------------------

    def query(self, conversation_id: str, since: int | None = None) -> list[StoredMessage]:
        """Return a conversation's messages, oldest first.

        With ``since``, only messages created strictly after that epoch
        millisecond are returned, which lets pollers fetch increments.
        """
        stmt = select(ChatMessage).where(ChatMessage.conversation_id == conversation_id)
        if since is not None:
            stmt = stmt.where(ChatMessage.created_at > since)
        stmt = stmt.order_by(ChatMessage.created_at.asc(), ChatMessage.seq.asc())
        with self._transaction("query") as session:
            return [_to_stored(row) for row in session.scalars(stmt)]

    def get(self, message_id: str) -> StoredMessage | None:
        """Return a message by its public id."""
        with self._transaction("get") as session:
            row = session.scalars(select(ChatMessage).where(ChatMessage.id == message_id)).first()
            return _to_stored(row) if row is not None else None

    def count_by_conversation(self, conversation_id: str) -> int:
        """Return the number of messages currently retained for a conversation."""
        stmt = (
            select(func.count())
            .select_from(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
        )
        with self._transaction("count") as session:
            return int(session.execute(stmt).scalar_one())

    def conversation_sizes(self) -> dict[str, int]:
        """Return the retained message count of every non-empty conversation."""
        stmt = select(ChatMessage.conversation_id, func.count()).group_by(ChatMessage.conversation_id)
        with self._transaction("count") as session:
            return {conversation_id: int(size) for conversation_id, size in session.execute(stmt)}

    def total_count(self) -> int:
        """Return the number of messages across all conversations."""
        with self._transaction("count") as session:
            return int(session.execute(select(func.count()).select_from(ChatMessage)).scalar_one())

    # --- helpers (caller holds the conversation lock) ---------------------------

    def _insert(self, session: Session, message: StoredMessage) -> StoredMessage:
        if message.client_id is not None:
            existing = session.scalars(
                select(ChatMessage).where(
                    ChatMessage.conversation_id == message.conversation_id,
                    ChatMessage.sender_id == message.sender_id,
                    ChatMessage.client_id == message.client_id,
                )
            ).first()
            if existing is not None:
                logger.debug(
                    "Duplicate send %s from %s in %s",
                    message.client_id,
                    message.sender_id,
                    message.conversation_id,
                )
                return _to_stored(existing)

        latest = session.execute(
            select(func.max(ChatMessage.created_at)).where(
                ChatMessage.conversation_id == message.conversation_id
            )
        ).scalar_one()
        floor = max(latest or 0, self._high_water.get(message.conversation_id, 0))
        created_at = message.created_at if message.created_at is not None else now_ms()
        if floor and created_at <= floor:
            created_at = floor + 1

        row = ChatMessage(
            id=message.id or uuid.uuid4().hex,
            client_id=message.client_id,
            conversation_id=message.conversation_id,
            mode=message.mode,
            sender_id=message.sender_id,
            sender_display_name=message.sender_display_name,
            sender_avatar=message.sender_avatar,
            recipient_id=message.recipient_id,
            recipient_display_name=message.recipient_display_name,
            ciphertext=message.ciphertext,
            created_at=created_at,
        )
        session.add(row)
        session.flush()
        self._high_water[message.conversation_id] = created_at
        return replace(message, id=row.id, created_at=row.created_at, seq=row.seq)

    def _evict(self, session: Session, conversation_id: str, max_size: int) -> int:
        # Stale means ranked below the newest max_size rows at this moment.
        stale = session.scalars(
            select(ChatMessage.seq)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.seq.desc())
            .offset(max_size)
        ).all()
        if not stale:
            return 0
        result = session.execute(
            delete(ChatMessage)
            .where(ChatMessage.seq.in_(stale))
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        logger.debug(
            "Evicted %d messages from conversation %s (cap %d)",
            removed,
            conversation_id,
            max_size,
        )
        return removed
