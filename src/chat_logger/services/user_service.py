"""Directory of known chat participants."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chat_logger.core.exceptions import StoreUnavailable, ValidationError
from chat_logger.db.time import ensure_utc, utcnow
from chat_logger.models.participant import Participant

__all__ = ["ParticipantView", "UserDirectory"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticipantView:
    id: str
    display_name: str
    avatar_url: str
    created_at: datetime
    last_active: datetime


def _to_view(row: Participant) -> ParticipantView:
    return ParticipantView(
        id=row.id,
        display_name=row.display_name,
        avatar_url=row.avatar_url,
        created_at=ensure_utc(row.created_at),
        last_active=ensure_utc(row.last_active),
    )


class UserDirectory:
    """Registered participants and their display fields."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as err:
            logger.error("User directory %s failed: %s", action, err, exc_info=True)
            raise StoreUnavailable(f"User directory unavailable during {action}") from err

    def upsert(self, user_id: str, display_name: str, avatar_url: str = "") -> ParticipantView:
        """Create a participant or refresh its display fields and activity time."""
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("user id must not be empty")
        display_name = (display_name or "").strip() or user_id.split("@", 1)[0]

        with self._transaction("upsert") as session:
            row = session.get(Participant, user_id)
            if row is None:
                row = Participant(id=user_id, display_name=display_name, avatar_url=avatar_url or "")
                session.add(row)
                logger.info("Registered participant %s", user_id)
            else:
                row.display_name = display_name
                row.avatar_url = avatar_url or ""
                row.last_active = utcnow()
            session.flush()
            return _to_view(row)

    def get(self, user_id: str) -> ParticipantView | None:
        """Return a participant by id."""
        with self._transaction("get") as session:
            row = session.get(Participant, user_id)
            return _to_view(row) if row is not None else None

    def display_name_for(self, user_id: str | None) -> str:
        """Return a participant's display name, or ``""`` when unknown."""
        if not user_id:
            return ""
        participant = self.get(user_id)
        return participant.display_name if participant is not None else ""

    def list_participants(self) -> list[ParticipantView]:
        """Return every known participant ordered by display name."""
        stmt = select(Participant).order_by(Participant.display_name.asc(), Participant.id.asc())
        with self._transaction("list") as session:
            return [_to_view(row) for row in session.scalars(stmt)]

    def count(self) -> int:
        with self._transaction("count") as session:
            return int(session.execute(select(func.count()).select_from(Participant)).scalar_one())
