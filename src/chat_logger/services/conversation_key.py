"""Canonical conversation identities for the shared room and direct messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from chat_logger.core.exceptions import AuthorizationError, ValidationError
from chat_logger.utils.hash import blake3_hexdigest

SHARED_CONVERSATION_ID = "global"
DIRECT_PREFIX = "dm:"
# Unit separator; cannot appear in an email address or display handle.
_PAIR_SEPARATOR = "\x1f"


class ChatMode(StrEnum):
    """Where a message is posted."""

    SHARED = "shared"
    DIRECT = "direct"

    @classmethod
    def _missing_(cls, value: object) -> ChatMode | None:
        # Case-insensitive, plus the names used by older clients.
        aliases = {"global": cls.SHARED, "private": cls.DIRECT}
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        return cls._value2member_map_.get(normalized) or aliases.get(normalized)


@dataclass(frozen=True)
class ConversationKey:
    """Resolved identity of a conversation."""

    mode: ChatMode
    id: str
    participants: tuple[str, ...] = ()

    def includes(self, participant_id: str) -> bool:
        """Return True if the participant may read this conversation."""
        if self.mode is ChatMode.SHARED:
            return True
        return participant_id in self.participants

    def ensure_party(self, participant_id: str) -> None:
        """Raise AuthorizationError unless the participant belongs to the conversation."""
        if not self.includes(participant_id):
            raise AuthorizationError("Requester is not a participant in this conversation")

    def counterpart_of(self, participant_id: str) -> str | None:
        """Return the other party of a direct conversation."""
        for other in self.participants:
            if other != participant_id:
                return other
        return None


def _clean(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} must not be empty")
    return cleaned


def resolve_shared() -> ConversationKey:
    """Return the key of the shared room."""
    return ConversationKey(mode=ChatMode.SHARED, id=SHARED_CONVERSATION_ID)


def resolve_direct(a: str, b: str) -> ConversationKey:
    """Return the order-independent key for the conversation between ``a`` and ``b``.

    ``resolve_direct(a, b) == resolve_direct(b, a)`` for every pair of
    distinct, non-empty identifiers.
    """
    first = _clean(a, "participant id")
    second = _clean(b, "participant id")
    if first == second:
        raise ValidationError("A direct conversation needs two different participants")
    pair = tuple(sorted((first, second)))
    digest = blake3_hexdigest(_PAIR_SEPARATOR.join(pair).encode("utf-8"))
    return ConversationKey(mode=ChatMode.DIRECT, id=DIRECT_PREFIX + digest, participants=pair)


def resolve(mode: ChatMode | str, requester_id: str, counterpart_id: str | None = None) -> ConversationKey:
    """Resolve the conversation a requester is addressing."""
    try:
        chat_mode = ChatMode(mode)
    except ValueError as err:
        raise ValidationError(f"Unknown chat mode: {mode!r}") from err
    if chat_mode is ChatMode.SHARED:
        return resolve_shared()
    return resolve_direct(requester_id, _clean(counterpart_id, "recipient id"))
