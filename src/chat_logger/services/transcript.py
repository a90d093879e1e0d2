"""Plain-text rendering of a conversation for download."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from chat_logger.db.time import from_ms, utcnow

if TYPE_CHECKING:
    from chat_logger.services.message_service import MessageView

BANNER = "=" * 50
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def transcript_title(counterpart: str | None = None) -> str:
    """Return the heading used for a shared-room or direct-message transcript."""
    if counterpart:
        return f"DM with {counterpart}"
    return "Global Chat"


def format_transcript(
    title: str,
    messages: Sequence[MessageView],
    *,
    exported_at: datetime | None = None,
) -> str:
    """Render decrypted messages, oldest first, as a readable chat log.

    Timestamps are printed in UTC. Multi-line bodies keep their line breaks,
    each line indented under the sender.
    """
    exported = (exported_at or utcnow()).strftime(TIMESTAMP_FORMAT)
    lines = [
        BANNER,
        f"  {title}",
        f"  Downloaded: {exported} UTC",
        "  Messages are stored encrypted and were decrypted for this export.",
        f"  Messages: {len(messages)}",
        BANNER,
        "",
    ]
    for message in messages:
        stamp = from_ms(message.created_at).strftime(TIMESTAMP_FORMAT)
        sender = message.sender_display_name or message.sender_id
        lines.append(f"[{stamp}] {sender}:")
        lines.extend(f"  {part}" for part in message.body.splitlines() or [""])
        lines.append("")
    lines.extend([BANNER, "  End of Chat Log", BANNER])
    return "\n".join(lines) + "\n"
