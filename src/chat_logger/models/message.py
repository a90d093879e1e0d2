"""Model describing a stored chat message."""

from sqlalchemy import BigInteger, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from chat_logger.db.session import Base


class ChatMessage(Base):
    """Encrypted chat message belonging to one conversation.

    Bodies are stored only as ciphertext. Sender and recipient presentation
    fields are a snapshot taken at send time and are never updated.
    """

    __tablename__ = "chat_message"
    __table_args__ = (
        Index("ix_chat_message_conversation_order", "conversation_id", "created_at", "seq"),
        UniqueConstraint("conversation_id", "sender_id", "client_id", name="uq_chat_message_client_id"),
        {"sqlite_autoincrement": True},
    )

    # Insertion order; breaks ties between equal created_at values.
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    # Sender-chosen retry key; only unique per sender within a conversation.
    client_id: Mapped[str | None] = mapped_column(String(32), nullable=True)

    conversation_id: Mapped[str] = mapped_column(String(80), nullable=False)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)

    sender_id: Mapped[str] = mapped_column(String(320), nullable=False)
    sender_display_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sender_avatar: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Only set for direct messages.
    recipient_id: Mapped[str | None] = mapped_column(String(320), nullable=True)
    recipient_display_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    # Epoch milliseconds, strictly increasing within a conversation.
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
