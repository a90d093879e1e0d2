"""Message-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for posting a message to the shared room or a direct conversation."""

    message: str = Field(..., description="Plaintext message body")
    mode: str = Field("shared", description="Chat mode: shared or direct")
    to: str | None = Field(None, description="Recipient participant id for direct messages")
    client_id: str | None = Field(
        None,
        description="Optional sender-chosen retry key; resending it to the same conversation stores nothing new",
    )


class MessageResponse(BaseModel):
    """Schema for a decrypted message returned by the API."""

    id: str
    conversation_id: str
    mode: str
    sender_id: str
    sender_display_name: str
    sender_avatar: str
    recipient_id: str | None
    recipient_display_name: str | None
    body: str
    created_at: int = Field(..., description="Epoch milliseconds; pass as `since` to poll for newer messages")
    client_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageListResponse(BaseModel):
    """Messages of one conversation, oldest first."""

    messages: list[MessageResponse]


class ClearResponse(BaseModel):
    removed: int


class StatsResponse(BaseModel):
    """Aggregate counters across all conversations."""

    total_messages: int
    participants: int
    conversations: int
    average_conversation_size: int
    max_conversation_size: int

    model_config = ConfigDict(from_attributes=True)
