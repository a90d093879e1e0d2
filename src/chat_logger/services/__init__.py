"""Service layer for Chat Logger."""

from .cipher import DECRYPTION_FAILED, MessageCipher
from .conversation_store import ConversationStore, StoredMessage
from .message_service import ChatStats, MessageService, MessageView
from .user_service import ParticipantView, UserDirectory

__all__ = [
    "DECRYPTION_FAILED",
    "ChatStats",
    "ConversationStore",
    "MessageCipher",
    "MessageService",
    "MessageView",
    "ParticipantView",
    "StoredMessage",
    "UserDirectory",
]
