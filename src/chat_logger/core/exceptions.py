"""Error taxonomy shared by the chat core and its HTTP layer."""

from __future__ import annotations


class ChatLoggerError(Exception):
    """Base class for errors raised by the chat core."""


class ValidationError(ChatLoggerError):
    """The request is malformed (empty body, missing or invalid identifiers).

    Callers must fix the request; retrying it unchanged will fail again.
    """


class AuthorizationError(ChatLoggerError):
    """The requester is not a party to the conversation they addressed."""


class DecryptionFailure(ChatLoggerError):
    """A stored ciphertext could not be decrypted.

    Only raised by the strict decryption path. Listings catch it per message
    and render a placeholder instead.
    """


class StoreUnavailable(ChatLoggerError):
    """The backing store failed or could not be reached.

    Transient from the caller's point of view. A retried send is only
    deduplicated when the caller supplied its own message id.
    """
