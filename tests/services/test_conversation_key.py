"""Tests for conversation identity resolution."""

import pytest

from chat_logger.core.exceptions import AuthorizationError, ValidationError
from chat_logger.services.conversation_key import (
    SHARED_CONVERSATION_ID,
    ChatMode,
    resolve,
    resolve_direct,
    resolve_shared,
)


def test_shared_key() -> None:
    key = resolve_shared()
    assert key.id == SHARED_CONVERSATION_ID == "global"
    assert key.mode is ChatMode.SHARED
    assert key.participants == ()


def test_direct_key_is_symmetric() -> None:
    forward = resolve_direct("alice@local", "bob@local")
    backward = resolve_direct("bob@local", "alice@local")
    assert forward == backward
    assert forward.participants == ("alice@local", "bob@local")
    assert forward.id.startswith("dm:")
    assert len(forward.id) == len("dm:") + 64


def test_distinct_pairs_get_distinct_ids() -> None:
    ids = {
        resolve_direct("alice@local", "bob@local").id,
        resolve_direct("alice@local", "carol@local").id,
        resolve_direct("bob@local", "carol@local").id,
    }
    assert len(ids) == 3
    assert SHARED_CONVERSATION_ID not in ids


@pytest.mark.parametrize(
    ("a", "b"),
    [("", "bob@local"), ("alice@local", "   "), ("alice@local", "alice@local")],
)
def test_invalid_direct_pairs(a, b) -> None:
    with pytest.raises(ValidationError):
        resolve_direct(a, b)


def test_mode_aliases() -> None:
    assert ChatMode("global") is ChatMode.SHARED
    assert ChatMode("private") is ChatMode.DIRECT
    assert ChatMode("DIRECT") is ChatMode.DIRECT
    assert ChatMode(" Shared ") is ChatMode.SHARED
    assert ChatMode("Global") is ChatMode.SHARED


def test_resolve_dispatches_on_mode() -> None:
    assert resolve("shared", "alice@local").id == "global"
    assert resolve(ChatMode.DIRECT, "alice@local", "bob@local") == resolve_direct("bob@local", "alice@local")


def test_resolve_rejects_unknown_mode() -> None:
    with pytest.raises(ValidationError):
        resolve("broadcast", "alice@local")


def test_direct_requires_counterpart() -> None:
    with pytest.raises(ValidationError):
        resolve("direct", "alice@local", None)


def test_party_checks() -> None:
    key = resolve_direct("alice@local", "bob@local")
    key.ensure_party("alice@local")
    assert key.counterpart_of("alice@local") == "bob@local"
    with pytest.raises(AuthorizationError):
        key.ensure_party("carol@local")
    resolve_shared().ensure_party("anyone@local")
