"""Tests for the participant directory."""

import pytest

from chat_logger.core.exceptions import StoreUnavailable, ValidationError
from chat_logger.services.user_service import UserDirectory


def test_upsert_creates_and_updates(directory) -> None:
    created = directory.upsert("alice@local", "alice")
    assert created.display_name == "alice"
    assert created.avatar_url == ""

    updated = directory.upsert("alice@local", "Alice A.", "https://example.test/a.png")
    assert updated.display_name == "Alice A."
    assert updated.avatar_url == "https://example.test/a.png"
    assert updated.last_active >= created.last_active
    assert directory.count() == 1


def test_blank_display_name_defaults_to_local_part(directory) -> None:
    assert directory.upsert("dana@example.com", "  ").display_name == "dana"


def test_blank_id_rejected(directory) -> None:
    with pytest.raises(ValidationError):
        directory.upsert("   ", "nobody")


def test_lookup_helpers(directory, alice) -> None:
    assert directory.get(alice.id) == alice
    assert directory.get("ghost@local") is None
    assert directory.display_name_for(alice.id) == "alice"
    assert directory.display_name_for("ghost@local") == ""
    assert directory.display_name_for(None) == ""


def test_list_is_ordered_by_display_name(directory) -> None:
    directory.upsert("z@local", "zed")
    directory.upsert("a@local", "amy")
    directory.upsert("m@local", "max")
    assert [p.display_name for p in directory.list_participants()] == ["amy", "max", "zed"]


def test_missing_tables_raise_store_unavailable(empty_session_factory) -> None:
    with pytest.raises(StoreUnavailable):
        UserDirectory(empty_session_factory).count()
