"""Tests for mapping store rows to and from typed models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from marketplace.domain.errors import InvalidInputError
from marketplace.domain.models import OutboundMessage
from marketplace.messaging.mapping import message_from_row, messages_from_rows, outbound_to_row


def _row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": "9b2f",
        "sender_id": "alice",
        "receiver_id": "bob",
        "subject": "Logo design",
        "message": "Are you available next week?",
        "read": False,
        "created_at": "2026-01-15T09:30:00.123456+00:00",
        "freelancer_profile_id": None,
        "sender": {"full_name": "Alice Adams"},
        "receiver": {"full_name": "Bob Brown"},
    }
    row.update(overrides)
    return row


class TestMessageFromRow:
    """Tests for message_from_row."""

    def test_maps_columns(self) -> None:
        message = message_from_row(_row())
        assert message.id == "9b2f"
        assert message.body == "Are you available next week?"
        assert message.sender_name == "Alice Adams"
        assert message.receiver_name == "Bob Brown"
        assert message.created_at == datetime(2026, 1, 15, 9, 30, 0, 123456, tzinfo=UTC)

    def test_missing_profile_join_gives_none(self) -> None:
        message = message_from_row(_row(sender=None))
        assert message.sender_name is None

    def test_null_subject_and_body_become_empty(self) -> None:
        message = message_from_row(_row(subject=None, message=None))
        assert message.subject == ""
        assert message.body == ""

    def test_numeric_ids_are_stringified(self) -> None:
        assert message_from_row(_row(id=42)).id == "42"

    def test_missing_column_raises(self) -> None:
        row = _row()
        del row["created_at"]
        with pytest.raises(InvalidInputError, match="missing column"):
            message_from_row(row)

    def test_self_addressed_row_raises(self) -> None:
        with pytest.raises(InvalidInputError, match="Malformed"):
            message_from_row(_row(receiver_id="alice"))

    def test_bad_timestamp_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            message_from_row(_row(created_at="yesterday-ish"))

    def test_rows_keep_order(self) -> None:
        messages = messages_from_rows([_row(id="a"), _row(id="b")])
        assert [m.id for m in messages] == ["a", "b"]


class TestOutboundToRow:
    """Tests for outbound_to_row."""

    def test_body_becomes_message_column(self) -> None:
        row = outbound_to_row(
            OutboundMessage(sender_id="bob", receiver_id="alice", subject="Hi", body="Hello")
        )
        assert row == {
            "sender_id": "bob",
            "receiver_id": "alice",
            "subject": "Hi",
            "message": "Hello",
        }

    def test_includes_profile_id_when_set(self) -> None:
        row = outbound_to_row(
            OutboundMessage(
                sender_id="bob",
                receiver_id="alice",
                subject="Hi",
                body="Hello",
                freelancer_profile_id="fp-1",
            )
        )
        assert row["freelancer_profile_id"] == "fp-1"
