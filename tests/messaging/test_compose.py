"""Tests for building reply and new-conversation messages."""

from __future__ import annotations

import pytest

from marketplace.domain.errors import InvalidInputError
from marketplace.messaging.compose import build_message, build_reply, reply_subject
from marketplace.messaging.threads import build_threads
from tests.fakes import make_message


class TestReplySubject:
    """Tests for reply_subject."""

    def test_adds_re_prefix(self) -> None:
        assert reply_subject("Logo design") == "Re: Logo design"

    def test_no_duplicate_prefix(self) -> None:
        assert reply_subject("Re: Logo design") == "Re: Logo design"

    def test_prefix_check_is_case_insensitive(self) -> None:
        assert reply_subject("RE: Logo design") == "RE: Logo design"

    def test_blank_subject_uses_default(self) -> None:
        assert reply_subject("") == "Re: Conversation"
        assert reply_subject("   ") == "Re: Conversation"

    def test_custom_default(self) -> None:
        assert reply_subject("", default="Chat") == "Re: Chat"


class TestBuildReply:
    """Tests for build_reply."""

    def test_reply_goes_to_contact(self) -> None:
        thread = build_threads("bob", [make_message("1", "alice", "bob")])[0]
        outbound = build_reply("bob", thread, "Sounds good")
        assert outbound.sender_id == "bob"
        assert outbound.receiver_id == "alice"
        assert outbound.body == "Sounds good"

    def test_subject_from_newest_message(self) -> None:
        messages = [
            make_message("1", "alice", "bob", minute=0, subject="Website"),
            make_message("2", "alice", "bob", minute=9, subject="Logo"),
        ]
        thread = build_threads("bob", messages)[0]
        assert build_reply("bob", thread, "ok").subject == "Re: Logo"

    def test_blank_subject_falls_back(self) -> None:
        thread = build_threads("bob", [make_message("1", "alice", "bob", subject="")])[0]
        outbound = build_reply("bob", thread, "ok", default_subject="Conversation")
        assert outbound.subject == "Re: Conversation"

    def test_blank_body_raises(self) -> None:
        thread = build_threads("bob", [make_message("1", "alice", "bob")])[0]
        with pytest.raises(InvalidInputError, match="must not be blank"):
            build_reply("bob", thread, "  \n ")


class TestBuildMessage:
    """Tests for build_message."""

    def test_builds_outbound(self) -> None:
        outbound = build_message("bob", "alice", "Logo design", "Hi Alice", "fp-1")
        assert outbound.sender_id == "bob"
        assert outbound.receiver_id == "alice"
        assert outbound.subject == "Logo design"
        assert outbound.freelancer_profile_id == "fp-1"

    def test_profile_id_optional(self) -> None:
        assert build_message("bob", "alice", "Hi", "Hello").freelancer_profile_id is None

    @pytest.mark.parametrize(
        ("sender", "receiver", "subject", "body"),
        [
            ("bob", "bob", "Hi", "Hello"),
            ("", "alice", "Hi", "Hello"),
            ("bob", "alice", " ", "Hello"),
            ("bob", "alice", "Hi", ""),
        ],
    )
    def test_invalid_input_raises(
        self, sender: str, receiver: str, subject: str, body: str
    ) -> None:
        with pytest.raises(InvalidInputError):
            build_message(sender, receiver, subject, body)
