"""
Tests for the CLI target resolver (`/discuss [#room] name`).
"""

import pytest

from threadroom.services.errors import (
    InvalidContextError,
    MissingNameError,
    NotAMemberError,
    RoomNotFoundError,
)
from threadroom.services.target_resolver import TargetResolver, parse
from tests.conftest import ALICE, BOB, DIRECT, EXISTING_DISCUSSION, GENERAL, RANDOM


class TestParse:
    """Argument string parsing."""

    def test_room_and_name(self):
        result = parse("#general Launch planning")
        assert result.room_name == "general"
        assert result.discussion_name == "Launch planning"

    def test_name_only(self):
        result = parse("Launch planning")
        assert result.room_name is None
        assert result.discussion_name == "Launch planning"

    def test_room_only(self):
        result = parse("#general")
        assert result.room_name == "general"
        assert result.discussion_name is None

    def test_empty(self):
        result = parse("")
        assert result.room_name is None
        assert result.discussion_name is None

    def test_name_is_trimmed(self):
        result = parse("#general    Launch planning   ")
        assert result.discussion_name == "Launch planning"

    def test_hash_later_in_text_is_part_of_name(self):
        result = parse("Fix #123 regression")
        assert result.room_name is None
        assert result.discussion_name == "Fix #123 regression"


class TestResolve:
    """Room resolution and eligibility checks."""

    async def test_explicit_room(self, make_ctx):
        request = await TargetResolver().resolve(make_ctx(room=RANDOM, user=ALICE), "#general Launch planning")
        assert request.target_room.id == GENERAL.id
        assert request.requested_name == "Launch planning"
        assert request.invoking_user.id == ALICE.id
        assert request.seed_members == []

    async def test_defaults_to_context_room(self, make_ctx):
        request = await TargetResolver().resolve(make_ctx(room=GENERAL, user=BOB), "Launch planning")
        assert request.target_room.id == GENERAL.id
        assert request.requested_name == "Launch planning"

    @pytest.mark.parametrize("args", ["", "   ", "#general"])
    async def test_missing_name(self, make_ctx, args):
        with pytest.raises(MissingNameError):
            await TargetResolver().resolve(make_ctx(), args)

    async def test_room_not_found(self, make_ctx):
        with pytest.raises(RoomNotFoundError) as exc_info:
            await TargetResolver().resolve(make_ctx(), "#nowhere Launch planning")
        assert "`nowhere` not found" in exc_info.value.user_message

    async def test_not_a_member(self, make_ctx, host):
        with pytest.raises(NotAMemberError) as exc_info:
            await TargetResolver().resolve(make_ctx(room=GENERAL, user=BOB), "#random Launch planning")
        assert "random" in exc_info.value.user_message
        assert host.created == []

    async def test_discussion_room_rejected_as_this_room(self, make_ctx):
        with pytest.raises(InvalidContextError) as exc_info:
            await TargetResolver().resolve(make_ctx(room=EXISTING_DISCUSSION, user=ALICE), "Launch planning")
        assert exc_info.value.user_message.startswith("this room")

    async def test_named_discussion_room_rejected_by_name(self, make_ctx):
        with pytest.raises(InvalidContextError) as exc_info:
            await TargetResolver().resolve(make_ctx(room=GENERAL, user=ALICE), "#old-topic Launch planning")
        assert "`Old topic`" in exc_info.value.user_message

    async def test_direct_message_rejected(self, make_ctx):
        with pytest.raises(InvalidContextError):
            await TargetResolver().resolve(make_ctx(room=DIRECT, user=ALICE), "Launch planning")
