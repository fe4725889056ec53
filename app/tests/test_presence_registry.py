# app/tests/test_presence_registry.py

import pytest
from services.presence_registry import is_valid_name
from exceptions.domain_exceptions import (
    ValidationException,
    DuplicateUsernameException,
    AlreadyJoinedException,
)


class TestNameValidation:

    @pytest.mark.parametrize("value", ["alice", "Bob_2", "a-b", "x" * 20])
    def test_valid_names(self, value):
        assert is_valid_name(value, 20)

    @pytest.mark.parametrize("value", ["", "bad name!", "x" * 21, "tab\t", "émile", None, 42])
    def test_invalid_names(self, value):
        assert not is_valid_name(value, 20)


class TestPresenceRegistry:
    """Test suite for PresenceRegistry"""

    def test_join_registers_user(self, presence, rooms):
        count = presence.join("sid-1", "alice", "lobby", external_id=7)

        user = presence.get("sid-1")
        assert count == 1
        assert user.username == "alice"
        assert user.room == "lobby"
        assert user.external_id == 7
        assert rooms.members_of("lobby") == ["sid-1"]

    def test_username_unique_case_insensitive(self, presence, rooms):
        presence.join("sid-1", "alice", "lobby")

        with pytest.raises(DuplicateUsernameException) as exc_info:
            presence.join("sid-2", "ALICE", "lobby")

        assert exc_info.value.error_code == "DUPLICATE_USERNAME"
        assert presence.get("sid-2") is None
        assert rooms.member_count("lobby") == 1

    def test_invalid_username_rejected(self, presence, rooms):
        with pytest.raises(ValidationException) as exc_info:
            presence.join("sid-1", "bad name!", "lobby")

        assert exc_info.value.details == {"field": "username"}
        assert presence.count() == 0
        assert not rooms.exists("lobby")

    def test_username_too_long_rejected(self, presence):
        with pytest.raises(ValidationException):
            presence.join("sid-1", "a" * 21, "lobby")

    def test_invalid_room_rejected(self, presence, rooms):
        with pytest.raises(ValidationException) as exc_info:
            presence.join("sid-1", "alice", "room with spaces")

        assert exc_info.value.details == {"field": "room"}
        assert presence.get("sid-1") is None
        assert rooms.count() == 0

    def test_room_name_too_long_rejected(self, presence):
        with pytest.raises(ValidationException):
            presence.join("sid-1", "alice", "r" * 31)

    def test_second_join_on_same_connection(self, presence, rooms):
        presence.join("sid-1", "alice", "lobby")

        with pytest.raises(AlreadyJoinedException):
            presence.join("sid-1", "alice2", "games")

        assert presence.get("sid-1").room == "lobby"
        assert not rooms.exists("games")

    def test_find_by_username_ignores_case(self, presence):
        presence.join("sid-1", "Alice", "lobby")

        assert presence.find_by_username("alice").sid == "sid-1"
        assert presence.find_by_username("ALICE").username == "Alice"
        assert presence.find_by_username("bob") is None
        assert presence.find_by_username(None) is None

    def test_leave_frees_username(self, presence):
        presence.join("sid-1", "alice", "lobby")

        user = presence.leave("sid-1")

        assert user.username == "alice"
        assert presence.find_by_username("alice") is None
        # Name can be taken again
        presence.join("sid-2", "Alice", "lobby")
        assert presence.find_by_username("alice").sid == "sid-2"

    def test_leave_without_join(self, presence):
        assert presence.leave("sid-unknown") is None

    def test_change_room_validates_first(self, presence):
        presence.join("sid-1", "alice", "lobby")

        with pytest.raises(ValidationException):
            presence.change_room("sid-1", "no good")

        assert presence.get("sid-1").room == "lobby"

    def test_change_room_updates_user(self, presence):
        presence.join("sid-1", "alice", "lobby")

        user = presence.change_room("sid-1", "games")

        assert user.room == "games"

    def test_users_in_skips_unknown_sids(self, presence):
        presence.join("sid-1", "alice", "lobby")
        presence.join("sid-2", "bob", "lobby")

        users = presence.users_in(["sid-2", "ghost", "sid-1"])

        assert [user.username for user in users] == ["bob", "alice"]

    def test_user_wire_format(self, presence):
        presence.join("sid-1", "alice", "lobby", external_id="u-1")

        wire = presence.get("sid-1").to_wire()

        assert wire["username"] == "alice"
        assert wire["room"] == "lobby"
        assert wire["socketId"] == "sid-1"
        assert wire["userId"] == "u-1"
        assert "joinedAt" in wire
