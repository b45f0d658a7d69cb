import pytest

from imposter.logic import roster
from imposter.logic.exceptions import InvalidNameError, InvalidSlotError, SlotTakenError
from imposter.logic.state import PLAYER_AVATARS, GameSession
from imposter.tests.helpers.builders import create_session


def _hosts(session: GameSession) -> list[str]:
    return [p.slot for p in session.players if p.is_host]


class TestJoinValidation:
    @pytest.mark.parametrize("name", ["", "   ", "x" * 31])
    def test_invalid_name_rejected(self, name):
        session = GameSession(session_id="room-1")
        with pytest.raises(InvalidNameError):
            roster.add_or_reconnect(session, name, "Player 1", "conn-1")
        assert session.players == []
        assert session.scores == {}

    @pytest.mark.parametrize("slot", ["Player 13", "Player 0", "InvalidSlot", "player 1", "Player 01", "Player  2"])
    def test_invalid_slot_rejected(self, slot):
        session = GameSession(session_id="room-1")
        with pytest.raises(InvalidSlotError):
            roster.add_or_reconnect(session, "Alice", slot, "conn-1")
        assert session.players == []

    def test_name_and_slot_are_trimmed(self):
        session = GameSession(session_id="room-1")
        result = roster.add_or_reconnect(session, "  Alice  ", " Player 12 ", "conn-1")
        assert result.player.name == "Alice"
        assert result.player.slot == "Player 12"

    def test_thirty_character_name_accepted(self):
        session = GameSession(session_id="room-1")
        result = roster.add_or_reconnect(session, "x" * 30, "Player 1", "conn-1")
        assert result.player.name == "x" * 30


class TestAddPlayer:
    def test_first_player_becomes_host(self):
        session = GameSession(session_id="room-1")
        first = roster.add_or_reconnect(session, "Alice", "Player 1", "conn-1")
        second = roster.add_or_reconnect(session, "Bob", "Player 2", "conn-2")

        assert first.player.is_host is True
        assert second.player.is_host is False
        assert _hosts(session) == ["Player 1"]

    def test_new_player_defaults(self):
        session = GameSession(session_id="room-1")
        player = roster.add_or_reconnect(session, "Alice", "Player 3", "conn-1").player

        assert player.avatar == PLAYER_AVATARS[2]
        assert player.is_ready is False
        assert player.has_voted is False
        assert player.is_connected is True
        assert session.scores == {"Player 3": 0}

    def test_avatar_depends_only_on_slot_number(self):
        a = roster.add_or_reconnect(GameSession(session_id="a"), "Alice", "Player 5", "c1").player
        b = roster.add_or_reconnect(GameSession(session_id="b"), "Bob", "Player 5", "c2").player
        assert a.avatar == b.avatar

    def test_existing_score_entry_is_kept(self):
        session = GameSession(session_id="room-1", scores={"Player 2": 4})
        roster.add_or_reconnect(session, "Carol", "Player 2", "conn-1")
        assert session.scores["Player 2"] == 4


class TestReconnect:
    def test_same_name_reconnects_without_duplicate(self):
        session = create_session(2)
        session.players[1].disconnected_at = 10.0
        session.players[1].is_ready = True

        result = roster.add_or_reconnect(session, " P2 ", "Player 2", "conn-new")

        assert result.reconnected is True
        assert result.previous_connection_id == "conn-2"
        assert len(session.players) == 2
        player = session.get_player("Player 2")
        assert player.connection_id == "conn-new"
        assert player.is_connected is True
        assert player.is_ready is True

    def test_different_name_is_slot_taken(self):
        session = create_session(2)
        with pytest.raises(SlotTakenError):
            roster.add_or_reconnect(session, "Mallory", "Player 2", "conn-new")
        assert session.get_player("Player 2").connection_id == "conn-2"


class TestRemove:
    def test_host_leaves_two_player_session(self):
        session = create_session(2)
        removed = roster.remove(session, "Player 1")

        assert removed.slot == "Player 1"
        assert session.player_slots == ["Player 2"]
        assert _hosts(session) == ["Player 2"]

    def test_host_leaves_one_player_session(self):
        session = create_session(1)
        roster.remove(session, "Player 1")
        assert session.players == []
        assert session.host is None

    def test_non_host_leaving_keeps_host(self):
        session = create_session(3)
        roster.remove(session, "Player 2")
        assert _hosts(session) == ["Player 1"]

    def test_remove_missing_slot_returns_none(self):
        session = create_session(2)
        assert roster.remove(session, "Player 9") is None
        assert len(session.players) == 2

    def test_score_entry_retained(self):
        session = create_session(2)
        session.scores["Player 2"] = 3
        session.ready_next.add("Player 2")
        roster.remove(session, "Player 2")
        assert session.scores["Player 2"] == 3
        assert "Player 2" not in session.ready_next

    def test_host_is_unique_through_churn(self):
        session = GameSession(session_id="room-1")
        for n in range(1, 6):
            roster.add_or_reconnect(session, f"P{n}", f"Player {n}", f"c{n}")
        for slot in ("Player 1", "Player 2", "Player 4"):
            roster.remove(session, slot)
            assert len(_hosts(session)) == 1
        roster.add_or_reconnect(session, "P1", "Player 1", "c9")
        assert _hosts(session) == ["Player 3"]


class TestUpdate:
    def test_update_sets_fields(self):
        session = create_session(2)
        player = roster.update(session, "Player 2", is_ready=True)
        assert player.is_ready is True

    def test_update_missing_slot_is_noop(self):
        session = create_session(2)
        assert roster.update(session, "Player 7", is_ready=True) is None

    def test_update_unknown_field_raises(self):
        session = create_session(2)
        with pytest.raises(AttributeError):
            roster.update(session, "Player 1", colour="red")

    def test_get(self):
        session = create_session(2)
        assert roster.get(session, "Player 2").name == "P2"
        assert roster.get(session, "Player 5") is None


class TestMarkDisconnected:
    def test_marks_player_holding_connection(self):
        session = create_session(2)
        player = roster.mark_disconnected(session, "conn-2", 123.0)
        assert player.slot == "Player 2"
        assert player.disconnected_at == 123.0
        assert player.is_connected is False

    def test_replaced_connection_is_ignored(self):
        session = create_session(2)
        assert roster.mark_disconnected(session, "conn-old", 1.0) is None
        assert all(p.is_connected for p in session.players)
