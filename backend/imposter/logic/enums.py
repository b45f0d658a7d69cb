"""
String enum definitions for imposter game concepts.
"""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """Session phases, in the order a round walks through them."""

    WAITING = "waiting"
    CLUE = "clue"
    VOTING = "voting"
    RESULTS = "results"
    FINAL = "final"


class Difficulty(StrEnum):
    """Word list tiers, easiest first."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def easier_tiers(self) -> list[Difficulty]:
        """Return this tier followed by every easier tier, hardest first."""
        order = list(Difficulty)
        return list(reversed(order[: order.index(self) + 1]))


class TimeoutType(StrEnum):
    CLUE = "clue"
    VOTING = "voting"


class GameErrorCode(StrEnum):
    """Error codes sent to clients for rejected actions."""

    INVALID_NAME = "invalid_name"
    INVALID_SLOT = "invalid_slot"
    SLOT_TAKEN = "slot_taken"
    SESSION_NOT_FOUND = "session_not_found"
    PLAYER_NOT_FOUND = "player_not_found"
    NOT_IN_SESSION = "not_in_session"
    NOT_HOST = "not_host"
    NOT_YOUR_TURN = "not_your_turn"
    INVALID_PHASE = "invalid_phase"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    PLAYERS_NOT_READY = "players_not_ready"
