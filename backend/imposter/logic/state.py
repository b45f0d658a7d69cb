"""Mutable session state for one imposter game room.

A GameSession is owned by exactly one SessionActor; all reads and writes go
through the actor's queue, so nothing here is synchronized.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from imposter.logic.enums import Difficulty, Phase
from imposter.logic.types import RoundRecord

MAX_NAME_LENGTH = 30
MAX_SLOT_LENGTH = 15
MIN_SLOT_NUMBER = 1
MAX_SLOT_NUMBER = 12
SLOT_PREFIX = "Player "

PLAYER_AVATARS = ("😀", "😎", "👽", "🤖", "🧑‍🚀", "🌟", "🎉", "🎈", "🎯", "🚀", "💡", "🦊")

# fixed game balance, not configurable
CORRECT_GUESS_POINTS = 1
IMPOSTER_SURVIVAL_POINTS = 2


def avatar_for_slot_number(slot_number: int) -> str:
    return PLAYER_AVATARS[(slot_number - 1) % len(PLAYER_AVATARS)]


@dataclass
class SessionPlayer:
    """A seat in a session, identified by its slot rather than its name.

    connection_id is an opaque handle reassigned on every reconnect.
    disconnected_at is a time.monotonic() timestamp, None while connected.
    """

    slot: str
    name: str
    avatar: str
    connection_id: str | None = None
    is_host: bool = False
    is_ready: bool = False
    has_voted: bool = False
    disconnected_at: float | None = None

    @property
    def is_connected(self) -> bool:
        return self.disconnected_at is None


@dataclass
class GameSession:
    session_id: str
    difficulty: Difficulty = Difficulty.EASY
    players: list[SessionPlayer] = field(default_factory=list)
    phase: Phase = Phase.WAITING
    round_number: int = 1
    turn_order: list[str] = field(default_factory=list)
    clue_index: int = 0
    imposter_slot: str | None = None
    player_words: dict[str, str] = field(default_factory=dict)
    votes: dict[str, str] = field(default_factory=dict)  # voter slot -> voted slot, non-imposters only
    scores: dict[str, int] = field(default_factory=dict)
    revoted: bool = False
    ready_next: set[str] = field(default_factory=set)
    voted_out: str | None = None
    round_history: list[RoundRecord] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False)

    @property
    def player_slots(self) -> list[str]:
        return [p.slot for p in self.players]

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def host(self) -> SessionPlayer | None:
        return next((p for p in self.players if p.is_host), None)

    @property
    def connected_players(self) -> list[SessionPlayer]:
        return [p for p in self.players if p.is_connected]

    @property
    def current_turn(self) -> str | None:
        """Slot whose turn it is to give a clue, or None past the last turn."""
        if 0 <= self.clue_index < len(self.turn_order):
            return self.turn_order[self.clue_index]
        return None

    @property
    def name_map(self) -> dict[str, str]:
        return {p.slot: p.name for p in self.players}

    @property
    def correct_guessers(self) -> list[str]:
        """Non-imposter voters whose recorded vote names the imposter."""
        return [
            voter
            for voter, voted in self.votes.items()
            if voter != self.imposter_slot and voted == self.imposter_slot
        ]

    def get_player(self, slot: str) -> SessionPlayer | None:
        return next((p for p in self.players if p.slot == slot), None)
