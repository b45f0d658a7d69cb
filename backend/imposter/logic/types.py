"""
Pydantic models shared by the logic layer and the wire payloads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from imposter.logic.state import GameSession, SessionPlayer


class PlayerInfo(BaseModel):
    """Public view of a roster entry, safe to broadcast to every player."""

    model_config = ConfigDict(frozen=True)

    slot: str
    name: str
    avatar: str
    is_host: bool
    is_ready: bool
    has_voted: bool
    is_connected: bool

    @classmethod
    def from_player(cls, player: SessionPlayer) -> PlayerInfo:
        return cls(
            slot=player.slot,
            name=player.name,
            avatar=player.avatar,
            is_host=player.is_host,
            is_ready=player.is_ready,
            has_voted=player.has_voted,
            is_connected=player.is_connected,
        )


def roster_snapshot(session: GameSession) -> list[PlayerInfo]:
    return [PlayerInfo.from_player(p) for p in session.players]


class WordPair(BaseModel):
    """Majority word and imposter word for one round."""

    model_config = ConfigDict(frozen=True)

    word: str
    imposter_word: str

    @property
    def is_distinct(self) -> bool:
        return bool(self.word.strip()) and self.word.strip().lower() != self.imposter_word.strip().lower()


class RoundRecord(BaseModel):
    """Summary of one completed round, appended when votes are tallied."""

    model_config = ConfigDict(frozen=True)

    round_number: int
    imposter: str | None
    voted_out: str | None
    votes: dict[str, str]
    correct_guessers: list[str]
    word: str | None
    imposter_word: str | None
