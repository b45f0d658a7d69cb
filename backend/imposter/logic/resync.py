"""Rebuild the outward state of a session for one reconnecting player.

The payload reuses the event the player would have received on phase entry,
so clients restore their view through the same handlers they already have.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from imposter.logic.enums import Phase
from imposter.logic.events import (
    FinalScoresEvent,
    GameEvent,
    RosterChangedEvent,
    RoundStartedEvent,
    VotingResultsEvent,
    VotingStartedEvent,
)
from imposter.logic.types import roster_snapshot

if TYPE_CHECKING:
    from imposter.logic.state import GameSession


def build_resync_payload(session: GameSession, slot: str) -> GameEvent:
    """Return the single phase-dependent payload for the player in `slot`."""
    player = session.get_player(slot)
    players = roster_snapshot(session)

    if session.phase == Phase.CLUE:
        return RoundStartedEvent(
            word=session.player_words.get(slot),
            turn_order=list(session.turn_order),
            current_turn=session.current_turn,
            round=session.round_number,
        )
    if session.phase == Phase.VOTING:
        return VotingStartedEvent(
            players=players,
            already_voted=player.has_voted if player is not None else False,
            name_map=session.name_map,
        )
    if session.phase == Phase.RESULTS:
        return VotingResultsEvent(
            votes=dict(session.votes),
            imposter=session.imposter_slot,
            voted_out=session.voted_out,
            correct_guessers=session.correct_guessers,
            scores=dict(session.scores),
            name_map=session.name_map,
            players=players,
            round=session.round_number,
        )
    if session.phase == Phase.FINAL:
        return FinalScoresEvent(scores=dict(session.scores), players=players, name_map=session.name_map)
    return RosterChangedEvent(players=players)
