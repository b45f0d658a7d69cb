"""
Round lifecycle: game start, word and imposter assignment, clue turns.

Phase flow: waiting -> clue -> voting -> results -> clue (next round) | final.
Functions here mutate the session in place and return the service events the
session actor should deliver. Timer changes are derived from those events by
the actor, not started here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from imposter.logic.enums import Phase
from imposter.logic.events import (
    NextTurnEvent,
    RoundStartedEvent,
    ServiceEvent,
    VotingStartedEvent,
    broadcast,
    to_slot,
)
from imposter.logic.exceptions import (
    InvalidPhaseError,
    NotEnoughPlayersError,
    NotHostError,
    NotYourTurnError,
    PlayersNotReadyError,
)
from imposter.logic.types import roster_snapshot
from imposter.logic.words import pick_word_pair

if TYPE_CHECKING:
    from imposter.logic.state import GameSession
    from imposter.logic.words import WordSource

logger = structlog.get_logger()

# redraws before picking the imposter among the non-first slots directly
MAX_IMPOSTER_DRAWS = 10


def require_host(session: GameSession, requester: str) -> None:
    player = session.get_player(requester)
    if player is None or not player.is_host:
        raise NotHostError("only the host can do that")


def _choose_imposter(session: GameSession, turn_order: list[str]) -> str:
    """Pick the imposter uniformly, never the first clue giver when more than one player."""
    imposter = session.rng.choice(turn_order)
    if len(turn_order) == 1:
        return imposter
    for _ in range(MAX_IMPOSTER_DRAWS):
        if imposter != turn_order[0]:
            return imposter
        imposter = session.rng.choice(turn_order)
    if imposter == turn_order[0]:
        imposter = session.rng.choice(turn_order[1:])
    return imposter


def start_game(
    session: GameSession,
    requester: str,
    word_source: WordSource,
    min_players: int,
) -> list[ServiceEvent]:
    """Validate the lobby and start round 1. Host only."""
    require_host(session, requester)
    if session.phase != Phase.WAITING:
        raise InvalidPhaseError(f"game already started (phase {session.phase})")
    if len(session.players) < min_players:
        raise NotEnoughPlayersError(f"need at least {min_players} players")
    not_ready = [p.slot for p in session.players if not p.is_ready]
    if not_ready:
        raise PlayersNotReadyError(f"waiting for {', '.join(not_ready)}")

    session.round_number = 1
    logger.info("game started", session_id=session.session_id, players=len(session.players))
    return start_new_round(session, word_source)


def start_new_round(session: GameSession, word_source: WordSource) -> list[ServiceEvent]:
    """Deal words, pick the imposter, shuffle the turn order and enter the clue phase.

    Returns one private round_started event per player.
    """
    if session.is_empty:
        logger.warning("cannot start round without players", session_id=session.session_id)
        return []

    session.phase = Phase.CLUE
    session.votes.clear()
    session.revoted = False
    session.ready_next.clear()
    session.voted_out = None
    for player in session.players:
        player.has_voted = False

    turn_order = session.player_slots
    session.rng.shuffle(turn_order)
    session.turn_order = turn_order
    session.imposter_slot = _choose_imposter(session, turn_order)

    pair = pick_word_pair(word_source, session.difficulty, session.rng)
    session.player_words = {
        slot: pair.imposter_word if slot == session.imposter_slot else pair.word for slot in turn_order
    }
    session.clue_index = 0

    logger.info(
        "round started",
        session_id=session.session_id,
        round=session.round_number,
        imposter=session.imposter_slot,
        word=pair.word,
    )

    return [
        to_slot(
            slot,
            RoundStartedEvent(
                word=session.player_words[slot],
                turn_order=list(turn_order),
                current_turn=session.current_turn,
                round=session.round_number,
            ),
        )
        for slot in turn_order
    ]


def advance_clue_or_enter_voting(session: GameSession, requester: str | None = None) -> list[ServiceEvent]:
    """Move to the next clue giver, or into voting after the last one.

    requester is None when the clue timer expired. A player may only end
    their own turn.
    """
    if session.phase != Phase.CLUE:
        return []
    if requester is not None and requester != session.current_turn:
        raise NotYourTurnError(f"it is {session.current_turn}'s turn")

    session.clue_index += 1
    next_slot = session.current_turn
    if next_slot is not None:
        logger.debug("next clue turn", session_id=session.session_id, slot=next_slot)
        return [broadcast(NextTurnEvent(slot=next_slot))]

    session.phase = Phase.VOTING
    logger.info("voting started", session_id=session.session_id, round=session.round_number)
    return [
        broadcast(
            VotingStartedEvent(
                players=roster_snapshot(session),
                already_voted=False,
                name_map=session.name_map,
            ),
        ),
    ]
