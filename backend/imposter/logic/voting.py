"""
Voting, tie-break and scoring.

Votes are tallied once every player has voted or the voting timer expired.
A tie triggers a single revote; a second tie is broken uniformly at random.
The imposter may vote but that vote is never recorded or counted.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

import structlog

from imposter.logic.enums import Phase
from imposter.logic.events import (
    FinalScoresEvent,
    ReadyStatusEvent,
    RevoteEvent,
    ServiceEvent,
    VotingResultsEvent,
    broadcast,
)
from imposter.logic import roster
from imposter.logic.exceptions import PlayerNotFoundError
from imposter.logic.round import require_host, start_new_round
from imposter.logic.state import CORRECT_GUESS_POINTS, IMPOSTER_SURVIVAL_POINTS
from imposter.logic.types import RoundRecord, roster_snapshot

if TYPE_CHECKING:
    from imposter.logic.state import GameSession
    from imposter.logic.words import WordSource

logger = structlog.get_logger()


def submit_vote(
    session: GameSession,
    voter: str | None,
    voted: str | None,
    *,
    timer_expired: bool = False,
) -> list[ServiceEvent]:
    """Record a vote and tally when voting is complete.

    With timer_expired the tally runs on whatever votes exist, possibly none.
    """
    if session.phase != Phase.VOTING:
        return []

    if voter is not None:
        player = session.get_player(voter)
        if player is None:
            raise PlayerNotFoundError(f"{voter} is not in this session")
        if voted is None or session.get_player(voted) is None:
            raise PlayerNotFoundError(f"cannot vote for {voted}")
        player.has_voted = True
        if voter != session.imposter_slot:
            session.votes[voter] = voted

    everyone_voted = all(p.has_voted for p in session.players)
    if not everyone_voted and not timer_expired:
        return []

    return _tally(session)


def _top_voted(votes: dict[str, str]) -> list[str]:
    counts = Counter(votes.values())
    if not counts:
        return []
    top = max(counts.values())
    return [slot for slot, count in counts.items() if count == top]


def _tally(session: GameSession) -> list[ServiceEvent]:
    top_voted = _top_voted(session.votes)

    if len(top_voted) > 1 and not session.revoted:
        session.revoted = True
        session.votes.clear()
        for player in session.players:
            player.has_voted = False
        logger.info("vote tied, revote", session_id=session.session_id, tied=top_voted)
        return [broadcast(RevoteEvent(tied_slots=top_voted))]

    if not top_voted:
        voted_out = None
    elif len(top_voted) == 1:
        voted_out = top_voted[0]
    else:
        voted_out = session.rng.choice(top_voted)

    for slot in session.player_slots:
        session.scores.setdefault(slot, 0)

    imposter = session.imposter_slot
    correct_guessers = session.correct_guessers
    if imposter is not None and voted_out == imposter:
        for slot in correct_guessers:
            session.scores[slot] = session.scores.get(slot, 0) + CORRECT_GUESS_POINTS
    elif imposter is not None:
        session.scores[imposter] = session.scores.get(imposter, 0) + IMPOSTER_SURVIVAL_POINTS

    session.phase = Phase.RESULTS
    session.revoted = False
    session.voted_out = voted_out
    session.round_history.append(
        RoundRecord(
            round_number=session.round_number,
            imposter=imposter,
            voted_out=voted_out,
            votes=dict(session.votes),
            correct_guessers=correct_guessers,
            word=next((w for s, w in session.player_words.items() if s != imposter), None),
            imposter_word=session.player_words.get(imposter) if imposter else None,
        ),
    )

    logger.info(
        "vote tally",
        session_id=session.session_id,
        round=session.round_number,
        voted_out=voted_out,
        imposter=imposter,
        correct_guessers=correct_guessers,
    )

    return [
        broadcast(
            VotingResultsEvent(
                votes=dict(session.votes),
                imposter=imposter,
                voted_out=voted_out,
                correct_guessers=correct_guessers,
                scores=dict(session.scores),
                name_map=session.name_map,
                players=roster_snapshot(session),
                round=session.round_number,
            ),
        ),
    ]


def handle_ready_for_next_round(session: GameSession, slot: str, word_source: WordSource) -> list[ServiceEvent]:
    """Mark a player ready for the next round; start it once every connected player is."""
    if session.phase != Phase.RESULTS:
        return []
    if session.get_player(slot) is None:
        raise PlayerNotFoundError(f"{slot} is not in this session")

    session.ready_next.add(slot)
    events = [broadcast(ReadyStatusEvent(ready_slots=sorted(session.ready_next, key=roster.slot_number)))]

    connected = session.connected_players
    if not connected:
        return events
    if all(p.slot in session.ready_next for p in connected):
        session.round_number += 1
        events.extend(start_new_round(session, word_source))
    return events


def handle_end_game(session: GameSession, requester: str) -> list[ServiceEvent]:
    """Host ends the game; everyone sees the final scoreboard."""
    require_host(session, requester)
    session.phase = Phase.FINAL
    logger.info("game ended", session_id=session.session_id, rounds=len(session.round_history))
    return [
        broadcast(
            FinalScoresEvent(
                scores=dict(session.scores),
                players=roster_snapshot(session),
                name_map=session.name_map,
            ),
        ),
    ]
