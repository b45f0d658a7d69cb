"""Roster-facing actions: join, resync, ready toggle, leave.

Each function wraps the roster primitives and returns the events the
room should see.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from imposter.logic import roster, voting
from imposter.logic.enums import Phase
from imposter.logic.events import RosterChangedEvent, ServiceEvent, broadcast, to_slot
from imposter.logic.exceptions import PlayerNotFoundError, SlotTakenError
from imposter.logic.resync import build_resync_payload
from imposter.logic.types import roster_snapshot

if TYPE_CHECKING:
    from imposter.logic.roster import JoinResult
    from imposter.logic.state import GameSession


def roster_changed(session: GameSession, *, exclude_slot: str | None = None) -> ServiceEvent:
    return broadcast(RosterChangedEvent(players=roster_snapshot(session)), exclude_slot=exclude_slot)


def _resync_events(session: GameSession, slot: str) -> list[ServiceEvent]:
    return [
        to_slot(slot, build_resync_payload(session, slot)),
        roster_changed(session, exclude_slot=slot),
    ]


def join(session: GameSession, name: str, slot: str, connection_id: str) -> tuple[JoinResult, list[ServiceEvent]]:
    """Join a free slot, or reconnect to a held one and receive a resync payload."""
    result = roster.add_or_reconnect(session, name, slot, connection_id)
    if result.reconnected:
        return result, _resync_events(session, result.player.slot)
    return result, [roster_changed(session)]


def resync(session: GameSession, name: str, slot: str, connection_id: str) -> tuple[JoinResult, list[ServiceEvent]]:
    """Explicit resync request. Only known players may resync."""
    name = roster.normalize_name(name)
    slot = roster.normalize_slot(slot)
    player = session.get_player(slot)
    if player is None:
        raise PlayerNotFoundError(f"{slot} is not in this session")
    if player.name != name:
        raise SlotTakenError(f"{slot} is taken by another player")
    return join(session, name, slot, connection_id)


def set_ready(session: GameSession, slot: str, ready: bool) -> list[ServiceEvent]:
    if roster.update(session, slot, is_ready=ready) is None:
        raise PlayerNotFoundError(f"{slot} is not in this session")
    return [roster_changed(session)]


def leave(session: GameSession, slot: str) -> list[ServiceEvent]:
    """Remove a player. During voting, the departure may complete the vote."""
    if roster.remove(session, slot) is None:
        return []
    if session.is_empty:
        return []
    events = [roster_changed(session)]
    if session.phase == Phase.VOTING:
        session.votes.pop(slot, None)
        events.extend(voting.submit_vote(session, None, None))
    return events
