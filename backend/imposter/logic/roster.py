"""Roster management: join, reconnect, leave and host reassignment.

Players are identified by their slot ("Player N"). A join to an occupied slot
with the same trimmed name is a reconnect; with a different name it is
rejected. Validation happens before any mutation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from imposter.logic.exceptions import InvalidNameError, InvalidSlotError, SlotTakenError
from imposter.logic.state import (
    MAX_NAME_LENGTH,
    MAX_SLOT_LENGTH,
    SessionPlayer,
    avatar_for_slot_number,
)

if TYPE_CHECKING:
    from imposter.logic.state import GameSession

logger = structlog.get_logger()

SLOT_PATTERN = re.compile(r"^Player (?:[1-9]|1[0-2])$")


@dataclass(frozen=True)
class JoinResult:
    player: SessionPlayer
    reconnected: bool
    # connection handle the player held before a reconnect, if any
    previous_connection_id: str | None = None


def normalize_name(name: str) -> str:
    trimmed = name.strip()
    if not trimmed or len(trimmed) > MAX_NAME_LENGTH:
        raise InvalidNameError(f"name must be 1-{MAX_NAME_LENGTH} characters")
    return trimmed


def normalize_slot(slot: str) -> str:
    trimmed = slot.strip()
    if len(trimmed) > MAX_SLOT_LENGTH or not SLOT_PATTERN.match(trimmed):
        raise InvalidSlotError(f"invalid slot: {slot!r}")
    return trimmed


def slot_number(slot: str) -> int:
    return int(slot.rsplit(" ", 1)[1])


def add_or_reconnect(session: GameSession, name: str, slot: str, connection_id: str) -> JoinResult:
    """Seat a player in a slot, or reconnect the player already holding it.

    Raises InvalidNameError, InvalidSlotError or SlotTakenError without
    touching the session.
    """
    name = normalize_name(name)
    slot = normalize_slot(slot)

    existing = session.get_player(slot)
    if existing is not None:
        if existing.name.strip() != name:
            raise SlotTakenError(f"{slot} is taken by another player")
        previous = existing.connection_id
        existing.connection_id = connection_id
        existing.disconnected_at = None
        logger.info("player reconnected", session_id=session.session_id, slot=slot)
        return JoinResult(player=existing, reconnected=True, previous_connection_id=previous)

    player = SessionPlayer(
        slot=slot,
        name=name,
        avatar=avatar_for_slot_number(slot_number(slot)),
        connection_id=connection_id,
        is_host=session.is_empty,
    )
    session.players.append(player)
    # a returning slot keeps the score its earlier occupant earned
    session.scores.setdefault(slot, 0)
    logger.info("player joined", session_id=session.session_id, slot=slot, is_host=player.is_host)
    return JoinResult(player=player, reconnected=False)


def remove(session: GameSession, slot: str) -> SessionPlayer | None:
    """Remove a player and hand the host flag to the first remaining player.

    The score entry is kept. Returns the removed player, or None if the slot
    was empty.
    """
    player = session.get_player(slot)
    if player is None:
        return None
    session.players.remove(player)
    session.ready_next.discard(slot)
    if player.is_host and session.players:
        session.players[0].is_host = True
        logger.info("host reassigned", session_id=session.session_id, slot=session.players[0].slot)
    player.is_host = False
    return player


def get(session: GameSession, slot: str) -> SessionPlayer | None:
    return session.get_player(slot)


def update(session: GameSession, slot: str, **fields: Any) -> SessionPlayer | None:
    """Set attributes on a player in place. No-op if the slot is empty."""
    player = session.get_player(slot)
    if player is None:
        return None
    for key, value in fields.items():
        if not hasattr(player, key):
            raise AttributeError(f"SessionPlayer has no field {key!r}")
        setattr(player, key, value)
    return player


def mark_disconnected(session: GameSession, connection_id: str, now: float) -> SessionPlayer | None:
    """Stamp the player holding this connection as disconnected.

    Ignored when the connection was already replaced by a reconnect.
    """
    player = next((p for p in session.players if p.connection_id == connection_id), None)
    if player is None:
        return None
    player.disconnected_at = now
    return player
