"""Domain event models and service event transport container.

Logic functions never talk to connections. They mutate the session and return
ServiceEvent containers; the session actor routes each one to the whole room
(BroadcastTarget) or to a single slot (SlotTarget) and derives timer changes
from the event types it sees.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from imposter.logic.enums import TimeoutType
from imposter.logic.types import PlayerInfo

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event should be sent to every connected player, optionally skipping one slot."""

    exclude_slot: str | None = None


@dataclass(frozen=True)
class SlotTarget:
    """Event should be sent to the player holding a specific slot."""

    slot: str


EventTarget = BroadcastTarget | SlotTarget


# ---------------------------------------------------------------------------
# Event type enum
# ---------------------------------------------------------------------------


class EventType(StrEnum):
    ROSTER_CHANGED = "roster_changed"
    ROUND_STARTED = "round_started"
    NEXT_TURN = "next_turn"
    VOTING_STARTED = "voting_started"
    TIMER_TICK = "timer_tick"
    REVOTE = "revote"
    VOTING_RESULTS = "voting_results"
    READY_STATUS = "ready_status"
    FINAL_SCORES = "final_scores"


# ---------------------------------------------------------------------------
# Domain event models
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    """Base class for all domain game events."""

    model_config = ConfigDict(frozen=True)

    type: EventType


class RosterChangedEvent(GameEvent):
    type: Literal[EventType.ROSTER_CHANGED] = EventType.ROSTER_CHANGED
    players: list[PlayerInfo]


class RoundStartedEvent(GameEvent):
    """Sent privately to each player; word differs for the imposter."""

    type: Literal[EventType.ROUND_STARTED] = EventType.ROUND_STARTED
    word: str | None
    turn_order: list[str]
    current_turn: str | None
    round: int


class NextTurnEvent(GameEvent):
    type: Literal[EventType.NEXT_TURN] = EventType.NEXT_TURN
    slot: str


class VotingStartedEvent(GameEvent):
    type: Literal[EventType.VOTING_STARTED] = EventType.VOTING_STARTED
    players: list[PlayerInfo]
    already_voted: bool
    name_map: dict[str, str]


class TimerTickEvent(GameEvent):
    type: Literal[EventType.TIMER_TICK] = EventType.TIMER_TICK
    phase: TimeoutType
    seconds_left: int


class RevoteEvent(GameEvent):
    type: Literal[EventType.REVOTE] = EventType.REVOTE
    tied_slots: list[str]


class VotingResultsEvent(GameEvent):
    type: Literal[EventType.VOTING_RESULTS] = EventType.VOTING_RESULTS
    votes: dict[str, str]
    imposter: str | None
    voted_out: str | None
    correct_guessers: list[str]
    scores: dict[str, int]
    name_map: dict[str, str]
    players: list[PlayerInfo]
    round: int


class ReadyStatusEvent(GameEvent):
    type: Literal[EventType.READY_STATUS] = EventType.READY_STATUS
    ready_slots: list[str]


class FinalScoresEvent(GameEvent):
    type: Literal[EventType.FINAL_SCORES] = EventType.FINAL_SCORES
    scores: dict[str, int]
    players: list[PlayerInfo]
    name_map: dict[str, str]


class ServiceEvent(BaseModel):
    """Event transport container for the session layer.

    Uses typed internal targets (BroadcastTarget / SlotTarget) for routing.
    """

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        if self.event.value != self.data.type.value:
            raise ValueError(
                f"ServiceEvent.event '{self.event.value}' does not match data.type '{self.data.type.value}'",
            )
        return self


def broadcast(data: GameEvent, *, exclude_slot: str | None = None) -> ServiceEvent:
    return ServiceEvent(event=data.type, data=data, target=BroadcastTarget(exclude_slot=exclude_slot))


def to_slot(slot: str, data: GameEvent) -> ServiceEvent:
    return ServiceEvent(event=data.type, data=data, target=SlotTarget(slot=slot))
