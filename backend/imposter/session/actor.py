"""
Single-writer worker for one game session.

Every mutation of a GameSession runs on the actor's worker task, one at a
time, in queue order. Player actions are awaited through `execute`; timer
ticks and expiries are posted into the same queue, so a vote and a timer
expiry arriving together are ordered by the queue alone.
"""

from __future__ import annotations

import asyncio
import contextlib
import contextvars
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from imposter.logic import round as round_logic
from imposter.logic import voting
from imposter.logic.enums import TimeoutType
from imposter.logic.exceptions import GameRuleError, SessionNotFoundError
from imposter.logic.events import (
    BroadcastTarget,
    EventType,
    SlotTarget,
    TimerTickEvent,
    broadcast,
)
from imposter.logic.timer import PhaseTimer, TimerConfig
from imposter.messaging.event_payload import service_event_payload
from imposter.session.broadcast import send_to_connections

if TYPE_CHECKING:
    from collections.abc import Callable

    from imposter.logic.events import ServiceEvent
    from imposter.logic.state import GameSession
    from imposter.logic.words import WordSource
    from imposter.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()

_CLUE_TIMER_EVENTS = frozenset({EventType.ROUND_STARTED, EventType.NEXT_TURN})
_VOTING_TIMER_EVENTS = frozenset({EventType.VOTING_STARTED, EventType.REVOTE})
_STOP_TIMER_EVENTS = frozenset({EventType.VOTING_RESULTS, EventType.FINAL_SCORES})


@dataclass
class _Command:
    handler: Callable[[GameSession], Any]
    future: asyncio.Future[Any] | None
    drives_timer: bool


class SessionActor:
    """Own one GameSession, its phase timer and its command queue.

    `connections` maps connection ids to live connections and is shared with
    the session manager; the actor only reads it to deliver events.
    """

    def __init__(
        self,
        session: GameSession,
        word_source: WordSource,
        connections: dict[str, ConnectionProtocol],
        timer_config: TimerConfig | None = None,
    ) -> None:
        self._session = session
        self._word_source = word_source
        self._connections = connections
        self._timer = PhaseTimer(timer_config or TimerConfig())
        self._queue: asyncio.Queue[_Command] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def session(self) -> GameSession:
        """Direct state access. Only read outside the worker for status and tests."""
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def word_source(self) -> WordSource:
        return self._word_source

    @property
    def timer(self) -> PhaseTimer:
        return self._timer

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            # fresh context so the worker does not inherit the first caller's log bindings
            self._worker = asyncio.create_task(
                self._run(),
                name=f"session-{self.session_id}",
                context=contextvars.Context(),
            )

    async def execute(self, handler: Callable[[GameSession], Any], *, drives_timer: bool = True) -> Any:
        """Run `handler` on the worker and wait for it.

        If the handler returns a list of ServiceEvents they are delivered
        before this returns; rule errors raised by the handler propagate here.
        Pass drives_timer=False for handlers whose events must not touch the
        phase timer, such as a resync payload.
        """
        if self._closed:
            raise RuntimeError(f"session {self.session_id} is closed")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(_Command(handler=handler, future=future, drives_timer=drives_timer))
        self._ensure_worker()
        return await future

    def post(self, handler: Callable[[GameSession], Any]) -> None:
        """Queue `handler` without waiting for it. Used for timer callbacks."""
        if self._closed:
            return
        self._queue.put_nowait(_Command(handler=handler, future=None, drives_timer=True))
        self._ensure_worker()

    async def _run(self) -> None:
        structlog.contextvars.bind_contextvars(session_id=self.session_id)
        while True:
            command = await self._queue.get()
            try:
                if command.future is not None and command.future.cancelled():
                    continue
                result = command.handler(self._session)
                if isinstance(result, list):
                    await self._dispatch(result, drives_timer=command.drives_timer)
            except asyncio.CancelledError:
                if command.future is not None and not command.future.done():
                    command.future.set_exception(SessionNotFoundError(f"session {self.session_id} was closed"))
                raise
            except GameRuleError as e:
                if command.future is not None and not command.future.done():
                    command.future.set_exception(e)
            except Exception as e:
                logger.exception("session handler failed")
                if command.future is not None and not command.future.done():
                    command.future.set_exception(e)
            else:
                if command.future is not None and not command.future.done():
                    command.future.set_result(result)
            finally:
                self._queue.task_done()

    async def _dispatch(self, events: list[ServiceEvent], *, drives_timer: bool) -> None:
        for event in events:
            await self._deliver(event)
        if drives_timer:
            self._sync_timer(events)

    async def _deliver(self, event: ServiceEvent) -> None:
        message = service_event_payload(event)
        target = event.target
        if isinstance(target, SlotTarget):
            player = self._session.get_player(target.slot)
            recipients = [player] if player is not None else []
        elif isinstance(target, BroadcastTarget):
            recipients = [p for p in self._session.players if p.slot != target.exclude_slot]
        else:
            return

        connections = [
            self._connections[p.connection_id]
            for p in recipients
            if p.is_connected and p.connection_id in self._connections
        ]
        await send_to_connections(connections, message)

    # --- timer -------------------------------------------------------------

    def _sync_timer(self, events: list[ServiceEvent]) -> None:
        """Start, restart or stop the phase timer based on the last phase-changing event."""
        for event in reversed(events):
            if event.event in _CLUE_TIMER_EVENTS:
                self._start_timer(TimeoutType.CLUE)
                return
            if event.event in _VOTING_TIMER_EVENTS:
                self._start_timer(TimeoutType.VOTING)
                return
            if event.event in _STOP_TIMER_EVENTS:
                self._timer.cancel()
                return

    def _start_timer(self, phase: TimeoutType) -> None:
        self._timer.start(phase, on_tick=self._post_tick, on_expire=self._post_expire)

    def _post_tick(self, generation: int, phase: TimeoutType, seconds_left: int) -> None:
        def tick(_session: GameSession) -> list[ServiceEvent]:
            if generation != self._timer.generation:
                return []
            return [broadcast(TimerTickEvent(phase=phase, seconds_left=seconds_left))]

        self.post(tick)

    def _post_expire(self, generation: int, phase: TimeoutType) -> None:
        def expire(session: GameSession) -> list[ServiceEvent]:
            if generation != self._timer.generation:
                return []
            logger.info("phase timer expired", phase=phase.value, round=session.round_number)
            # the countdown task is finishing on its own; mark it stale so a
            # tally that produces no phase change leaves no live generation
            self._timer.cancel()
            if phase == TimeoutType.CLUE:
                return round_logic.advance_clue_or_enter_voting(session)
            return voting.submit_vote(session, None, None, timer_expired=True)

        self.post(expire)

    # --- lifecycle ---------------------------------------------------------

    async def close(self) -> None:
        """Cancel the timer and the worker. Pending awaiters get SessionNotFoundError."""
        self._closed = True
        self._timer.cancel()
        while not self._queue.empty():
            command = self._queue.get_nowait()
            if command.future is not None and not command.future.done():
                command.future.set_exception(SessionNotFoundError(f"session {self.session_id} was closed"))
            self._queue.task_done()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
        self._worker = None
