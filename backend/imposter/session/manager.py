from __future__ import annotations

import asyncio
import contextlib
import random
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from imposter.logic import lobby, roster
from imposter.logic import round as round_logic
from imposter.logic import voting
from imposter.logic.enums import Difficulty
from imposter.logic.exceptions import GameRuleError, NotInSessionError, SessionNotFoundError
from imposter.messaging.event_payload import service_event_payload
from imposter.messaging.types import (
    ErrorMessage,
    PongMessage,
    SessionCreatedMessage,
    SessionErrorCode,
)
from imposter.session.models import ConnectionBinding
from imposter.session.registry import SessionRegistry

if TYPE_CHECKING:
    from imposter.logic.enums import GameErrorCode
    from imposter.logic.events import ServiceEvent
    from imposter.logic.roster import JoinResult
    from imposter.logic.state import GameSession
    from imposter.logic.timer import TimerConfig
    from imposter.logic.words import WordSource
    from imposter.messaging.protocol import ConnectionProtocol
    from imposter.session.actor import SessionActor

logger = structlog.get_logger()

DEFAULT_MIN_PLAYERS = 2
DEFAULT_DISCONNECT_GRACE_SECONDS = 5.0


class SessionLimitError(Exception):
    """The server already hosts its maximum number of sessions."""


class SessionManager:
    """Connect transport connections to session actors.

    Owns the connection registry and the (connection -> session, slot)
    bindings. Every game action is forwarded to the session's actor with the
    bound slot as the requester; rule violations come back as GameRuleError
    and are reported to the requesting connection only.
    """

    def __init__(
        self,
        word_source: WordSource,
        *,
        timer_config: TimerConfig | None = None,
        default_difficulty: Difficulty = Difficulty.EASY,
        max_sessions: int | None = None,
        min_players: int = DEFAULT_MIN_PLAYERS,
        disconnect_grace_seconds: float = DEFAULT_DISCONNECT_GRACE_SECONDS,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._connections: dict[str, ConnectionProtocol] = {}
        self._bindings: dict[str, ConnectionBinding] = {}  # connection_id -> binding
        self._grace_tasks: dict[tuple[str, str], asyncio.Task[None]] = {}  # (session_id, slot) -> task
        self._registry = SessionRegistry(
            word_source,
            self._connections,
            timer_config=timer_config,
            default_difficulty=default_difficulty,
            rng=rng,
        )
        self._max_sessions = max_sessions
        self._min_players = min_players
        self._disconnect_grace_seconds = disconnect_grace_seconds
        self._clock = clock

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def session_count(self) -> int:
        return self._registry.session_count

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def get_binding(self, connection_id: str) -> ConnectionBinding | None:
        return self._bindings.get(connection_id)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._bindings.pop(connection.connection_id, None)

    async def _send_error(
        self,
        connection: ConnectionProtocol,
        code: SessionErrorCode | GameErrorCode,
        message: str,
    ) -> None:
        logger.warning("session error sent to client", error_code=code.value, error_message=message)
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(ErrorMessage(code=code, message=message).model_dump())

    # --- session creation --------------------------------------------------

    def create_session(self, session_id: str, difficulty: Difficulty | None = None) -> tuple[SessionActor, bool]:
        """Create the session or return the existing one. Returns (actor, created).

        Admission is capped here; existing sessions are always returned.
        """
        if (
            self._max_sessions is not None
            and self._registry.get(session_id) is None
            and self._registry.session_count >= self._max_sessions
        ):
            raise SessionLimitError(f"session limit reached ({self._max_sessions})")
        return self._registry.create_or_get(session_id, difficulty)

    async def handle_create_session(self, connection: ConnectionProtocol, difficulty: Difficulty | None) -> None:
        try:
            actor, created = self.create_session(connection.session_id, difficulty)
        except SessionLimitError as e:
            await self._send_error(connection, SessionErrorCode.ACTION_FAILED, str(e))
            return
        await connection.send_message(
            SessionCreatedMessage(
                session_id=actor.session_id,
                difficulty=actor.session.difficulty,
                created=created,
            ).model_dump(),
        )

    # --- join / resync -----------------------------------------------------

    async def join(self, connection: ConnectionProtocol, name: str, slot: str) -> None:
        await self._seat(connection, name, slot, lobby.join)

    async def resync(self, connection: ConnectionProtocol, name: str, slot: str) -> None:
        await self._seat(connection, name, slot, lobby.resync)

    async def _seat(
        self,
        connection: ConnectionProtocol,
        name: str,
        slot: str,
        seat: Callable[[GameSession, str, str, str], tuple[JoinResult, list[ServiceEvent]]],
    ) -> None:
        existing = self._bindings.get(connection.connection_id)
        if existing is not None:
            await self._send_error(
                connection,
                SessionErrorCode.ALREADY_IN_SESSION,
                f"already seated as {existing.slot} in {existing.session_id}",
            )
            return

        actor = self._registry.get(connection.session_id)
        if actor is None:
            await self._send_error(connection, SessionNotFoundError.code, "session not found")
            return

        outcome: list[JoinResult] = []

        def handler(session: GameSession) -> list[ServiceEvent]:
            result, events = seat(session, name, slot, connection.connection_id)
            outcome.append(result)
            return events

        try:
            await actor.execute(handler, drives_timer=False)
        except GameRuleError as e:
            await self._send_error(connection, e.code, e.message)
            return

        result = outcome[0]
        player = result.player
        self._cancel_grace_task(actor.session_id, player.slot)
        if result.previous_connection_id and result.previous_connection_id != connection.connection_id:
            await self._evict(result.previous_connection_id)
        self._bindings[connection.connection_id] = ConnectionBinding(
            connection=connection,
            session_id=actor.session_id,
            slot=player.slot,
            name=player.name,
        )
        structlog.contextvars.bind_contextvars(session_id=actor.session_id, slot=player.slot)

    async def _evict(self, connection_id: str) -> None:
        """Drop a connection whose slot was taken over by a reconnect."""
        self._bindings.pop(connection_id, None)
        stale = self._connections.pop(connection_id, None)
        if stale is not None:
            logger.info("closing replaced connection", connection_id=connection_id)
            with contextlib.suppress(RuntimeError, OSError, ConnectionError):
                await stale.close(code=1000, reason="replaced_by_reconnect")

    # --- bound actions -----------------------------------------------------

    async def _run_bound(
        self,
        connection: ConnectionProtocol,
        action: Callable[[GameSession, ConnectionBinding, SessionActor], Any],
    ) -> None:
        """Run `action` on the bound session's actor and report rule errors to the caller."""
        binding = self._bindings.get(connection.connection_id)
        try:
            if binding is None:
                raise NotInSessionError("join a session first")
            actor = self._registry.get(binding.session_id)
            if actor is None:
                raise SessionNotFoundError("session not found")
            await actor.execute(lambda session: action(session, binding, actor))
        except GameRuleError as e:
            await self._send_error(connection, e.code, e.message)

    async def set_ready(self, connection: ConnectionProtocol, *, ready: bool) -> None:
        await self._run_bound(connection, lambda s, b, _a: lobby.set_ready(s, b.slot, ready))

    async def start_game(self, connection: ConnectionProtocol) -> None:
        await self._run_bound(
            connection,
            lambda s, b, a: round_logic.start_game(s, b.slot, a.word_source, self._min_players),
        )

    async def advance_clue(self, connection: ConnectionProtocol) -> None:
        await self._run_bound(connection, lambda s, b, _a: round_logic.advance_clue_or_enter_voting(s, b.slot))

    async def submit_vote(self, connection: ConnectionProtocol, voted: str) -> None:
        await self._run_bound(connection, lambda s, b, _a: voting.submit_vote(s, b.slot, voted.strip()))

    async def ready_next_round(self, connection: ConnectionProtocol) -> None:
        await self._run_bound(
            connection,
            lambda s, b, a: voting.handle_ready_for_next_round(s, b.slot, a.word_source),
        )

    async def end_game(self, connection: ConnectionProtocol) -> None:
        await self._run_bound(connection, lambda s, b, _a: voting.handle_end_game(s, b.slot))

    async def leave(self, connection: ConnectionProtocol) -> None:
        """Give up the seat for good. The connection stays open."""
        binding = self._bindings.pop(connection.connection_id, None)
        if binding is None:
            await self._send_error(connection, NotInSessionError.code, "join a session first")
            return
        self._cancel_grace_task(binding.session_id, binding.slot)
        await self._remove_player(binding.session_id, binding.slot)
        structlog.contextvars.unbind_contextvars("session_id", "slot")
        logger.info("player left", session_id=binding.session_id, slot=binding.slot)

    async def request_roster(self, connection: ConnectionProtocol) -> None:
        """Send the current roster to this connection only. No join required."""
        actor = self._registry.get(connection.session_id)
        if actor is None:
            await self._send_error(connection, SessionNotFoundError.code, "session not found")
            return
        event = await actor.execute(lobby.roster_changed, drives_timer=False)
        await connection.send_message(service_event_payload(event))

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump())

    # --- disconnect and ghost removal --------------------------------------

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Mark the player disconnected and schedule removal after the grace period."""
        binding = self._bindings.get(connection.connection_id)
        self.unregister_connection(connection)
        if binding is None:
            return
        actor = self._registry.get(binding.session_id)
        if actor is None or actor.is_closed:
            return

        marked: list[str] = []

        def handler(session: GameSession) -> list[ServiceEvent]:
            player = roster.mark_disconnected(session, connection.connection_id, self._clock())
            if player is None:
                return []
            marked.append(player.slot)
            return [lobby.roster_changed(session)]

        await actor.execute(handler, drives_timer=False)
        if not marked:
            return

        logger.info("player disconnected", session_id=binding.session_id, slot=binding.slot)
        key = (binding.session_id, binding.slot)
        self._cancel_grace_task(*key)
        self._grace_tasks[key] = asyncio.create_task(
            self._remove_after_grace(binding.session_id, binding.slot, connection.connection_id),
        )

    async def _remove_after_grace(self, session_id: str, slot: str, connection_id: str) -> None:
        try:
            await asyncio.sleep(self._disconnect_grace_seconds)
            await self._remove_player(session_id, slot, ghost_connection_id=connection_id)
        except asyncio.CancelledError:
            pass
        finally:
            task = self._grace_tasks.get((session_id, slot))
            if task is asyncio.current_task():
                del self._grace_tasks[(session_id, slot)]

    def _cancel_grace_task(self, session_id: str, slot: str) -> None:
        task = self._grace_tasks.pop((session_id, slot), None)
        if task is not None and not task.done():
            task.cancel()

    async def _remove_player(self, session_id: str, slot: str, *, ghost_connection_id: str | None = None) -> None:
        """Remove a player and discard the session once nobody is left.

        With ghost_connection_id the player is removed only if they are still
        disconnected on that connection. Check and removal run as one command,
        so a reconnect is ordered entirely before or after them.
        """
        actor = self._registry.get(session_id)
        if actor is None or actor.is_closed:
            return

        def remove(session: GameSession) -> list[ServiceEvent]:
            if ghost_connection_id is not None:
                player = session.get_player(slot)
                if player is None or player.is_connected or player.connection_id != ghost_connection_id:
                    return []
                logger.info("ghost player removed", session_id=session_id, slot=slot)
            return lobby.leave(session, slot)

        await actor.execute(remove)
        if actor.session.is_empty:
            await self._registry.discard(session_id)

    async def close(self) -> None:
        """Cancel pending ghost removals and shut every session down."""
        tasks = list(self._grace_tasks.values())
        self._grace_tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._registry.close()
