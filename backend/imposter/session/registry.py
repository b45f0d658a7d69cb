"""In-memory mapping from session id to its live SessionActor."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

import structlog

from imposter.logic.enums import Difficulty
from imposter.logic.state import GameSession
from imposter.session.actor import SessionActor

if TYPE_CHECKING:
    from imposter.logic.timer import TimerConfig
    from imposter.logic.words import WordSource
    from imposter.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionRegistry:
    """Own every live session. Creation is idempotent per id.

    Lookups and creation never await, so on a single event loop no lock is
    needed to keep "one actor per id" true.
    """

    def __init__(
        self,
        word_source: WordSource,
        connections: dict[str, ConnectionProtocol],
        *,
        timer_config: TimerConfig | None = None,
        default_difficulty: Difficulty = Difficulty.EASY,
        rng: random.Random | None = None,
    ) -> None:
        self._word_source = word_source
        self._connections = connections
        self._timer_config = timer_config
        self._default_difficulty = default_difficulty
        # seeds per-session generators so tests can make whole servers deterministic
        self._rng = rng
        self._actors: dict[str, SessionActor] = {}

    def create_or_get(self, session_id: str, difficulty: Difficulty | None = None) -> tuple[SessionActor, bool]:
        """Return (actor, created). An existing session is returned untouched."""
        actor = self._actors.get(session_id)
        if actor is not None:
            return actor, False

        session_rng = random.Random(self._rng.random()) if self._rng is not None else random.Random()
        session = GameSession(
            session_id=session_id,
            difficulty=difficulty or self._default_difficulty,
            rng=session_rng,
        )
        actor = SessionActor(session, self._word_source, self._connections, self._timer_config)
        self._actors[session_id] = actor
        logger.info("session created", session_id=session_id, difficulty=session.difficulty.value)
        return actor, True

    def get(self, session_id: str) -> SessionActor | None:
        return self._actors.get(session_id)

    async def discard(self, session_id: str) -> None:
        actor = self._actors.pop(session_id, None)
        if actor is not None:
            await actor.close()
            logger.info("session discarded", session_id=session_id)

    async def clear(self) -> None:
        """Drop every session, cancelling timers and workers."""
        actors = list(self._actors.values())
        self._actors.clear()
        for actor in actors:
            await actor.close()

    async def close(self) -> None:
        count = len(self._actors)
        await self.clear()
        logger.info("session registry closed", sessions=count)

    @property
    def session_count(self) -> int:
        return len(self._actors)

    def session_ids(self) -> list[str]:
        return list(self._actors)
