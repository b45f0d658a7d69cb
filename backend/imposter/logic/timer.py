"""
Server-side phase countdown for a session.

One PhaseTimer belongs to one session actor. Starting a countdown always
replaces the previous one. The timer itself never touches session state: it
reports ticks and expiry through callbacks tagged with a generation number,
and the actor drops anything from a generation it no longer runs.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

from imposter.logic.enums import TimeoutType

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Callable

    from imposter.server.settings import ImposterServerSettings


class TimerConfig(BaseModel):
    """Countdown durations for the timed phases."""

    clue_seconds: int = Field(default=60, ge=1)
    voting_seconds: int = Field(default=60, ge=1)
    tick_seconds: float = Field(default=1.0, gt=0)

    @classmethod
    def from_settings(cls, settings: ImposterServerSettings) -> TimerConfig:
        """Build TimerConfig from server settings."""
        return cls(clue_seconds=settings.clue_seconds, voting_seconds=settings.voting_seconds)

    def duration_for(self, phase: TimeoutType) -> int:
        if phase == TimeoutType.CLUE:
            return self.clue_seconds
        return self.voting_seconds


class PhaseTimer:
    """
    Countdown for the current timed phase of one session.

    Emits the full duration immediately, then one tick per second down to 0,
    then the expiry callback exactly once.
    """

    def __init__(self, config: TimerConfig | None = None) -> None:
        self._config = config or TimerConfig()
        self._active_task: asyncio.Task[None] | None = None
        self._generation = 0
        self._phase: TimeoutType | None = None

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def generation(self) -> int:
        """Increments on every start and cancel; older callbacks are stale."""
        return self._generation

    @property
    def phase(self) -> TimeoutType | None:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._active_task is not None and not self._active_task.done()

    def start(
        self,
        phase: TimeoutType,
        on_tick: Callable[[int, TimeoutType, int], None],
        on_expire: Callable[[int, TimeoutType], None],
    ) -> int:
        """Replace any running countdown with a new one for `phase`. Returns its generation."""
        self.cancel()
        self._phase = phase
        duration = self._config.duration_for(phase)
        self._active_task = asyncio.create_task(
            self._run_timer(self._generation, phase, duration, on_tick, on_expire),
        )
        return self._generation

    def cancel(self) -> None:
        """Stop the countdown. Safe to call when nothing is running."""
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None
        self._phase = None
        self._generation += 1

    async def _run_timer(
        self,
        generation: int,
        phase: TimeoutType,
        seconds: int,
        on_tick: Callable[[int, TimeoutType, int], None],
        on_expire: Callable[[int, TimeoutType], None],
    ) -> None:
        try:
            on_tick(generation, phase, seconds)
            for seconds_left in range(seconds - 1, -1, -1):
                await asyncio.sleep(self._config.tick_seconds)
                on_tick(generation, phase, seconds_left)
            on_expire(generation, phase)
        except asyncio.CancelledError:
            pass
        except (RuntimeError, OSError, ConnectionError, ValueError):
            logger.exception("timer callback failed", phase=phase.value)
