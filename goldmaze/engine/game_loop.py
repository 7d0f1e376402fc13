"""
Gold Maze - Session Clock

Fixed-rate countdown driving the Tick transition of one play session.

ARCHITECTURE:
- One clock per session, one tick per tick_seconds (default 1s)
- Runs as an asyncio task next to the session's message handling
- Intents and ticks run on the same event loop, so a transition is never
  interleaved with another one

INVARIANTS:
- No tick is applied once the session has left ACTIVE
- stop() takes effect immediately: the running flag drops and a pending
  sleep is cancelled before control returns to the event loop
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from goldmaze.engine.traversal import Intent, PlayState, TransitionResult, apply

logger = logging.getLogger(__name__)


class GameLoopState(Enum):
    """Clock lifecycle states"""
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class TickStats:
    """Statistics for a single tick"""
    tick_number: int
    start_time: float
    end_time: float
    target_duration: float

    @property
    def actual_duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def overran(self) -> bool:
        """Did handling this tick take longer than the tick interval?"""
        return self.actual_duration > self.target_duration


TickCallback = Callable[[TransitionResult], Awaitable[None]]


class SessionClock:
    """Counts a session down, one Tick intent per interval"""

    def __init__(self, state: PlayState, tick_seconds: float = 1.0,
                 on_tick: Optional[TickCallback] = None, max_history: int = 100):
        self.play_state = state
        self.tick_seconds = tick_seconds
        self.on_tick = on_tick
        self.max_history = max_history

        self.state = GameLoopState.STOPPED
        self.running = False
        self.current_tick = 0
        self.overrun_count = 0
        self.tick_history: List[TickStats] = []
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        """Start ticking in a background task"""
        if self.state != GameLoopState.STOPPED:
            raise RuntimeError("Session clock already started")

        self.running = True
        self.state = GameLoopState.RUNNING
        self._task = asyncio.create_task(self._run_loop())
        logger.debug(f"Clock started for {self.play_state.map.id} ({self.tick_seconds}s per tick)")
        return self._task

    def stop(self) -> None:
        """Stop ticking now. Safe to call more than once and from on_tick."""
        if not self.running:
            return

        self.running = False
        self.state = GameLoopState.STOPPING
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def wait_stopped(self) -> None:
        """Wait for the background task to finish"""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def _should_tick(self) -> bool:
        return self.running and self.play_state.is_active

    async def _run_loop(self) -> None:
        next_deadline = time.monotonic() + self.tick_seconds
        try:
            while self._should_tick():
                await asyncio.sleep(max(0.0, next_deadline - time.monotonic()))

                # A winning move may have landed while we slept
                if not self._should_tick():
                    break

                stats = await self._run_tick()
                next_deadline += self.tick_seconds

                if stats.overran:
                    self.overrun_count += 1
                    logger.warning(
                        f"Tick {stats.tick_number} overran: {stats.actual_duration*1000:.2f}ms "
                        f"(target: {self.tick_seconds*1000:.2f}ms)"
                    )
        except asyncio.CancelledError:
            logger.debug(f"Clock cancelled for {self.play_state.map.id}")
        except Exception as e:
            logger.error(f"Session clock crashed: {e}", exc_info=True)
        finally:
            self.running = False
            self.state = GameLoopState.STOPPED

    async def _run_tick(self) -> TickStats:
        tick_start = time.monotonic()

        result = apply(self.play_state, Intent.tick())
        self.current_tick += 1
        if result.finished:
            self.running = False

        if self.on_tick is not None:
            try:
                await self.on_tick(result)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in tick callback: {e}", exc_info=True)

        stats = TickStats(
            tick_number=self.current_tick,
            start_time=tick_start,
            end_time=time.monotonic(),
            target_duration=self.tick_seconds,
        )
        self.tick_history.append(stats)
        if len(self.tick_history) > self.max_history:
            self.tick_history.pop(0)
        return stats
