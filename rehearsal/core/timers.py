"""
Timer table - owner-scoped, cancellable timers.

Every timer belongs to an owner (a session id or scheduled-session id)
and has a name within that owner. Cancelling flips the timer's
cancellation token first, so a callback that was already queued on the
event loop becomes a no-op.

Two backends are provided:
- AsyncioTimerBackend: loop.call_later, used in production
- ManualTimerBackend: fires timers only when advanced, used in tests
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from rehearsal.core.clock import ManualClock, SystemClock

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class CancellationToken:
    """Shared flag checked right before a timer callback runs."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass
class TimerHandle:
    """A timer armed in the table."""

    owner: str
    name: str
    due_at: datetime
    token: CancellationToken = field(default_factory=CancellationToken)
    backend_handle: Any = None

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled


# ============================================================================
# BACKENDS
# ============================================================================

class TimerBackend(ABC):
    """Schedules an async job to run after a delay."""

    @abstractmethod
    def schedule(self, delay_seconds: float, job: TimerCallback) -> Any:
        """Schedule ``job``; return an object with a ``cancel()`` method."""

    def now(self) -> datetime:
        return self.clock.now()


class AsyncioTimerBackend(TimerBackend):
    """Runs timers on the running asyncio event loop."""

    def __init__(self, clock: SystemClock | None = None):
        self.clock = clock or SystemClock()
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, delay_seconds: float, job: TimerCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay_seconds), self._spawn, job)

    def _spawn(self, job: TimerCallback) -> None:
        task = asyncio.ensure_future(job())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


class _ManualEntry:
    def __init__(self, due_at: datetime, seq: int, job: TimerCallback):
        self.due_at = due_at
        self.seq = seq
        self.job = job
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "_ManualEntry") -> bool:
        return (self.due_at, self.seq) < (other.due_at, other.seq)


class ManualTimerBackend(TimerBackend):
    """
    Deterministic backend driven by a ManualClock.

    Nothing fires until ``advance`` is awaited; due timers then run in
    due-time order with the clock set to each timer's due time.
    """

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self._queue: list[_ManualEntry] = []
        self._seq = itertools.count()

    def schedule(self, delay_seconds: float, job: TimerCallback) -> _ManualEntry:
        due_at = self.clock.now() + timedelta(seconds=max(0.0, delay_seconds))
        entry = _ManualEntry(due_at, next(self._seq), job)
        heapq.heappush(self._queue, entry)
        return entry

    @property
    def pending_count(self) -> int:
        return sum(1 for entry in self._queue if not entry.cancelled)

    async def advance(self, seconds: float = 0, minutes: float = 0) -> datetime:
        """Move the clock forward, firing every timer that falls due."""
        target = self.clock.now() + timedelta(seconds=seconds, minutes=minutes)
        while self._queue:
            entry = self._queue[0]
            if entry.cancelled:
                heapq.heappop(self._queue)
                continue
            if entry.due_at > target:
                break
            heapq.heappop(self._queue)
            if entry.due_at > self.clock.now():
                self.clock.set(entry.due_at)
            await entry.job()
        if target > self.clock.now():
            self.clock.set(target)
        return self.clock.now()


# ============================================================================
# TIMER TABLE
# ============================================================================

class TimerTable:
    """
    Owner-scoped timers with atomic per-owner cancellation.

    Arming a timer under an (owner, name) pair that is already armed
    replaces the previous timer.
    """

    def __init__(self, backend: TimerBackend | None = None):
        self.backend = backend or AsyncioTimerBackend()
        self._timers: dict[str, dict[str, TimerHandle]] = {}

    def arm(
        self,
        owner: str,
        name: str,
        delay_seconds: float,
        callback: TimerCallback,
    ) -> TimerHandle:
        """
        Arm a timer.

        Args:
            owner: Id of the session or scheduled item owning the timer
            name: Timer name, unique within the owner
            delay_seconds: Seconds until the callback runs
            callback: Async callable; its failures are logged and swallowed

        Returns:
            The armed TimerHandle
        """
        self.cancel(owner, name)

        handle = TimerHandle(
            owner=owner,
            name=name,
            due_at=self.backend.now() + timedelta(seconds=max(0.0, delay_seconds)),
        )

        async def run() -> None:
            if handle.token.cancelled:
                return
            self._forget(handle)
            try:
                await callback()
            except Exception as e:
                logger.error(f"Timer {owner}/{name} callback error: {e}", exc_info=True)

        handle.backend_handle = self.backend.schedule(delay_seconds, run)
        self._timers.setdefault(owner, {})[name] = handle
        logger.debug(f"Armed timer {owner}/{name} for {delay_seconds:.1f}s")
        return handle

    def _forget(self, handle: TimerHandle) -> None:
        owned = self._timers.get(handle.owner)
        if owned and owned.get(handle.name) is handle:
            del owned[handle.name]
            if not owned:
                del self._timers[handle.owner]

    @staticmethod
    def _cancel_handle(handle: TimerHandle) -> None:
        handle.token.cancel()
        if handle.backend_handle is not None:
            handle.backend_handle.cancel()

    def cancel(self, owner: str, name: str) -> bool:
        owned = self._timers.get(owner)
        if not owned or name not in owned:
            return False
        handle = owned.pop(name)
        if not owned:
            del self._timers[owner]
        self._cancel_handle(handle)
        return True

    def cancel_all(self, owner: str) -> int:
        """Cancel every timer belonging to ``owner`` in one step."""
        owned = self._timers.pop(owner, {})
        for handle in owned.values():
            self._cancel_handle(handle)
        if owned:
            logger.debug(f"Cancelled {len(owned)} timer(s) for {owner}")
        return len(owned)

    def pending(self, owner: str | None = None) -> list[TimerHandle]:
        if owner is not None:
            return list(self._timers.get(owner, {}).values())
        return [h for owned in self._timers.values() for h in owned.values()]

    def shutdown(self) -> None:
        for owner in list(self._timers):
            self.cancel_all(owner)
