"""Owned, cancellable timers.

Every timer in the terminal (render debounce, overlay auto-revert, countdown
tick, wrong-key flash) is an ``OwnedTimer`` held by exactly one component.
Invariant: at most one pending callback per timer. ``schedule`` always cancels
whatever was pending before installing the new callback, so a stale timer can
never fire against superseded state.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import suppress
from typing import Awaitable, Callable, Optional

from .logging_utils import log_error


Clock = Callable[[], float]
"""Monotonic clock returning seconds. Injected so tests can control time."""

TimerCallback = Callable[[], Awaitable[None]]
TickCallback = Callable[[], Awaitable[bool]]


def monotonic_clock() -> float:
    return time.monotonic()


class OwnedTimer:
    """Single-slot asyncio timer.

    ``cancel()`` called from inside the timer's own callback only detaches the
    running task (the callback finishes normally); cancelling the task we are
    running in would abort the very operation that asked for the cancel.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, delay: float, callback: TimerCallback) -> None:
        """Run ``callback`` once after ``delay`` seconds, replacing any pending run."""

        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run_once(delay, callback))

    def schedule_repeating(self, interval: float, callback: TickCallback) -> None:
        """Run ``callback`` every ``interval`` seconds until it returns ``False``."""

        self.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._run_repeating(interval, callback)
        )

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()

    async def wait(self) -> None:
        """Wait for the pending callback (if any) to finish. Used by tests and shutdown."""

        task = self._task
        if task is None or task is asyncio.current_task():
            return
        with suppress(asyncio.CancelledError):
            await task

    def _owns_current_task(self) -> bool:
        return self._task is not None and self._task is asyncio.current_task()

    async def _run_once(self, delay: float, callback: TimerCallback) -> None:
        await asyncio.sleep(delay)
        try:
            await callback()
        except Exception as exc:
            log_error("Timer", f"{self.name} callback failed: {exc}")
        finally:
            if self._owns_current_task():
                self._task = None

    async def _run_repeating(self, interval: float, callback: TickCallback) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                keep_going = await callback()
            except Exception as exc:
                log_error("Timer", f"{self.name} tick failed: {exc}")
                keep_going = False
            # The callback may have cancelled or replaced this timer.
            if not self._owns_current_task():
                return
            if not keep_going:
                self._task = None
                return
