"""Debounce primitive for the search box.

schedule(slot, fn, *args, delay=...) waits for a quiet window and then
calls fn(*args). Scheduling again on the same slot before the window has
passed replaces the pending call, so only the last keystroke in a burst
actually issues a request.

Once the window has passed the call is "fired" and is left alone: a later
schedule() supersedes it (a new call is queued) but never cancels a
request that is already in flight.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from medmap.config import MEDMAP_SEARCH_DEBOUNCE_MS

logger = logging.getLogger(__name__)


class _Scheduled:
    def __init__(self) -> None:
        self.fired = False
        self.task: asyncio.Task[None] | None = None


class Debouncer:
    """Per-slot delayed calls where a newer call replaces a pending one.

    Must be used from inside a running event loop.
    """

    def __init__(self, delay_ms: int = MEDMAP_SEARCH_DEBOUNCE_MS) -> None:
        self.delay = delay_ms / 1000
        self._slots: dict[str, _Scheduled] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(
        self,
        slot: str,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        delay: float | None = None,
    ) -> None:
        """Call fn(*args) after the quiet window, replacing any pending call in slot."""
        self.cancel(slot)

        entry = _Scheduled()
        entry.task = asyncio.get_running_loop().create_task(
            self._run(entry, self.delay if delay is None else delay, fn, args)
        )
        self._slots[slot] = entry
        self._tasks.add(entry.task)
        entry.task.add_done_callback(self._tasks.discard)

    def cancel(self, slot: str) -> bool:
        """Drop the pending call in slot, if it has not fired yet."""
        entry = self._slots.pop(slot, None)
        if entry is None or entry.fired or entry.task is None:
            return False
        entry.task.cancel()
        logger.debug("Debounced call in slot %r superseded before firing", slot)
        return True

    def pending(self, slot: str) -> bool:
        """True while a call in slot is waiting for its quiet window."""
        entry = self._slots.get(slot)
        return entry is not None and not entry.fired

    async def wait(self) -> None:
        """Wait until every scheduled call has fired and finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel everything, fired or not."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._slots.clear()

    async def _run(
        self,
        entry: _Scheduled,
        delay: float,
        fn: Callable[..., Awaitable[Any]],
        args: tuple[Any, ...],
    ) -> None:
        await asyncio.sleep(delay)
        entry.fired = True
        await fn(*args)
