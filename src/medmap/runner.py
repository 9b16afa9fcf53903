"""Run a Session on its own event loop thread.

Streamlit scripts are synchronous and re-run from the top on every
interaction, but a Session is async and its lookups must keep running
between reruns. SessionRunner gives each Session a private event loop in
a daemon thread and lets synchronous code call into it.

close() (or garbage collection of the runner, or interpreter exit) closes
the Session's HTTP client, stops the loop and joins the thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import weakref
from collections.abc import Callable
from typing import Any, TypeVar

from medmap.config import MEDMAP_API_BASE_URL, MEDMAP_REQUEST_TIMEOUT
from medmap.models import CanonicalItem
from medmap.session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _shutdown(loop: asyncio.AbstractEventLoop, thread: threading.Thread, session: Session | None) -> None:
    # Module-level so the finalizer does not keep the runner alive
    if loop.is_closed():
        return

    if threading.current_thread() is thread:
        # Collected on the loop thread itself: it cannot wait for itself
        async def close_then_stop() -> None:
            try:
                if session is not None:
                    await session.aclose()
            finally:
                loop.stop()

        loop.create_task(close_then_stop())
        return

    if session is not None and loop.is_running():
        try:
            asyncio.run_coroutine_threadsafe(session.aclose(), loop).result(timeout=MEDMAP_REQUEST_TIMEOUT)
        except Exception:
            logger.exception("Session did not close cleanly")
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=MEDMAP_REQUEST_TIMEOUT)
    if not thread.is_alive():
        loop.close()
    logger.info("Session runner stopped")


class SessionRunner:
    """Owns a Session and the event loop thread it lives on.

    Args:
        factory: Builds the Session. Called on the loop thread, since the
            Session must be created where it will run.
    """

    def __init__(self, factory: Callable[[], Session] | None = None) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, daemon=True)
        self._thread.start()
        self._finalizer = weakref.finalize(self, _shutdown, self.loop, self._thread, None)

        self.session: Session = self.run(factory or (lambda: Session.connect(MEDMAP_API_BASE_URL)))
        # Re-register now that there is a session to close
        self._finalizer.detach()
        self._finalizer = weakref.finalize(self, _shutdown, self.loop, self._thread, self.session)

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def run(self, fn: Callable[..., T], *args: Any) -> T:
        """Call fn(*args) on the session's loop and return its result."""
        if self.closed:
            raise RuntimeError("SessionRunner is closed")

        async def call() -> T:
            return fn(*args)

        return asyncio.run_coroutine_threadsafe(call(), self.loop).result()

    def search(self, text: str) -> list[CanonicalItem]:
        """Schedule the debounced search and wait for its quiet window."""
        self.run(self.session.search_query_changed, text)
        asyncio.run_coroutine_threadsafe(self.session.debouncer.wait(), self.loop).result()
        return self.run(lambda: list(self.session.suggestions))

    def close(self) -> None:
        """Close the session, stop the loop and join its thread. Idempotent."""
        self._finalizer()
