"""Interaction cache and refresh coordinator.

Every time the selection changes, the set of pairs changes, and every pair
needs an interaction lookup. This module keeps the cache of lookup results
consistent with the current pair list.

Concept — refresh generations:
    Each change of the pair list starts a new "generation" (a counter that
    only goes up). Every lookup task remembers the generation it was
    started in. When a task finishes, its result is merged into the cache
    only if that generation is still the current one. Results from older
    generations are thrown away when they arrive.

    This is a logical cancellation: the HTTP request of an abandoned
    generation is allowed to finish, we just ignore what it returns. It
    stops a slow answer for an old selection from overwriting the
    loading state of a newer one.

Cache states for a pair key:
    - absent:        not fetched yet (the cell shows a spinner while refreshing)
    - None:          fetched, no interaction known
    - a record:      fetched, interaction found
    - LOOKUP_FAILED: the lookup failed or timed out

All mutation happens on the event loop thread, so merging needs no lock,
only the generation check.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from typing import Final, Protocol

from medmap.api_client import MedMapError
from medmap.config import MEDMAP_REQUEST_TIMEOUT
from medmap.models import InteractionRecord
from medmap.pairs import Pair

logger = logging.getLogger(__name__)


class _LookupFailed:
    """Sentinel type for a pair whose lookup failed."""

    _instance: _LookupFailed | None = None

    def __new__(cls) -> _LookupFailed:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "LOOKUP_FAILED"

    def __bool__(self) -> bool:
        return False


LOOKUP_FAILED: Final = _LookupFailed()

CacheEntry = InteractionRecord | None | _LookupFailed


class RefreshState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class InteractionSource(Protocol):
    """Anything that can look up one pair (e.g. InteractionLookup)."""

    async def fetch_interaction(self, id_a: str, id_b: str) -> InteractionRecord | None: ...


class InteractionCache(Mapping[str, CacheEntry]):
    """Read-only view of the lookup results, keyed by pair key.

    Only the coordinator writes to the underlying dict.
    """

    def __init__(self, entries: dict[str, CacheEntry]) -> None:
        self._entries = entries

    def __getitem__(self, key: str) -> CacheEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, key: str) -> InteractionRecord | None:
        """The record for key, or None if absent, none found, or failed."""
        entry = self._entries.get(key)
        return entry if isinstance(entry, InteractionRecord) else None

    def failed(self, key: str) -> bool:
        return self._entries.get(key) is LOOKUP_FAILED


class RefreshCoordinator:
    """Keeps the interaction cache in step with the current pair list.

    Call update() with the new pair list after every selection change.
    It returns immediately; lookups run as independent tasks on the
    running event loop.

    Args:
        source: Performs the per-pair lookups.
        timeout: Seconds before a single lookup counts as failed.
        preserve_unchanged: If False (the default), every change of the
            pair list clears the cache and re-fetches every pair. If True,
            settled results for pairs that are still selected are kept and
            only new pairs and previously failed pairs are fetched.
    """

    def __init__(
        self,
        source: InteractionSource,
        timeout: float = MEDMAP_REQUEST_TIMEOUT,
        preserve_unchanged: bool = False,
    ) -> None:
        self.source = source
        self.timeout = timeout
        self.preserve_unchanged = preserve_unchanged

        self.generation = 0
        self._entries: dict[str, CacheEntry] = {}
        self._pairs: dict[str, Pair] = {}
        # Tasks of the current generation that have not settled yet
        self._in_flight: set[asyncio.Task[None]] = set()
        # Every task still running, including abandoned generations
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def cache(self) -> InteractionCache:
        return InteractionCache(self._entries)

    @property
    def state(self) -> RefreshState:
        return RefreshState.REFRESHING if self._in_flight else RefreshState.IDLE

    @property
    def pairs(self) -> list[Pair]:
        return list(self._pairs.values())

    def pair(self, key: str) -> Pair | None:
        return self._pairs.get(key)

    def is_loading(self, key: str) -> bool:
        """A cell is loading iff its key is absent while refreshing."""
        return self.state is RefreshState.REFRESHING and key in self._pairs and key not in self._entries

    def update(self, pairs: Sequence[Pair]) -> bool:
        """Bring the cache in line with a new pair list.

        Returns:
            False if the pair keys did not change (nothing was done),
            True if a new generation was started.
        """
        keys = [p.key for p in pairs]
        if keys == list(self._pairs):
            return False

        self.generation += 1
        generation = self.generation
        self._pairs = {p.key: p for p in pairs}
        self._in_flight = set()

        if not pairs:
            self._entries = {}
            logger.info("Generation %d: selection has no pairs, cache cleared", generation)
            return True

        if self.preserve_unchanged:
            # Failed lookups are retried along with the new pairs
            self._entries = {
                k: v for k, v in self._entries.items() if k in self._pairs and v is not LOOKUP_FAILED
            }
        else:
            self._entries = {}

        to_fetch = [p for p in pairs if p.key not in self._entries]
        logger.info(
            "Generation %d: looking up %d of %d pair(s)",
            generation,
            len(to_fetch),
            len(pairs),
        )

        loop = asyncio.get_running_loop()
        for p in to_fetch:
            task = loop.create_task(self._lookup(generation, p))
            self._in_flight.add(task)
            self._tasks.add(task)
            task.add_done_callback(self._settled)
        return True

    async def wait_idle(self) -> None:
        """Wait until every lookup of the current generation has settled.

        If the pair list changes while waiting, waits for the newer
        generation instead.
        """
        while self._in_flight:
            await asyncio.wait(set(self._in_flight))

    async def aclose(self) -> None:
        """Cancel all outstanding lookups, e.g. at the end of a session."""
        self.generation += 1
        self._in_flight = set()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

    def _settled(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        self._in_flight.discard(task)

    async def _lookup(self, generation: int, p: Pair) -> None:
        entry: CacheEntry
        try:
            entry = await asyncio.wait_for(
                self.source.fetch_interaction(p.a.id, p.b.id),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.warning("Interaction lookup for %s timed out after %.1fs", p.key, self.timeout)
            entry = LOOKUP_FAILED
        except MedMapError as e:
            logger.warning("Interaction lookup for %s failed: %s", p.key, e)
            entry = LOOKUP_FAILED
        except Exception:
            logger.exception("Unexpected error looking up %s", p.key)
            entry = LOOKUP_FAILED

        if generation != self.generation:
            logger.debug(
                "Discarding result for %s from generation %d (current: %d)",
                p.key,
                generation,
                self.generation,
            )
            return

        self._entries[p.key] = entry
