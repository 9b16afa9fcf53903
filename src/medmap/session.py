"""One user's session: selection, suggestions, interaction cache, detail view.

The Session object is the only place session state lives. Construct one
per user session (the Streamlit app keeps one per browser tab); there are
no module-level singletons, which keeps every test independent.

Its public methods are the user intents the UI produces:

- search_query_changed(text)  — the search box changed (debounced)
- choose_item(item)           — a suggestion was picked
- remove_item(item_id)        — a chip's remove button was pressed
- cell_clicked(pair_key)      — a matrix cell was clicked
- close_detail()              — the detail panel was dismissed

All methods must be called from the session's event loop.
"""

from __future__ import annotations

import logging

from medmap.api_client import MedMapClient
from medmap.config import (
    MEDMAP_API_BASE_URL,
    MEDMAP_REQUEST_TIMEOUT,
    MEDMAP_SEARCH_DEBOUNCE_MS,
)
from medmap.coordinator import InteractionSource, RefreshCoordinator
from medmap.debounce import Debouncer
from medmap.interactions import InteractionLookup
from medmap.models import CanonicalItem, InteractionRecord
from medmap.normalization import Normalizer
from medmap.pairs import Pair, build_pairs
from medmap.selection import SelectionSet

logger = logging.getLogger(__name__)

SEARCH_SLOT = "search"


class Session:
    """State and behavior behind one interaction map page."""

    def __init__(
        self,
        normalizer: Normalizer,
        source: InteractionSource,
        debounce_ms: int = MEDMAP_SEARCH_DEBOUNCE_MS,
        timeout: float = MEDMAP_REQUEST_TIMEOUT,
        preserve_unchanged: bool = False,
    ) -> None:
        self.normalizer = normalizer
        self.selection = SelectionSet()
        self.coordinator = RefreshCoordinator(
            source,
            timeout=timeout,
            preserve_unchanged=preserve_unchanged,
        )
        self.debouncer = Debouncer(debounce_ms)

        self.query = ""
        self.suggestions: list[CanonicalItem] = []
        self._searches_in_flight = 0
        self.active: InteractionRecord | None = None
        self.active_pair: Pair | None = None
        self._client: MedMapClient | None = None

    @classmethod
    def connect(
        cls,
        base_url: str = MEDMAP_API_BASE_URL,
        debounce_ms: int = MEDMAP_SEARCH_DEBOUNCE_MS,
        timeout: float = MEDMAP_REQUEST_TIMEOUT,
    ) -> Session:
        """Build a session talking to the backend at base_url."""
        client = MedMapClient(base_url, timeout=timeout)
        session = cls(
            Normalizer(client),
            InteractionLookup(client),
            debounce_ms=debounce_ms,
            timeout=timeout,
        )
        session._client = client
        return session

    async def aclose(self) -> None:
        """Stop pending work and release the HTTP client (if we own it)."""
        await self.debouncer.aclose()
        await self.coordinator.aclose()
        if self._client is not None:
            await self._client.close()

    # --- Search ---

    def search_query_changed(self, text: str) -> None:
        """Record the new query and schedule a debounced normalization."""
        self.query = text
        if not text.strip():
            # Nothing to look up: drop any pending request and clear now
            self.debouncer.cancel(SEARCH_SLOT)
            self.suggestions = []
            return
        self.debouncer.schedule(SEARCH_SLOT, self._search, text)

    @property
    def loading_query(self) -> bool:
        """True while any fired search has not returned yet."""
        return self._searches_in_flight > 0

    async def _search(self, text: str) -> None:
        self._searches_in_flight += 1
        try:
            items = await self.normalizer.normalize(text)
        finally:
            self._searches_in_flight -= 1
        if text != self.query:
            # A newer keystroke has already superseded this request
            logger.debug("Ignoring suggestions for stale query %r", text)
            return
        self.suggestions = items

    # --- Selection ---

    def choose_item(self, item: CanonicalItem) -> bool:
        """Add a suggested item to the selection and reset the search box.

        Returns False if the item was already selected (nothing changes
        and no lookups are issued).
        """
        if not self.selection.add(item):
            return False
        self.query = ""
        self.suggestions = []
        self.debouncer.cancel(SEARCH_SLOT)
        self._refresh()
        return True

    def remove_item(self, item_id: str) -> bool:
        """Remove an item from the selection. No-op if it is not selected."""
        if not self.selection.remove(item_id):
            return False
        if self.active_pair is not None and item_id in (self.active_pair.a.id, self.active_pair.b.id):
            self.close_detail()
        self._refresh()
        return True

    def _refresh(self) -> None:
        self.coordinator.update(build_pairs(self.selection))

    # --- Matrix ---

    @property
    def pairs(self) -> list[Pair]:
        return self.coordinator.pairs

    def cell_clicked(self, key: str) -> InteractionRecord | None:
        """Open the detail view for a cell. Cells without a record do nothing."""
        record = self.coordinator.cache.record(key)
        if record is None:
            return None
        self.active = record
        self.active_pair = self.coordinator.pair(key)
        return record

    def close_detail(self) -> None:
        self.active = None
        self.active_pair = None

    async def settle(self) -> None:
        """Wait for pending searches and lookups. Mostly useful in tests."""
        await self.debouncer.wait()
        await self.coordinator.wait_idle()
