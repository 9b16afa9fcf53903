"""The user's current regimen: an insertion-ordered set of canonical items."""

from __future__ import annotations

from collections.abc import Iterator

from medmap.models import CanonicalItem


class SelectionSet:
    """Items chosen by the user, unique by id.

    Iteration follows insertion order (the order of the chips in the UI).
    The matrix uses its own sorted order, see `medmap.pairs.sort_items`.
    """

    def __init__(self) -> None:
        self._items: dict[str, CanonicalItem] = {}

    def add(self, item: CanonicalItem) -> bool:
        """Add an item. Returns False (and changes nothing) if its id is present."""
        if item.id in self._items:
            return False
        self._items[item.id] = item
        return True

    def remove(self, item_id: str) -> bool:
        """Remove an item by id. Returns False if it was not selected."""
        return self._items.pop(item_id, None) is not None

    def get(self, item_id: str) -> CanonicalItem | None:
        return self._items.get(item_id)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, CanonicalItem):
            return item.id in self._items
        return item in self._items

    def __iter__(self) -> Iterator[CanonicalItem]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
