"""Pair set builder — every unordered pair of selected items.

A pair is identified by its PairKey: the two member ids, sorted and joined
with "|". The key is what the interaction cache and the matrix cells are
indexed by, so it must not depend on which item came first.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from itertools import combinations

from medmap.models import CanonicalItem

PAIR_KEY_SEPARATOR = "|"


def pair_key(id_a: str, id_b: str) -> str:
    """Build the canonical key for an unordered pair of item ids."""
    return PAIR_KEY_SEPARATOR.join(sorted((id_a, id_b)))


@dataclass(frozen=True)
class Pair:
    """Two distinct items plus their canonical key."""

    key: str
    a: CanonicalItem
    b: CanonicalItem


def sort_items(items: Iterable[CanonicalItem]) -> list[CanonicalItem]:
    """Order items by display name, ids breaking ties, one entry per id."""
    unique = {item.id: item for item in items}
    return sorted(unique.values(), key=lambda i: (i.display.casefold(), i.id))


def build_pairs(items: Iterable[CanonicalItem]) -> list[Pair]:
    """Produce all 2-combinations of the given items.

    The result depends only on which items are given, never on their
    order: items are sorted first, and within each pair `a` sorts before
    `b`. For n distinct items there are exactly n*(n-1)/2 pairs.
    """
    return [Pair(key=pair_key(a.id, b.id), a=a, b=b) for a, b in combinations(sort_items(items), 2)]
