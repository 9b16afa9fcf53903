"""Tests for the selection set."""

from medmap.models import CanonicalItem
from medmap.selection import SelectionSet

WARFARIN = CanonicalItem(id="w", display="Warfarin", type="Drug")
ASPIRIN = CanonicalItem(id="a", display="Aspirin", type="Drug")


def test_add_keeps_insertion_order() -> None:
    selection = SelectionSet()
    assert selection.add(WARFARIN)
    assert selection.add(ASPIRIN)
    assert list(selection) == [WARFARIN, ASPIRIN]


def test_add_is_idempotent_by_id() -> None:
    selection = SelectionSet()
    selection.add(WARFARIN)

    renamed = CanonicalItem(id="w", display="Coumadin", type="Drug")
    assert not selection.add(renamed)
    assert len(selection) == 1
    # The first item wins
    assert selection.get("w") == WARFARIN


def test_remove() -> None:
    selection = SelectionSet()
    selection.add(WARFARIN)
    selection.add(ASPIRIN)

    assert selection.remove("w")
    assert list(selection) == [ASPIRIN]
    assert "w" not in selection
    assert ASPIRIN in selection


def test_remove_absent_is_noop() -> None:
    selection = SelectionSet()
    selection.add(WARFARIN)
    assert not selection.remove("nope")
    assert len(selection) == 1
