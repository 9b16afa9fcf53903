"""View model for the interaction matrix and the detail panel.

Nothing in here draws anything. These functions turn a Session into plain
data (labels, tooltips, which cell is loading) that any frontend can
render; the Streamlit app in `medmap.streamlit_app` is one such frontend.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from medmap.coordinator import RefreshCoordinator
from medmap.models import CanonicalItem, InteractionRecord, Severity, SourceRef
from medmap.pairs import Pair, pair_key, sort_items
from medmap.selection import SelectionSet

NO_KNOWN_TEXT = "no known interaction from these sources"
NO_KNOWN_TOOLTIP = (
    "This does not guarantee safety; it means none of the checked sources "
    "list an interaction."
)
FAILED_TEXT = "lookup failed"
FAILED_TOOLTIP = "The sources could not be checked for this pair. Try again later."
LOADING_TEXT = "…"
DIAGONAL_TEXT = "—"
RECORD_TOOLTIP = "Click for guidance and sources"
DISCLAIMER = (
    "Informational only, not medical advice. Confirm critical interactions "
    "with your clinician or pharmacist."
)


@dataclass(frozen=True)
class MatrixCell:
    """One cell of the matrix, ready to render."""

    row: CanonicalItem
    col: CanonicalItem
    key: str | None  # None on the diagonal
    label: str
    tooltip: str = ""
    severity: Severity | None = None
    loading: bool = False
    failed: bool = False

    @property
    def clickable(self) -> bool:
        return self.severity is not None


def grid_items(selection: SelectionSet) -> list[CanonicalItem]:
    """Matrix axes: the selection sorted by display name."""
    return sort_items(selection)


def build_cell(row: CanonicalItem, col: CanonicalItem, coordinator: RefreshCoordinator) -> MatrixCell:
    if row.id == col.id:
        return MatrixCell(row=row, col=col, key=None, label=DIAGONAL_TEXT)

    key = pair_key(row.id, col.id)
    cache = coordinator.cache
    record = cache.record(key)
    if record is not None:
        return MatrixCell(
            row=row,
            col=col,
            key=key,
            label=record.severity.value,
            tooltip=RECORD_TOOLTIP,
            severity=record.severity,
        )
    if coordinator.is_loading(key):
        return MatrixCell(row=row, col=col, key=key, label=LOADING_TEXT, loading=True)
    if cache.failed(key):
        return MatrixCell(row=row, col=col, key=key, label=FAILED_TEXT, tooltip=FAILED_TOOLTIP, failed=True)
    return MatrixCell(row=row, col=col, key=key, label=NO_KNOWN_TEXT, tooltip=NO_KNOWN_TOOLTIP)


def build_matrix(selection: SelectionSet, coordinator: RefreshCoordinator) -> list[list[MatrixCell]]:
    """Square matrix of cells, rows and columns in grid_items() order."""
    items = grid_items(selection)
    return [[build_cell(row, col, coordinator) for col in items] for row in items]


def highest_severity(coordinator: RefreshCoordinator) -> Severity | None:
    """The worst severity among the currently selected pairs, if any."""
    cache = coordinator.cache
    records = [cache.record(p.key) for p in coordinator.pairs]
    found = [r.severity for r in records if r is not None]
    return max(found, key=lambda s: s.rank, default=None)


@dataclass(frozen=True)
class DetailView:
    """Content of the detail panel shown when a cell is clicked."""

    title: str
    severity: Severity
    evidence: str
    guidance: str
    mechanism: str | None = None
    sources: list[SourceRef] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: InteractionRecord, pair: Pair | None = None) -> DetailView:
        """Build the panel. Names come from the selected pair when known.

        The backend only knows ids, so the record's own items may carry an
        id where a display name should be.
        """
        a = pair.a if pair is not None else record.item_a
        b = pair.b if pair is not None else record.item_b
        return cls(
            title=f"{a.display} x {b.display}",
            severity=record.severity,
            evidence=f"Evidence {record.evidence}",
            guidance=record.guidance,
            mechanism=record.mechanism,
            sources=list(record.sources),
        )
