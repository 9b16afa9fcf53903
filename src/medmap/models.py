"""Data model shared by the backend, the clients and the frontend.

These are Pydantic models so the same classes validate what comes off the
wire (in the clients) and serialize what goes onto it (in the backend).
They are frozen: an interaction record is never modified after it has been
fetched.

Wire names follow the JSON the backend serves, e.g. an interaction record
carries its two items under "a" and "b", and an item's RxNorm identifier
is "rxCui". Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ItemType = Literal["Drug", "Supplement", "Food"]
Evidence = Literal["A", "B", "C", "D"]


class Severity(str, Enum):
    """Ordinal interaction risk: minor < moderate < major < contraindicated."""

    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CONTRAINDICATED = "contraindicated"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.MINOR: 0,
    Severity.MODERATE: 1,
    Severity.MAJOR: 2,
    Severity.CONTRAINDICATED: 3,
}


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CanonicalItem(_WireModel):
    """A substance resolved to a stable identifier.

    Two items are the same entity if and only if their ids match; the
    display name is only for people.
    """

    # "|" joins the two ids of a pair key, so it cannot appear inside one
    id: str = Field(min_length=1, pattern=r"^[^|]+$")
    display: str
    type: ItemType
    rx_cui: str | None = Field(default=None, alias="rxCui")
    unii: str | None = None


class SourceRef(_WireModel):
    """A link to where an interaction (or a monograph) comes from."""

    name: str
    url: str
    snippet: str | None = None
    retrieved: str | None = None  # ISO-8601 timestamp of the upstream fetch


class InteractionRecord(_WireModel):
    """One interaction between two items, as reported by upstream sources."""

    item_a: CanonicalItem = Field(alias="a")
    item_b: CanonicalItem = Field(alias="b")
    severity: Severity
    guidance: str
    mechanism: str | None = None
    evidence: Evidence = "C"
    sources: list[SourceRef] = Field(default_factory=list)

    def to_wire(self) -> dict[str, object]:
        """Serialize using the JSON field names the frontend expects."""
        return self.model_dump(mode="json", by_alias=True)
