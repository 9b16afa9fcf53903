"""FastAPI server — the backend the interaction map talks to.

It exposes the two endpoints the frontend needs, plus a health check:

- GET /api/health                   — Simple check that the server is running
- GET /api/normalize?q=<text>       — Free text → canonical items (RxNorm)
- GET /api/interactions?a=<>&b=<>   — Interaction record for a pair, or {}

Both lookups proxy the NLM RxNav API. Every interaction record also
carries static links to MedlinePlus Connect, DailyMed and NCCIH, attached
regardless of what RxNav said.

Run locally with:
    uvicorn medmap.app:app --reload
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from medmap import references
from medmap.config import MEDMAP_LOG_LEVEL
from medmap.models import CanonicalItem, InteractionRecord, Severity
from medmap.pairs import PAIR_KEY_SEPARATOR
from medmap.rxnav_client import RxNavClient, RxNavError

logging.basicConfig(level=MEDMAP_LOG_LEVEL)
logger = logging.getLogger(__name__)

# RxNav reports severity in its own vocabulary (ONCHigh uses "high",
# DrugBank uses "N/A"). Anything not listed here maps to DEFAULT_SEVERITY.
SEVERITY_MAP: dict[str, Severity] = {
    "minor": Severity.MINOR,
    "low": Severity.MINOR,
    "moderate": Severity.MODERATE,
    "major": Severity.MAJOR,
    "high": Severity.MAJOR,
    "contraindicated": Severity.CONTRAINDICATED,
}
DEFAULT_SEVERITY = Severity.MINOR
DEFAULT_GUIDANCE = "No interaction details available"
DEFAULT_EVIDENCE = "C"


# --- Shared RxNav client ---
# One client (one connection pool) for the whole app, closed on shutdown.
# Tests replace it through app.dependency_overrides.

_rxnav: RxNavClient | None = None


def get_rxnav() -> RxNavClient:
    """Get or create the shared RxNavClient."""
    global _rxnav  # noqa: PLW0603
    if _rxnav is None:
        _rxnav = RxNavClient()
    return _rxnav


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    global _rxnav  # noqa: PLW0603
    if _rxnav is not None:
        await _rxnav.close()
        _rxnav = None


app = FastAPI(
    title="Med Interaction Map",
    description="Normalize drug names and look up pairwise interactions",
    version="0.1.0",
    lifespan=lifespan,
)


class NormalizeResponse(BaseModel):
    """What /api/normalize sends back."""

    canonical: list[CanonicalItem]


@app.get("/api/health")
async def health() -> dict[str, str]:
    """Health check endpoint. Returns 200 if the server is running."""
    return {"status": "ok"}


@app.get("/api/normalize")
async def normalize(q: str | None = None, rxnav: RxNavClient = Depends(get_rxnav)) -> dict[str, Any]:
    """Resolve a free-text query to RxNorm concepts.

    Upstream failures are logged and answered with an empty list: the
    search box should show "no suggestions", not an error.
    """
    term = (q or "").strip()
    if not term:
        return NormalizeResponse(canonical=[]).model_dump(mode="json", by_alias=True)

    try:
        candidates = await rxnav.approximate_term(term)
    except RxNavError as e:
        logger.error("normalize rxnorm failed for %r: %s", term, e)
        candidates = []

    items: list[CanonicalItem] = []
    seen: set[str] = set()
    for c in candidates:
        rxcui = str(c.get("rxcui") or "")
        # RxNav returns one candidate per matching atom, so the same
        # concept can appear several times
        if not rxcui or rxcui in seen or PAIR_KEY_SEPARATOR in rxcui:
            continue
        seen.add(rxcui)
        items.append(CanonicalItem(id=rxcui, display=c.get("name") or term, type="Drug", rx_cui=rxcui))

    return NormalizeResponse(canonical=items).model_dump(mode="json", by_alias=True)


@app.get("/api/interactions")
async def interactions(
    a: str | None = None,
    b: str | None = None,
    rxnav: RxNavClient = Depends(get_rxnav),
) -> dict[str, Any]:
    """Look up the interaction between two RxCUIs.

    Returns an empty object when RxNav knows of no interaction. Returns
    502 when RxNav could not be reached, so the client can show the pair
    as "lookup failed" instead of "no known interaction".
    """
    if not a or not b or PAIR_KEY_SEPARATOR in a or PAIR_KEY_SEPARATOR in b:
        return {}

    try:
        found = await rxnav.interaction_pairs(a, b)
    except RxNavError as e:
        logger.error("interaction rxnorm failed for %s / %s: %s", a, b, e)
        raise HTTPException(status_code=502, detail=f"RxNav lookup failed: {e.detail}") from e

    if not found:
        return {}

    record = build_record(a, b, found, retrieved=datetime.now(timezone.utc).isoformat())
    return record.to_wire()


def map_severity(raw: str | None) -> Severity:
    return SEVERITY_MAP.get((raw or "").strip().lower(), DEFAULT_SEVERITY)


def build_record(
    a: str,
    b: str,
    found: list[dict[str, Any]],
    retrieved: str | None = None,
) -> InteractionRecord:
    """Fold RxNav interaction pairs into one record.

    The most severe pair supplies severity, guidance and mechanism (the
    later pair wins a tie). Every pair contributes an RxNorm source whose
    snippet is its description.
    """
    names: dict[str, str] = {}
    sources = []
    chosen: dict[str, Any] = {}
    chosen_severity: Severity | None = None

    for pair in found:
        for concept in pair.get("interactionConcept") or []:
            item = concept.get("minConceptItem") or {}
            if item.get("rxcui") and item.get("name"):
                names.setdefault(str(item["rxcui"]), item["name"])

        severity = map_severity(pair.get("severity"))
        if chosen_severity is None or severity.rank >= chosen_severity.rank:
            chosen, chosen_severity = pair, severity

        source = references.rxnorm(retrieved)
        sources.append(source.model_copy(update={"snippet": pair.get("description")}))

    sources.extend(references.static_references(a))

    return InteractionRecord(
        item_a=CanonicalItem(id=a, display=names.get(a, a), type="Drug", rx_cui=a),
        item_b=CanonicalItem(id=b, display=names.get(b, b), type="Drug", rx_cui=b),
        severity=chosen_severity or DEFAULT_SEVERITY,
        guidance=chosen.get("description") or DEFAULT_GUIDANCE,
        mechanism=chosen.get("comment") or None,
        evidence=DEFAULT_EVIDENCE,
        sources=sources,
    )
