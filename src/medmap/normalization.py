"""Normalization client — free text to canonical items.

API endpoint used:
- GET /api/normalize?q=<text> → {"canonical": [CanonicalItem, ...]}

Search must never break the page, so every failure here degrades to
"no suggestions".
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from medmap.api_client import MalformedResponseError, MedMapClient, MedMapError
from medmap.config import MEDMAP_MAX_SUGGESTIONS
from medmap.models import CanonicalItem

logger = logging.getLogger(__name__)


class Normalizer:
    """Turns a search query into a ranked list of canonical items."""

    def __init__(
        self,
        client: MedMapClient,
        max_results: int = MEDMAP_MAX_SUGGESTIONS,
    ) -> None:
        self.client = client
        self.max_results = max_results

    async def normalize(self, query: str) -> list[CanonicalItem]:
        """Look up canonical items matching a free-text query.

        Args:
            query: What the user typed. Surrounding whitespace is ignored.

        Returns:
            At most max_results items, in the order the service ranked them.
            Empty if the query is blank or the lookup failed.
        """
        q = query.strip()
        if not q:
            return []

        try:
            data = await self.client.get("/api/normalize", params={"q": q})
            items = _parse_canonical(data)
        except MedMapError as e:
            logger.warning("Normalization of %r failed: %s", q, e)
            return []

        return items[: self.max_results]


def _parse_canonical(data: object) -> list[CanonicalItem]:
    if not isinstance(data, dict):
        raise MalformedResponseError("normalize response is not an object")
    raw = data.get("canonical", [])
    if not isinstance(raw, list):
        raise MalformedResponseError("'canonical' is not a list")
    try:
        return [CanonicalItem.model_validate(c) for c in raw]
    except ValidationError as exc:
        raise MalformedResponseError(f"invalid canonical item: {exc}") from exc
