"""Interaction client — one lookup per pair of canonical items.

API endpoint used:
- GET /api/interactions?a=<idA>&b=<idB> → InteractionRecord or {}

Unlike normalization, failures here are NOT swallowed: the refresh
coordinator needs to tell "checked, none found" (None) apart from
"check failed" (an exception).
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from medmap.api_client import MalformedResponseError, MedMapClient
from medmap.models import InteractionRecord

logger = logging.getLogger(__name__)


class InteractionLookup:
    """Fetches the interaction record for a pair of item ids."""

    def __init__(self, client: MedMapClient) -> None:
        self.client = client

    async def fetch_interaction(self, id_a: str, id_b: str) -> InteractionRecord | None:
        """Fetch the interaction between two canonical items.

        A response without a severity field (including the empty object)
        means the sources know of no interaction; there is no way to tell
        that apart from a service that simply returned nothing usable.

        Args:
            id_a: Canonical id of the first item.
            id_b: Canonical id of the second item.

        Returns:
            The interaction record, or None if no interaction is known.

        Raises:
            ValueError: If either id is empty.
            TransportError: If the request fails.
            MalformedResponseError: If the body is not a JSON object, or has
                a severity but is not a valid record.
        """
        if not id_a or not id_b:
            raise ValueError("Both item ids are required")

        data = await self.client.get("/api/interactions", params={"a": id_a, "b": id_b})

        if not isinstance(data, dict):
            raise MalformedResponseError("interaction response is not an object")
        if not data.get("severity"):
            logger.debug("No interaction record for %s / %s", id_a, id_b)
            return None

        try:
            return InteractionRecord.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(f"invalid interaction record: {exc}") from exc
