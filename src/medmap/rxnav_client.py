"""HTTP client for the NLM RxNav REST API.

The backend uses two RxNav endpoints:
- approximateTerm.json — fuzzy drug name search, returns candidate RxCUIs
- interaction/list.json — interactions among a list of RxCUIs

RxNav is free and public: no API key, no authentication.

Usage:
    rxnav = RxNavClient()
    candidates = await rxnav.approximate_term("warfarin")
    pairs = await rxnav.interaction_pairs("11289", "1191")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from medmap.config import MEDMAP_REQUEST_TIMEOUT, RXNAV_BASE_URL, RXNAV_MAX_ENTRIES

logger = logging.getLogger(__name__)


class RxNavError(Exception):
    """Raised when an RxNav request fails or returns an error status."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"RxNav HTTP {status_code}: {detail}")


class RxNavClient:
    """Async client for the two RxNav endpoints the backend needs.

    Attributes:
        base_url: RxNav REST root (e.g., "https://rxnav.nlm.nih.gov/REST").
    """

    def __init__(
        self,
        base_url: str = RXNAV_BASE_URL,
        timeout: float = MEDMAP_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def approximate_term(
        self,
        term: str,
        max_entries: int = RXNAV_MAX_ENTRIES,
    ) -> list[dict[str, Any]]:
        """Fuzzy-search RxNorm for a drug name.

        Args:
            term: The free-text name (e.g., "warfarin" or "coumadin").
            max_entries: Upper bound on candidates returned by RxNav.

        Returns:
            Candidate dicts as RxNav returns them (keys include "rxcui",
            "name", "score", "rank"), best match first. Empty if none.

        Raises:
            RxNavError: If the request fails.
        """
        data = await self._get(
            "/approximateTerm.json",
            params={"term": term, "maxEntries": max_entries},
        )
        group = data.get("approximateGroup") or {}
        return list(group.get("candidate") or [])

    async def interaction_pairs(self, rxcui_a: str, rxcui_b: str) -> list[dict[str, Any]]:
        """List the interaction pairs RxNav knows between two RxCUIs.

        Flattens fullInteractionTypeGroup → fullInteractionType →
        interactionPair into one list, in the order RxNav reports them.

        Raises:
            RxNavError: If the request fails.
        """
        # RxNav expects the ids space-separated (encoded as "+") in one param
        data = await self._get(
            "/interaction/list.json",
            params={"rxcuis": f"{rxcui_a} {rxcui_b}"},
        )
        found: list[dict[str, Any]] = []
        for group in data.get("fullInteractionTypeGroup") or []:
            for interaction_type in group.get("fullInteractionType") or []:
                found.extend(interaction_type.get("interactionPair") or [])
        return found

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._http.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RxNavError(
                status_code=exc.response.status_code,
                detail=exc.response.text,
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            raise RxNavError(status_code=0, detail=f"Request to {url} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise RxNavError(status_code=response.status_code, detail="Response is not JSON") from exc
        if not isinstance(data, dict):
            raise RxNavError(status_code=response.status_code, detail="Response is not a JSON object")
        logger.debug("RxNav %s → %d", endpoint, response.status_code)
        return data
