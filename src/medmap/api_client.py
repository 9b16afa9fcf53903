"""HTTP client for the interaction map backend.

This module provides the MedMapClient class, which sends GET requests to
the backend's /api endpoints and turns every failure into one of two
exceptions:

- TransportError: the request never produced a usable HTTP response
  (connection refused, timeout, DNS failure) or the server answered with
  an error status.
- MalformedResponseError: the server answered 2xx but the body is not the
  JSON shape we expected.

A "no data" answer (an empty object or an empty list) is NOT an error.
Deciding what "no data" means is left to the callers in
`medmap.normalization` and `medmap.interactions`.

Usage:
    client = MedMapClient("http://localhost:8000")
    payload = await client.get("/api/normalize", params={"q": "warfarin"})
    await client.close()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from medmap.config import MEDMAP_API_BASE_URL, MEDMAP_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class MedMapError(Exception):
    """Base class for errors talking to the interaction map backend."""


class TransportError(MedMapError):
    """Raised when a request fails at the network or HTTP level.

    status_code is 0 when no response was received at all.
    """

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class MalformedResponseError(MedMapError):
    """Raised when a response body does not have the expected shape."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Malformed response: {detail}")


class MedMapClient:
    """Async HTTP client for the interaction map backend.

    One instance is shared by the Normalizer and the InteractionLookup of a
    session, so both reuse the same connection pool.

    Attributes:
        base_url: The backend URL (e.g., "http://localhost:8000").
    """

    def __init__(
        self,
        base_url: str = MEDMAP_API_BASE_URL,
        timeout: float = MEDMAP_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        # transport= lets tests plug in httpx.MockTransport.
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a GET request and return the decoded JSON body.

        Args:
            endpoint: API path (e.g., "/api/normalize"), appended to base_url.
            params: Optional query parameters.

        Returns:
            The JSON response body (usually a dict).

        Raises:
            TransportError: If the request fails or returns status >= 400.
            MalformedResponseError: If the body is not valid JSON.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._http.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            # InvalidURL and UnicodeError come from building the request
            # (e.g. a lone surrogate in a query parameter), before any I/O
            raise TransportError(
                status_code=0,
                detail=f"Request to {url} failed: {exc}",
            ) from exc

        if response.status_code >= 400:
            raise TransportError(
                status_code=response.status_code,
                detail=response.text,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{url} did not return JSON") from exc
