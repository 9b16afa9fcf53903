"""Tests for the backend HTTP client and the two clients built on it.

These tests use httpx's MockTransport to simulate the backend. No real
server is needed: the transport is a function that inspects the request
and returns a pre-defined response.
"""

import httpx
import pytest

from medmap.api_client import MalformedResponseError, MedMapClient, TransportError
from medmap.interactions import InteractionLookup
from medmap.models import Severity
from medmap.normalization import Normalizer

# --- Test helpers ---


def _record(a: str = "w", b: str = "a", severity: str = "major") -> dict[str, object]:
    """Build a fake /api/interactions record."""
    return {
        "a": {"id": a, "display": a, "type": "Drug"},
        "b": {"id": b, "display": b, "type": "Drug"},
        "severity": severity,
        "guidance": "Avoid combination; bleeding risk.",
        "mechanism": None,
        "evidence": "C",
        "sources": [{"name": "RxNorm", "url": "https://rxnav.nlm.nih.gov/"}],
    }


def _make_client(handler) -> MedMapClient:  # type: ignore[no-untyped-def]
    """Create a client whose requests are answered by handler."""
    return MedMapClient("http://medmap.test", transport=httpx.MockTransport(handler))


# --- MedMapClient ---


class TestMedMapClient:
    """Tests for the raw GET wrapper and its error taxonomy."""

    @pytest.mark.asyncio
    async def test_get_returns_json(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/normalize"
            assert request.url.params["q"] == "warfarin"
            return httpx.Response(200, json={"canonical": []})

        client = _make_client(handler)
        assert await client.get("/api/normalize", params={"q": "warfarin"}) == {"canonical": []}
        await client.close()

    @pytest.mark.asyncio
    async def test_error_status_raises_transport_error(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        client = _make_client(handler)
        with pytest.raises(TransportError, match="502") as excinfo:
            await client.get("/api/interactions")
        assert excinfo.value.status_code == 502
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)
        with pytest.raises(TransportError) as excinfo:
            await client.get("/api/normalize")
        assert excinfo.value.status_code == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_unencodable_param_raises_transport_error(self) -> None:
        """A lone surrogate fails while building the URL, before any I/O."""
        calls: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, json={"canonical": []})

        client = _make_client(handler)
        with pytest.raises(TransportError) as excinfo:
            await client.get("/api/normalize", params={"q": "war\ud800"})
        assert excinfo.value.status_code == 0
        assert calls == []
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_body_raises_malformed(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        client = _make_client(handler)
        with pytest.raises(MalformedResponseError):
            await client.get("/api/normalize")
        await client.close()


# --- Normalizer ---


class TestNormalizer:
    """Search must degrade to "no suggestions", never raise."""

    @pytest.mark.asyncio
    async def test_returns_canonical_items(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "canonical": [
                        {"id": "11289", "display": "warfarin", "type": "Drug", "rxCui": "11289"},
                        {"id": "202421", "display": "Coumadin", "type": "Drug"},
                    ]
                },
            )

        client = _make_client(handler)
        items = await Normalizer(client).normalize("  warfarin ")

        assert [i.id for i in items] == ["11289", "202421"]
        assert items[0].rx_cui == "11289"
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_query_issues_no_request(self) -> None:
        calls: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, json={"canonical": []})

        client = _make_client(handler)
        normalizer = Normalizer(client)

        assert await normalizer.normalize("") == []
        assert await normalizer.normalize("   ") == []
        assert calls == []
        await client.close()

    @pytest.mark.asyncio
    async def test_truncates_to_max_results(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            canonical = [{"id": str(i), "display": f"Drug {i}", "type": "Drug"} for i in range(15)]
            return httpx.Response(200, json={"canonical": canonical})

        client = _make_client(handler)
        items = await Normalizer(client).normalize("drug")

        assert len(items) == 10
        assert items[0].id == "0"
        assert items[-1].id == "9"
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            ["not", "an", "object"],
            {"canonical": "nope"},
            {"canonical": [{"display": "missing id", "type": "Drug"}]},
            {"canonical": [{"id": "x", "display": "X", "type": "Mineral"}]},
            {"canonical": [{"id": "x|y", "display": "X", "type": "Drug"}]},
        ],
    )
    async def test_malformed_payload_yields_empty(self, payload: object) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        client = _make_client(handler)
        assert await Normalizer(client).normalize("warfarin") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_yields_empty(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="Internal Server Error")

        client = _make_client(handler)
        assert await Normalizer(client).normalize("warfarin") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_unencodable_query_yields_empty(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"canonical": [{"id": "w", "display": "Warfarin", "type": "Drug"}]})

        client = _make_client(handler)
        assert await Normalizer(client).normalize("war\ud800") == []
        await client.close()


# --- InteractionLookup ---


class TestInteractionLookup:
    """Tests for the per-pair interaction lookup."""

    @pytest.mark.asyncio
    async def test_returns_record(self) -> None:
        captured: dict[str, str] = {}

        async def handler(request: httpx.Request) -> httpx.Response:
            captured.update(dict(request.url.params))
            return httpx.Response(200, json=_record())

        client = _make_client(handler)
        record = await InteractionLookup(client).fetch_interaction("w", "a")

        assert captured == {"a": "w", "b": "a"}
        assert record is not None
        assert record.severity is Severity.MAJOR
        assert record.item_a.id == "w"
        assert record.sources[0].name == "RxNorm"
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"guidance": "no severity here"}, {"severity": ""}])
    async def test_missing_severity_means_no_record(self, payload: dict[str, object]) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        client = _make_client(handler)
        assert await InteractionLookup(client).fetch_interaction("w", "a") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_record_raises_malformed(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record(severity="catastrophic"))

        client = _make_client(handler)
        with pytest.raises(MalformedResponseError):
            await InteractionLookup(client).fetch_interaction("w", "a")
        await client.close()

    @pytest.mark.asyncio
    async def test_non_object_raises_malformed(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2, 3])

        client = _make_client(handler)
        with pytest.raises(MalformedResponseError):
            await InteractionLookup(client).fetch_interaction("w", "a")
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="RxNav lookup failed")

        client = _make_client(handler)
        with pytest.raises(TransportError, match="502"):
            await InteractionLookup(client).fetch_interaction("w", "a")
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_id_rejected_without_request(self) -> None:
        calls: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, json={})

        client = _make_client(handler)
        with pytest.raises(ValueError):
            await InteractionLookup(client).fetch_interaction("", "a")
        assert calls == []
        await client.close()
