"""Tests for the SessionRunner that hosts a Session on its own loop thread.

These are plain synchronous tests, like the Streamlit script that uses
the runner: every call goes through runner.run() or runner.search().
"""

from __future__ import annotations

import gc
from unittest.mock import AsyncMock

import httpx
import pytest

from medmap.api_client import MedMapClient
from medmap.models import CanonicalItem
from medmap.runner import SessionRunner
from medmap.session import Session

ASPIRIN = CanonicalItem(id="a", display="Aspirin", type="Drug")


def _factory(client: MedMapClient | None = None):  # type: ignore[no-untyped-def]
    def build() -> Session:
        normalizer = AsyncMock()
        normalizer.normalize.return_value = [ASPIRIN]
        session = Session(normalizer, AsyncMock(), debounce_ms=0)
        session._client = client
        return session

    return build


def _client() -> MedMapClient:
    return MedMapClient(
        "http://medmap.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
    )


def test_run_and_search_use_the_session_loop() -> None:
    runner = SessionRunner(_factory())

    assert runner.search("asp") == [ASPIRIN]
    assert runner.run(lambda: runner.session.query) == "asp"
    assert runner.run(runner.session.choose_item, ASPIRIN)
    assert runner.run(lambda: list(runner.session.selection)) == [ASPIRIN]
    runner.close()


def test_close_releases_client_and_thread() -> None:
    client = _client()
    runner = SessionRunner(_factory(client))
    thread = runner._thread

    runner.close()

    assert client._http.is_closed
    assert not thread.is_alive()
    assert runner.loop.is_closed()
    assert runner.closed
    # A second close does nothing
    runner.close()
    with pytest.raises(RuntimeError):
        runner.run(lambda: None)


def test_dropped_runner_is_shut_down() -> None:
    client = _client()
    runner = SessionRunner(_factory(client))
    thread = runner._thread

    del runner
    gc.collect()

    assert client._http.is_closed
    assert not thread.is_alive()
