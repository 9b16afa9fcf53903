"""Smoke tests — verify the package is wired up correctly.

They ensure that:
1. All modules can be imported without errors
2. The FastAPI app starts up properly
3. Configuration loads with default values

This is the first thing CI runs, so if these fail, nothing else will work.
"""

from fastapi.testclient import TestClient


def test_imports() -> None:
    """Verify all modules can be imported without crashing."""
    import medmap  # noqa: F401
    import medmap.api_client  # noqa: F401
    import medmap.app  # noqa: F401
    import medmap.config  # noqa: F401
    import medmap.coordinator  # noqa: F401
    import medmap.debounce  # noqa: F401
    import medmap.interactions  # noqa: F401
    import medmap.models  # noqa: F401
    import medmap.normalization  # noqa: F401
    import medmap.pairs  # noqa: F401
    import medmap.presentation  # noqa: F401
    import medmap.references  # noqa: F401
    import medmap.runner  # noqa: F401
    import medmap.rxnav_client  # noqa: F401
    import medmap.selection  # noqa: F401
    import medmap.session  # noqa: F401


def test_config_defaults() -> None:
    """Config should load with sensible defaults even without a .env file."""
    from medmap.config import (
        MEDMAP_MAX_SUGGESTIONS,
        MEDMAP_REQUEST_TIMEOUT,
        MEDMAP_SEARCH_DEBOUNCE_MS,
        RXNAV_BASE_URL,
    )

    assert RXNAV_BASE_URL == "https://rxnav.nlm.nih.gov/REST"
    assert MEDMAP_SEARCH_DEBOUNCE_MS == 200
    assert MEDMAP_MAX_SUGGESTIONS == 10
    assert MEDMAP_REQUEST_TIMEOUT == 10.0


def test_health_endpoint() -> None:
    """The /api/health endpoint should return 200 OK."""
    from medmap.app import app

    client = TestClient(app)
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
