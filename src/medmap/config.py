"""Configuration for the interaction map.

Loads settings from environment variables (via a .env file or the system
environment). Every setting has a default so the package can be imported
and tested without any environment at all.

The core classes take these values as constructor defaults, so tests pass
their own values instead of patching the environment.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if it exists (it won't exist in CI or Docker)
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)

# --- Interaction map backend ---
# Where the /api/normalize and /api/interactions endpoints are served.
# The Streamlit frontend talks to this URL.
MEDMAP_API_BASE_URL: str = os.getenv("MEDMAP_API_BASE_URL", "http://localhost:8000")

# Per-request timeout in seconds. A lookup that takes longer is treated as
# a failure for that pair only.
MEDMAP_REQUEST_TIMEOUT: float = float(os.getenv("MEDMAP_REQUEST_TIMEOUT", "10"))

# --- Search ---
# Quiet window for the search box: only the last keystroke inside this
# window actually issues a normalization request.
MEDMAP_SEARCH_DEBOUNCE_MS: int = int(os.getenv("MEDMAP_SEARCH_DEBOUNCE_MS", "200"))

# Maximum number of suggestions shown under the search box.
MEDMAP_MAX_SUGGESTIONS: int = int(os.getenv("MEDMAP_MAX_SUGGESTIONS", "10"))

# --- Upstream services (used by the backend only) ---
# The NLM RxNav REST API is free and public, no API key needed.
RXNAV_BASE_URL: str = os.getenv("RXNAV_BASE_URL", "https://rxnav.nlm.nih.gov/REST")

# How many candidates to ask RxNav's approximate term search for.
RXNAV_MAX_ENTRIES: int = int(os.getenv("RXNAV_MAX_ENTRIES", "5"))

# --- Logging ---
MEDMAP_LOG_LEVEL: str = os.getenv("MEDMAP_LOG_LEVEL", "INFO")
