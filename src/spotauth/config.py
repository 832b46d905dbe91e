"""Endpoints, paths, and credential loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

# ---------------------------------------------------------------------------
# Spotify Accounts Service
# ---------------------------------------------------------------------------

AUTH_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"

REQUEST_TIMEOUT_SECONDS = 15

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

CLIENT_ID_ENV = "SPOTIFY_ID"
CLIENT_SECRET_ENV = "SPOTIFY_SECRET"
REDIRECT_URI_ENV = "SPOTIFY_REDIRECT_URI"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"

# ---------------------------------------------------------------------------
# Data directory
# ---------------------------------------------------------------------------

DATA_DIR = Path(os.environ.get("SPOTAUTH_DATA_DIR", "~/.local/share/spotauth")).expanduser()

TOKEN_CACHE_PATH = DATA_DIR / ".spotify_cache"


def ensure_data_dir() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Credentials:
    client_id: str = ""
    client_secret: str = ""


def env_credentials(environ: Mapping[str, str] | None = None) -> Credentials:
    """Read the client ID and secret from the environment.

    Unset variables yield empty strings; bad credentials only show up later,
    when Spotify rejects the authorization or the token exchange.
    """
    env = os.environ if environ is None else environ
    return Credentials(
        client_id=env.get(CLIENT_ID_ENV, ""),
        client_secret=env.get(CLIENT_SECRET_ENV, ""),
    )
