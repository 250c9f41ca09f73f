# vibestream/config.py
from __future__ import annotations

import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, ConfigDict

from vibestream.errors import ConfigError

# .env is optional; real environment variables take precedence
load_dotenv(find_dotenv(), override=False)

# ----------------------------------
# Spotify endpoints
# ----------------------------------
SPOTIFY_ACCOUNTS_URL = "https://accounts.spotify.com"
SPOTIFY_API_URL = "https://api.spotify.com/v1"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:5173/callback"
DEFAULT_CORS_ORIGINS: List[str] = [
    "http://localhost:5173", "http://127.0.0.1:5173",
    "http://localhost:3000", "http://127.0.0.1:3000",
]


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    spotify_redirect_uri: str = DEFAULT_REDIRECT_URI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    http_timeout: float = 15.0
    max_concurrent_lookups: int = 5
    cors_origins: List[str] = DEFAULT_CORS_ORIGINS
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    def spotify_client_credentials(self) -> Tuple[str, str]:
        """Return ``(client_id, client_secret)`` or raise ConfigError."""
        if not self.spotify_client_id or not self.spotify_client_secret:
            raise ConfigError("Missing SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET")
        return self.spotify_client_id, self.spotify_client_secret


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


def load_settings() -> Settings:
    """Collect settings from the environment (and .env, if present)."""
    env_origins = (os.getenv("VIBESTREAM_CORS_ORIGINS") or "").strip()
    return Settings(
        spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID") or None,
        spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET") or None,
        spotify_redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        http_timeout=float(os.getenv("VIBESTREAM_HTTP_TIMEOUT", "15")),
        max_concurrent_lookups=int(os.getenv("VIBESTREAM_MAX_CONCURRENT_LOOKUPS", "5")),
        cors_origins=_split_origins(env_origins) if env_origins else DEFAULT_CORS_ORIGINS,
        host=os.getenv("VIBESTREAM_HOST", "127.0.0.1"),
        port=int(os.getenv("VIBESTREAM_PORT", "3000")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
