"""Exceptions raised by the playlist pipeline.

Everything here reaches the request boundary, where it is logged and turned
into an opaque 500. Per-track lookup failures are not exceptions: a lookup
that goes wrong simply resolves to nothing.
"""

from __future__ import annotations

from typing import Optional


class VibeStreamError(Exception):
    """Base class for pipeline failures."""

    pass


class ConfigError(VibeStreamError):
    """Raised when a required setting (client id, secret, API key) is missing."""

    pass


class CredentialExchangeError(VibeStreamError):
    """Raised when the identity endpoint refuses or fails a token grant."""

    pass


class AuthExchangeError(CredentialExchangeError):
    """Raised when an authorization code or refresh token cannot be exchanged."""

    pass


class ParseError(VibeStreamError):
    """Raised when the model response holds no usable JSON array."""

    pass


class GenerationError(VibeStreamError):
    """Raised when a generate request cannot produce a playlist at all."""

    pass


class PersistError(VibeStreamError):
    """Raised when saving a playlist to the user's account fails.

    ``step`` names the call that failed (``profile``, ``create`` or
    ``add_tracks``). ``playlist_id`` is set when the playlist was already
    created before the failure, i.e. it is left behind in the account.
    """

    def __init__(self, message: str, step: str, playlist_id: Optional[str] = None):
        super().__init__(message)
        self.step = step
        self.playlist_id = playlist_id


def upstream_detail(exc: BaseException) -> str:
    """Short server-side description of an upstream failure (status + body)."""
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) is not None:
        try:
            body = response.text[:300]
        except Exception:
            body = "<unreadable body>"
        return f"HTTP {response.status_code}: {body}"
    return f"{type(exc).__name__}: {exc}"
