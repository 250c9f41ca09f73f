# vibestream/auth.py
from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx

from vibestream.config import SPOTIFY_ACCOUNTS_URL, Settings
from vibestream.errors import (
    AuthExchangeError, ConfigError, CredentialExchangeError, upstream_detail,
)
from vibestream.schemas import ServiceCredential, UserCredential

log = logging.getLogger("vibestream.auth")

TOKEN_URL = f"{SPOTIFY_ACCOUNTS_URL}/api/token"
AUTHORIZE_URL = f"{SPOTIFY_ACCOUNTS_URL}/authorize"

# ---- OAuth helpers ----
SCOPES = "streaming user-read-email user-read-private playlist-modify-public playlist-modify-private"

DEFAULT_EXPIRES_IN = 3600


def _basic_auth_header(settings: Settings) -> Dict[str, str]:
    client_id, client_secret = settings.spotify_client_credentials()
    auth = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
    return {"Authorization": f"Basic {auth}"}


async def _post_token(http: httpx.AsyncClient, settings: Settings, data: Dict[str, str]) -> Dict[str, Any]:
    r = await http.post(TOKEN_URL, headers=_basic_auth_header(settings), data=data)
    r.raise_for_status()
    return r.json()


# ----------------------------------
# Service credential (client-credentials grant)
# ----------------------------------
class ServiceCredentialCache:
    """Holds the machine-level bearer token used for catalog searches.

    One instance is shared by every request in the process. The token is
    reused until its expiry passes; the next caller after that performs a
    fresh client-credentials exchange. Refreshes are serialised, so callers
    that pile up behind an expired token share a single exchange.

    A failed exchange leaves the previous (stale) credential in place and
    the error propagates; the following call simply tries again.
    """

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._http = http
        self._clock = clock
        self._lock = asyncio.Lock()
        self.credential: Optional[ServiceCredential] = None

    def _is_fresh(self) -> bool:
        return self.credential is not None and self._clock() < self.credential.expires_at

    async def ensure_token(self) -> str:
        if self._is_fresh():
            return self.credential.token
        async with self._lock:
            # someone else may have refreshed while we waited
            if self._is_fresh():
                return self.credential.token
            self.credential = await self._exchange()
            return self.credential.token

    async def _exchange(self) -> ServiceCredential:
        try:
            data = await _post_token(self._http, self._settings, {"grant_type": "client_credentials"})
            token = data["access_token"]
            expires_in = int(data.get("expires_in", DEFAULT_EXPIRES_IN))
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            log.error("client-credentials exchange failed: %s", upstream_detail(e))
            raise CredentialExchangeError("Could not obtain a Spotify service token") from e

        log.info("service token refreshed, valid for %ss", expires_in)
        return ServiceCredential(token=token, expires_at=self._clock() + expires_in)


# ----------------------------------
# User credential (authorization-code grant)
# ----------------------------------
class UserAuthorizationFlow:
    """Browser-redirect login for a Spotify user.

    Nothing is kept server side: the credential produced by
    :meth:`exchange_code` (or :meth:`refresh`) is handed straight back to the
    caller, which stores it and replays the access token later.
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self._settings = settings
        self._http = http

    def build_authorization_url(self) -> str:
        if not self._settings.spotify_client_id:
            raise ConfigError("Missing SPOTIFY_CLIENT_ID")
        params = {
            "response_type": "code",
            "client_id": self._settings.spotify_client_id,
            "scope": SCOPES,
            "redirect_uri": self._settings.spotify_redirect_uri,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> UserCredential:
        # codes are single-use, so a failed exchange is never retried
        data = await self._grant({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._settings.spotify_redirect_uri,
        }, what="authorization code")
        return self._to_credential(data)

    async def refresh(self, refresh_token: str) -> UserCredential:
        data = await self._grant({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }, what="refresh token")
        # carry forward refresh_token if not returned
        return self._to_credential(data, fallback_refresh_token=refresh_token)

    async def _grant(self, form: Dict[str, str], what: str) -> Dict[str, Any]:
        try:
            return await _post_token(self._http, self._settings, form)
        except (httpx.HTTPError, ValueError) as e:
            log.error("%s exchange failed: %s", what, upstream_detail(e))
            raise AuthExchangeError(f"Could not exchange {what}") from e

    @staticmethod
    def _to_credential(data: Dict[str, Any], fallback_refresh_token: Optional[str] = None) -> UserCredential:
        try:
            return UserCredential(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token") or fallback_refresh_token,
                expires_in=int(data.get("expires_in", DEFAULT_EXPIRES_IN)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise AuthExchangeError("Token response is missing access_token") from e
