"""
Shared fixtures: settings, a controllable clock, a fake OpenAI client and an
in-memory stand-in for the Spotify accounts + Web API served through
httpx.MockTransport. Nothing here touches the network.
"""
from __future__ import annotations

import json
import re
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Union
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs

import httpx
import pytest

from vibestream.config import Settings

REDIRECT_URI = "http://127.0.0.1:5173/callback"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        spotify_client_id="client-id",
        spotify_client_secret="client-secret",
        spotify_redirect_uri=REDIRECT_URI,
        openai_api_key="sk-test",
        log_level="DEBUG",
    )


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ----------------------------------
# Fake OpenAI client
# ----------------------------------
def make_llm(text: Optional[str] = None, error: Optional[BaseException] = None) -> MagicMock:
    """AsyncOpenAI look-alike whose chat completion returns ``text``."""
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        message = SimpleNamespace(content=text)
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )
    return client


# ----------------------------------
# Fake Spotify
# ----------------------------------
def make_track(track_id: str, name: str, artist: str, preview: bool = True) -> Dict[str, Any]:
    return {
        "id": track_id,
        "uri": f"spotify:track:{track_id}",
        "name": name,
        "artists": [{"id": f"artist-{artist}", "name": artist}],
        "preview_url": f"https://p.scdn.co/mp3-preview/{track_id}" if preview else None,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


class SpotifyStub:
    """Minimal accounts + Web API server.

    ``catalog`` maps a search query (``artist:A track:T``) to a track item, or
    to an int status code to make that search fail. Unknown queries return no
    items. ``playlists`` records every playlist created and its track URIs.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.catalog: Dict[str, Union[Dict[str, Any], int]] = {}
        self.token_status = 200
        self.token_expires_in = 3600
        self.service_tokens_issued = 0
        self.me_status = 200
        self.create_status = 200
        self.add_tracks_status = 200
        self.user_id = "user-1"
        self.playlists: Dict[str, Dict[str, Any]] = {}

    # -- helpers for assertions --
    def calls(self, path: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path == path and (method is None or r.method == method)
        ]

    def token_grants(self, grant_type: Optional[str] = None) -> List[Dict[str, List[str]]]:
        forms = [parse_qs(r.content.decode()) for r in self.calls("/api/token")]
        if grant_type:
            forms = [f for f in forms if f.get("grant_type") == [grant_type]]
        return forms

    @property
    def searches(self) -> List[str]:
        return [r.url.params["q"] for r in self.calls("/v1/search")]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    # -- routing --
    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host == "accounts.spotify.com" and path == "/api/token":
            return self._token(request)
        if path == "/v1/search":
            return self._search(request)
        if path == "/v1/me":
            if self.me_status != 200:
                return httpx.Response(self.me_status, json={"error": {"message": "bad token"}})
            return httpx.Response(200, json={"id": self.user_id, "display_name": "Test User"})

        m = re.fullmatch(r"/v1/users/([^/]+)/playlists", path)
        if m and request.method == "POST":
            if self.create_status != 200:
                return httpx.Response(self.create_status, json={"error": {"message": "nope"}})
            body = json.loads(request.content)
            playlist_id = f"pl-{len(self.playlists) + 1}"
            self.playlists[playlist_id] = {"owner": m.group(1), "details": body, "uris": []}
            return httpx.Response(201, json={
                "id": playlist_id,
                "external_urls": {"spotify": f"https://open.spotify.com/playlist/{playlist_id}"},
            })

        m = re.fullmatch(r"/v1/playlists/([^/]+)/tracks", path)
        if m and request.method == "POST":
            if self.add_tracks_status != 200:
                return httpx.Response(self.add_tracks_status, json={"error": {"message": "upstream"}})
            self.playlists[m.group(1)]["uris"].extend(json.loads(request.content)["uris"])
            return httpx.Response(201, json={"snapshot_id": "snap"})

        return httpx.Response(404, json={"error": {"message": f"no route {path}"}})

    def _token(self, request: httpx.Request) -> httpx.Response:
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"error": "invalid_client"})
        form = parse_qs(request.content.decode())
        grant = form.get("grant_type", [""])[0]
        if grant == "client_credentials":
            self.service_tokens_issued += 1
            return httpx.Response(200, json={
                "access_token": f"svc-token-{self.service_tokens_issued}",
                "token_type": "Bearer",
                "expires_in": self.token_expires_in,
            })
        if grant == "authorization_code":
            return httpx.Response(200, json={
                "access_token": "user-access",
                "refresh_token": "user-refresh",
                "expires_in": 3600,
                "token_type": "Bearer",
            })
        if grant == "refresh_token":
            return httpx.Response(200, json={"access_token": "user-access-2", "expires_in": 3600})
        return httpx.Response(400, json={"error": "unsupported_grant_type"})

    def _search(self, request: httpx.Request) -> httpx.Response:
        hit = self.catalog.get(request.url.params.get("q", ""))
        if isinstance(hit, int):
            return httpx.Response(hit, json={"error": {"status": hit}})
        items = [hit] if hit else []
        return httpx.Response(200, json={"tracks": {"items": items, "total": len(items)}})


@pytest.fixture
def spotify() -> SpotifyStub:
    return SpotifyStub()
