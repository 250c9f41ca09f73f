# vibestream/spotify.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from vibestream.config import SPOTIFY_API_URL
from vibestream.errors import PersistError, upstream_detail
from vibestream.schemas import PlaylistCreationResult, ResolvedTrack, SongCandidate

log = logging.getLogger("vibestream.spotify")

SEARCH_URL = f"{SPOTIFY_API_URL}/search"
ME_URL = f"{SPOTIFY_API_URL}/me"

# Spotify accepts at most 100 URIs per "add items" call
MAX_URIS_PER_REQUEST = 100


def _bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ----------------------------
# Catalog search
# ----------------------------
def build_track_query(candidate: SongCandidate) -> str:
    """Structured search query (field filters, not free text)."""
    return f"artist:{candidate.artist} track:{candidate.track}"


def to_resolved_track(item: Dict[str, Any]) -> ResolvedTrack:
    return ResolvedTrack(
        id=item["id"],
        uri=item["uri"],
        name=item["name"],
        artist=item["artists"][0]["name"],
        preview_url=item.get("preview_url"),
        external_url=item["external_urls"]["spotify"],
    )


class TrackResolver:
    """Matches model candidates to concrete catalog tracks.

    Each candidate gets one ``limit=1`` search and the first hit wins; there
    is no scoring. A candidate that finds nothing, or whose request fails,
    is left out and the rest carry on. Lookups run concurrently (bounded by
    ``max_concurrency``) and come back in candidate order.
    """

    def __init__(self, http: httpx.AsyncClient, max_concurrency: int = 5):
        self._http = http
        self.max_concurrency = max(1, max_concurrency)

    async def resolve(self, candidates: Sequence[SongCandidate], token: str) -> List[ResolvedTrack]:
        sem = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(candidate: SongCandidate) -> Optional[ResolvedTrack]:
            async with sem:
                return await self.lookup(candidate, token)

        # gather keeps input order, so the surviving tracks stay in candidate order
        results = await asyncio.gather(*(_bounded(c) for c in candidates))
        return [t for t in results if t is not None]

    async def lookup(self, candidate: SongCandidate, token: str) -> Optional[ResolvedTrack]:
        params = {"q": build_track_query(candidate), "type": "track", "limit": 1}
        try:
            r = await self._http.get(SEARCH_URL, headers=_bearer(token), params=params)
            r.raise_for_status()
            items = (r.json().get("tracks") or {}).get("items") or []
            if not items:
                log.warning("No catalog match for %s - %s", candidate.artist, candidate.track)
                return None
            return to_resolved_track(items[0])
        except Exception as e:
            log.warning("Failed to find track: %s - %s (%s)",
                        candidate.artist, candidate.track, upstream_detail(e))
            return None


# ----------------------------
# Saving to the user's account
# ----------------------------
def playlist_details(vibe: str) -> Dict[str, Any]:
    return {
        "name": f"{vibe} Vibes",
        "description": f'AI-generated playlist for "{vibe}" mood by VibeStream',
        "public": False,
    }


class PlaylistPersister:
    """Creates a private playlist in the user's account and fills it.

    The three calls (profile, create, add tracks) are not atomic. If adding
    tracks fails the freshly created playlist is NOT deleted; the raised
    PersistError carries its id so callers can tell.
    """

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def _call(self, method: str, url: str, step: str, token: str,
                    playlist_id: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
        try:
            r = await self._http.request(method, url, headers=_bearer(token), **kwargs)
            r.raise_for_status()
            return r.json() if r.content else {}
        except (httpx.HTTPError, ValueError) as e:
            log.error("playlist %s step failed: %s", step, upstream_detail(e))
            raise PersistError("Failed to create playlist", step=step, playlist_id=playlist_id) from e

    async def persist(self, user_token: str, vibe: str, track_uris: Sequence[str]) -> PlaylistCreationResult:
        me = await self._call("GET", ME_URL, "profile", user_token)
        user_id = me.get("id") if isinstance(me, dict) else None
        if not user_id:
            raise PersistError("Failed to create playlist", step="profile")

        created = await self._call(
            "POST", f"{SPOTIFY_API_URL}/users/{quote(str(user_id), safe='')}/playlists",
            "create", user_token, json=playlist_details(vibe),
        )
        playlist_id = created.get("id") if isinstance(created, dict) else None
        if not playlist_id:
            raise PersistError("Failed to create playlist", step="create")

        uris = list(track_uris)
        for start in range(0, len(uris), MAX_URIS_PER_REQUEST):
            await self._call(
                "POST", f"{SPOTIFY_API_URL}/playlists/{playlist_id}/tracks",
                "add_tracks", user_token, playlist_id=playlist_id,
                json={"uris": uris[start:start + MAX_URIS_PER_REQUEST]},
            )

        log.info("created playlist %s with %d tracks", playlist_id, len(uris))
        return PlaylistCreationResult(
            success=True,
            playlist_id=playlist_id,
            playlist_url=(created.get("external_urls") or {}).get("spotify"),
        )
