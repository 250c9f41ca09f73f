# vibestream/routes/spotify_routes.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from vibestream.auth import UserAuthorizationFlow
from vibestream.errors import PersistError, VibeStreamError
from vibestream.routes.deps import error_response, get_auth_flow, get_persister
from vibestream.schemas import (
    AuthUrlResponse, CallbackRequest, CreatePlaylistRequest, ErrorResponse,
    PlaylistCreationResult, RefreshRequest, UserCredential,
)
from vibestream.spotify import PlaylistPersister

log = logging.getLogger("vibestream.routes")

router = APIRouter(prefix="/api/spotify", tags=["spotify"])

_ERRORS = {500: {"model": ErrorResponse}}


# ----------------------------------
# OAuth login flow
# ----------------------------------
@router.get("/auth", response_model=AuthUrlResponse, responses=_ERRORS)
def spotify_auth(flow: UserAuthorizationFlow = Depends(get_auth_flow)):
    try:
        return AuthUrlResponse(auth_url=flow.build_authorization_url())
    except VibeStreamError:
        log.exception("Cannot build Spotify authorization URL")
        return error_response("Spotify is not configured")


@router.post("/callback", response_model=UserCredential, responses=_ERRORS)
async def spotify_callback(body: CallbackRequest, flow: UserAuthorizationFlow = Depends(get_auth_flow)):
    try:
        return await flow.exchange_code(body.code)
    except VibeStreamError:
        log.exception("Error exchanging code for token")
        return error_response("Failed to authenticate with Spotify")


@router.post("/refresh", response_model=UserCredential, responses=_ERRORS)
async def spotify_refresh(body: RefreshRequest, flow: UserAuthorizationFlow = Depends(get_auth_flow)):
    try:
        return await flow.refresh(body.refresh_token)
    except VibeStreamError:
        log.exception("Error refreshing Spotify token")
        return error_response("Failed to refresh Spotify session")


# ----------------------------------
# Save a generated playlist
# ----------------------------------
@router.post("/create-playlist", response_model=PlaylistCreationResult, responses=_ERRORS)
async def spotify_create_playlist(
    body: CreatePlaylistRequest,
    persister: PlaylistPersister = Depends(get_persister),
):
    try:
        return await persister.persist(body.access_token, body.vibe, body.track_uris)
    except PersistError as e:
        if e.playlist_id:
            log.exception("Playlist %s was created but tracks could not be added", e.playlist_id)
        else:
            log.exception("Error creating playlist (step: %s)", e.step)
        return error_response("Failed to create playlist")
