# vibestream/routes/playlist_routes.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from vibestream.errors import VibeStreamError
from vibestream.orchestrator import PlaylistOrchestrator
from vibestream.routes.deps import error_response, get_orchestrator
from vibestream.schemas import ErrorResponse, GeneratePlaylistRequest, GeneratePlaylistResponse

log = logging.getLogger("vibestream.routes")

router = APIRouter(prefix="/api", tags=["playlist"])


@router.post(
    "/generate-playlist",
    response_model=GeneratePlaylistResponse,
    responses={500: {"model": ErrorResponse}},
)
async def generate_playlist(
    body: GeneratePlaylistRequest,
    orchestrator: PlaylistOrchestrator = Depends(get_orchestrator),
):
    if not (body.vibe or "").strip():
        raise HTTPException(status_code=400, detail="Vibe must not be empty.")
    try:
        result = await orchestrator.generate(body.vibe)
    except VibeStreamError:
        log.exception("Error generating playlist for vibe %r", body.vibe)
        return error_response("Failed to generate playlist")
    return GeneratePlaylistResponse(vibe=result.vibe, playlist=result.tracks)
