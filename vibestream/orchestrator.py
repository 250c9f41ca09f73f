# vibestream/orchestrator.py
from __future__ import annotations

import logging

from vibestream.auth import ServiceCredentialCache
from vibestream.errors import GenerationError, VibeStreamError
from vibestream.llm_helper import TextGenerationClient
from vibestream.schemas import GeneratedPlaylist
from vibestream.spotify import TrackResolver

log = logging.getLogger("vibestream.orchestrator")


class PlaylistOrchestrator:
    """vibe -> model candidates -> service token -> resolved tracks."""

    def __init__(
        self,
        generator: TextGenerationClient,
        credentials: ServiceCredentialCache,
        resolver: TrackResolver,
    ):
        self.generator = generator
        self.credentials = credentials
        self.resolver = resolver

    async def generate(self, vibe: str) -> GeneratedPlaylist:
        if not vibe or not vibe.strip():
            raise ValueError("vibe must be a non-empty string")
        try:
            candidates = await self.generator.generate_candidates(vibe)
            token = await self.credentials.ensure_token()
        except VibeStreamError as e:
            raise GenerationError("Failed to generate playlist") from e

        # an empty result is a valid outcome, not an error
        tracks = await self.resolver.resolve(candidates, token)
        log.info("vibe %r: %d/%d candidates resolved", vibe, len(tracks), len(candidates))
        return GeneratedPlaylist(vibe=vibe, tracks=tracks)
