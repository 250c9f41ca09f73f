# vibestream/fastapi_app.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from vibestream.auth import ServiceCredentialCache, UserAuthorizationFlow
from vibestream.config import Settings, load_settings
from vibestream.llm_helper import TextGenerationClient
from vibestream.orchestrator import PlaylistOrchestrator
from vibestream.routes.playlist_routes import router as playlist_router
from vibestream.routes.spotify_routes import router as spotify_router
from vibestream.spotify import PlaylistPersister, TrackResolver

log = logging.getLogger("vibestream")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _wire(app: FastAPI, settings: Settings, http: httpx.AsyncClient, llm: Optional[Any]) -> None:
    credentials = ServiceCredentialCache(settings, http)
    app.state.orchestrator = PlaylistOrchestrator(
        generator=TextGenerationClient(llm, model=settings.openai_model),
        credentials=credentials,
        resolver=TrackResolver(http, max_concurrency=settings.max_concurrent_lookups),
    )
    app.state.auth_flow = UserAuthorizationFlow(settings, http)
    app.state.persister = PlaylistPersister(http)


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    llm_client: Optional[Any] = None,
) -> FastAPI:
    """
    Build the API. ``http_client`` and ``llm_client`` are injectable; when
    omitted they are created (and closed) by the app lifespan.
    """
    settings = settings or load_settings()
    _configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http = http_client or httpx.AsyncClient(timeout=settings.http_timeout)
        llm = llm_client
        if llm is None and settings.openai_api_key:
            llm = AsyncOpenAI(api_key=settings.openai_api_key)
        if llm is None:
            log.warning("OPENAI_API_KEY is not set; playlist generation will fail")
        _wire(app, settings, http, llm)
        try:
            yield
        finally:
            if http_client is None:
                await http.aclose()
            if llm_client is None and llm is not None:
                await llm.close()

    app = FastAPI(
        title="VibeStream API",
        version="1.0.0",
        description="Mood-to-playlist generation backed by OpenAI and the Spotify Web API.",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(playlist_router)
    app.include_router(spotify_router)
    return app


app = create_app()
