# vibestream/routes/deps.py
# Request-scoped access to the components built in the app lifespan.
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from vibestream.auth import UserAuthorizationFlow
from vibestream.orchestrator import PlaylistOrchestrator
from vibestream.spotify import PlaylistPersister


def get_orchestrator(request: Request) -> PlaylistOrchestrator:
    return request.app.state.orchestrator


def get_auth_flow(request: Request) -> UserAuthorizationFlow:
    return request.app.state.auth_flow


def get_persister(request: Request) -> PlaylistPersister:
    return request.app.state.persister


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    # details stay in the server log; the client only gets a short message
    return JSONResponse(status_code=status_code, content={"error": message})
