# vibestream/schemas.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ----------------------------------
# Pipeline data
# ----------------------------------
class SongCandidate(BaseModel):
    artist: str = Field(min_length=1)
    track: str = Field(min_length=1)


class ResolvedTrack(BaseModel):
    id: str
    uri: str
    name: str
    artist: str
    preview_url: Optional[str] = None
    external_url: str


class GeneratedPlaylist(BaseModel):
    vibe: str
    tracks: List[ResolvedTrack] = []


class ServiceCredential(BaseModel):
    token: str
    expires_at: float  # epoch seconds


class UserCredential(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int


class PlaylistCreationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    playlist_id: str = Field(alias="playlistId")
    playlist_url: Optional[str] = Field(default=None, alias="playlistUrl")


# ----------------------------------
# HTTP bodies
# ----------------------------------
class GeneratePlaylistRequest(BaseModel):
    vibe: str


class GeneratePlaylistResponse(BaseModel):
    vibe: str
    playlist: List[ResolvedTrack]


class AuthUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auth_url: str = Field(alias="authUrl")


class CallbackRequest(BaseModel):
    code: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class CreatePlaylistRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken", min_length=1)
    vibe: str
    track_uris: List[str] = Field(default_factory=list, alias="trackUris")


class ErrorResponse(BaseModel):
    error: str
