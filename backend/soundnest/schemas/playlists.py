"""
Playlist schema models using Pydantic.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from soundnest.schemas.tracks import Track

PLAYLIST_NAME_MAX_LENGTH = 100


class PlaylistCreate(BaseModel):
    name: StrictStr
    description: Optional[StrictStr] = None
    is_public: Optional[StrictBool] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        if len(value) > PLAYLIST_NAME_MAX_LENGTH:
            raise ValueError(
                f"Playlist name must be {PLAYLIST_NAME_MAX_LENGTH} characters or less"
            )
        value = value.strip()
        if not value:
            raise ValueError("Playlist name is required and must be a non-empty string")
        return value


class PlaylistUpdate(BaseModel):
    """Partial update. Only the supplied fields are written."""

    description: Optional[StrictStr] = None
    is_public: Optional[StrictBool] = None

    @model_validator(mode="after")
    def check_supplied_fields(self) -> "PlaylistUpdate":
        supplied = self.model_fields_set & {"description", "is_public"}
        if not supplied:
            raise ValueError(
                "At least one field (description or is_public) must be provided"
            )
        for name in supplied:
            if getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(include={"description", "is_public"}, exclude_unset=True)


class PlaylistItemCreate(BaseModel):
    """Track to add to a playlist, keyed by its catalogue identity."""

    title: StrictStr
    external_track_id: StrictStr = Field(min_length=1)
    external_stream_url: StrictStr = Field(min_length=1)
    duration_seconds: Optional[StrictInt] = Field(default=None, ge=0)
    artist_name: Optional[StrictStr] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Track title is required and must be a non-empty string")
        return value


class Playlist(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlaylistItem(BaseModel):
    id: Union[int, str]
    playlist_id: Optional[str] = None
    added_at: Optional[datetime] = None
    track: Optional[Track] = None


class PlaylistResponse(BaseModel):
    playlist: Playlist
    message: Optional[str] = None


class PlaylistListResponse(BaseModel):
    playlists: List[Playlist]


class PlaylistDetailResponse(BaseModel):
    playlist: Playlist
    items: List[PlaylistItem]


class PlaylistItemResponse(BaseModel):
    playlist_item: PlaylistItem
    message: Optional[str] = None
