from datetime import datetime
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_validator,
)

from soundnest.schemas.tracks import Track
from soundnest.utils.validation import is_uuid

DEFAULT_TRACK_TITLE = "Untitled Track"


class FavoriteCreate(BaseModel):
    """
    Favorite a track by its internal id.

    When the track is not known yet it is created from the optional
    metadata; unknown fields in the body are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    track_id: StrictStr
    title: Optional[StrictStr] = None
    artist_name: Optional[StrictStr] = Field(
        default=None, validation_alias=AliasChoices("artist_name", "artist")
    )
    duration_seconds: Optional[StrictInt] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("duration_seconds", "duration"),
    )
    external_track_id: Optional[StrictStr] = None
    external_stream_url: Optional[StrictStr] = None

    @field_validator("track_id")
    @classmethod
    def check_track_id(cls, value: str) -> str:
        if not is_uuid(value):
            raise ValueError("Valid track_id (UUID) is required")
        return value.lower()

    def track_data(self) -> dict:
        data = self.model_dump()
        data["id"] = data.pop("track_id")
        data["title"] = (self.title or "").strip() or DEFAULT_TRACK_TITLE
        return data


class FavoriteRecord(BaseModel):
    user_id: str
    track_id: str
    created_at: Optional[datetime] = None


class Favorite(BaseModel):
    track_id: str
    created_at: Optional[datetime] = None
    track: Optional[Track] = None


class FavoriteResponse(BaseModel):
    favorite: FavoriteRecord
    message: str


class FavoriteListResponse(BaseModel):
    favorites: List[Favorite]
