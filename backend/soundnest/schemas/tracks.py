from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import BaseModel

# The only columns a caller may ever set on a track
TRACK_FIELDS = (
    "id",
    "title",
    "artist_name",
    "duration_seconds",
    "external_track_id",
    "external_stream_url",
)

OPTIONAL_TRACK_COLUMNS = ("artist_name",)


def track_columns(omit: Iterable[str] = ()) -> str:
    """Column list for selecting tracks, minus any columns known to be missing."""
    skipped = set(omit)
    return ",".join(name for name in TRACK_FIELDS if name not in skipped)


def build_track_row(
    data: Mapping[str, Any], omit: Iterable[str] = ()
) -> Dict[str, Any]:
    """Copy only allow-listed track fields out of ``data``, dropping the rest."""
    skipped = set(omit)
    return {
        name: data[name]
        for name in TRACK_FIELDS
        if name in data and name not in skipped
    }


class Track(BaseModel):
    id: str
    title: str
    artist_name: Optional[str] = None
    duration_seconds: Optional[int] = None
    external_track_id: Optional[str] = None
    external_stream_url: Optional[str] = None
