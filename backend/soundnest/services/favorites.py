import logging
from typing import Any, Dict, List, Tuple

from soundnest.core.errors import NotFoundError
from soundnest.core.security import Principal
from soundnest.schemas.favorites import FavoriteCreate
from soundnest.services.collections import Junction, OnDuplicate, add_member
from soundnest.services.schema import ensure_schema
from soundnest.services.supabase.client import DataClient
from soundnest.services.tracks import ensure_track_by_id, fetch_tracks
from soundnest.utils.validation import require_uuid

logger = logging.getLogger(__name__)

FAVORITES = Junction(
    table="favorites",
    columns="user_id,track_id,created_at",
    on_duplicate=OnDuplicate.RETURN_EXISTING,
)


async def add_favorite(
    client: DataClient, principal: Principal, data: FavoriteCreate
) -> Tuple[Dict[str, Any], bool]:
    """
    Favorite a track, creating the track first when it is unknown.

    Favoriting twice is not an error: the existing row is returned with
    ``created`` set to False.
    """
    report = await ensure_schema(client)
    track = await ensure_track_by_id(
        client, data.track_data(), omit=report.missing_columns
    )
    return await add_member(
        client, FAVORITES, {"user_id": principal.id, "track_id": track["id"]}
    )


async def list_favorites(
    client: DataClient, principal: Principal
) -> List[Dict[str, Any]]:
    """Return the caller's favorites, most recent first."""
    rows = await client.select(
        FAVORITES.table,
        "track_id,created_at",
        eq={"user_id": principal.id},
        order="created_at",
        descending=True,
    )
    tracks = await fetch_tracks(client, (row["track_id"] for row in rows))
    return [
        {
            "track_id": row["track_id"],
            "created_at": row["created_at"],
            "track": tracks.get(str(row["track_id"])),
        }
        for row in rows
    ]


async def remove_favorite(
    client: DataClient, principal: Principal, track_id: str
) -> None:
    track_id = require_uuid(track_id, "Invalid track ID format")
    deleted = await client.delete(
        FAVORITES.table, eq={"user_id": principal.id, "track_id": track_id}
    )
    if not deleted:
        raise NotFoundError(
            "Favorite not found", details="This track is not in your favorites."
        )
    logger.info(f"Track {track_id} removed from favorites for user {principal.id}")
