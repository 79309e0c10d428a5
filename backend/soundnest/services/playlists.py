"""
Playlist operations, all executed through the caller's scoped client.

Ownership is checked here in addition to the database's row-level
policies.
"""

import logging
from typing import Any, Dict, List

from soundnest.core.errors import NotFoundError, PermissionDenied
from soundnest.core.security import Principal
from soundnest.schemas.playlists import (
    PlaylistCreate,
    PlaylistItemCreate,
    PlaylistUpdate,
)
from soundnest.services.collections import Junction, OnDuplicate, add_member
from soundnest.services.profiles import PROFILES_TABLE
from soundnest.services.schema import ensure_schema
from soundnest.services.supabase.client import DataClient, DataError, NotFound
from soundnest.services.tracks import fetch_tracks, resolve_track_by_external_id
from soundnest.utils.validation import require_uuid

logger = logging.getLogger(__name__)

PLAYLISTS_TABLE = "playlists"
PLAYLIST_COLUMNS = "id,name,description,is_public,created_at,updated_at"

PLAYLIST_ITEMS = Junction(
    table="playlist_items",
    columns="id,playlist_id,track_id,added_at",
    on_duplicate=OnDuplicate.CONFLICT,
    conflict_message="Track already in playlist",
    conflict_details="This track has already been added to this playlist.",
)


def _playlist_not_found() -> NotFoundError:
    return NotFoundError(
        "Playlist not found",
        details="The specified playlist does not exist or you do not have access to it.",
    )


async def _fetch_playlist(
    client: DataClient, playlist_id: str, columns: str
) -> Dict[str, Any]:
    result = await client.select_one(PLAYLISTS_TABLE, columns, eq={"id": playlist_id})
    if isinstance(result, NotFound):
        raise _playlist_not_found()
    return result.row


async def _fetch_owned_playlist(
    client: DataClient, principal: Principal, playlist_id: str
) -> Dict[str, Any]:
    playlist = await _fetch_playlist(client, playlist_id, "id,owner_id")
    if playlist["owner_id"] != principal.id:
        raise PermissionDenied(
            details="You do not have permission to modify this playlist."
        )
    return playlist


def _public_view(playlist: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in playlist.items() if key != "owner_id"}


async def create_playlist(
    client: DataClient, principal: Principal, data: PlaylistCreate
) -> Dict[str, Any]:
    profile = await client.select_one(
        PROFILES_TABLE, "user_id", eq={"user_id": principal.id}
    )
    if isinstance(profile, NotFound):
        raise NotFoundError(
            "User profile not found",
            details="Profile must exist before creating playlists.",
        )

    row = {
        "owner_id": principal.id,
        "name": data.name,
        "description": data.description.strip() if data.description is not None else "",
        "is_public": data.is_public if data.is_public is not None else True,
    }
    try:
        return await client.insert(PLAYLISTS_TABLE, row, columns=PLAYLIST_COLUMNS)
    except DataError as e:
        if e.is_permission_error:
            raise PermissionDenied(
                details="Row-level security policy violation. The owner_id must "
                "match your authenticated user ID.",
                hint="The authentication token is not reaching the database.",
            )
        raise


async def list_playlists(
    client: DataClient, principal: Principal
) -> List[Dict[str, Any]]:
    return await client.select(
        PLAYLISTS_TABLE,
        PLAYLIST_COLUMNS,
        eq={"owner_id": principal.id},
        order="created_at",
        descending=True,
    )


async def _list_items(client: DataClient, playlist_id: str) -> List[Dict[str, Any]]:
    rows = await client.select(
        PLAYLIST_ITEMS.table,
        "id,added_at,track_id",
        eq={"playlist_id": playlist_id},
        order="added_at",
        descending=True,
    )
    tracks = await fetch_tracks(client, (row["track_id"] for row in rows))
    return [
        {
            "id": row["id"],
            "added_at": row["added_at"],
            "track": tracks.get(str(row["track_id"])),
        }
        for row in rows
    ]


async def get_playlist_with_items(
    client: DataClient, principal: Principal, playlist_id: str
) -> Dict[str, Any]:
    """Return a playlist and its items, most recently added first."""
    playlist_id = require_uuid(playlist_id, "Invalid playlist ID format")
    playlist = await _fetch_playlist(
        client, playlist_id, f"{PLAYLIST_COLUMNS},owner_id"
    )

    # Public playlists are readable by anyone; private ones only by the owner
    if not playlist["is_public"] and playlist["owner_id"] != principal.id:
        raise PermissionDenied(
            details="You do not have permission to view this private playlist."
        )

    return {
        "playlist": _public_view(playlist),
        "items": await _list_items(client, playlist_id),
    }


async def update_playlist(
    client: DataClient, principal: Principal, playlist_id: str, data: PlaylistUpdate
) -> Dict[str, Any]:
    playlist_id = require_uuid(playlist_id, "Invalid playlist ID format")
    await _fetch_owned_playlist(client, principal, playlist_id)

    rows = await client.update(
        PLAYLISTS_TABLE, data.changes(), eq={"id": playlist_id}, columns=PLAYLIST_COLUMNS
    )
    if not rows:
        raise _playlist_not_found()
    return rows[0]


async def add_track_to_playlist(
    client: DataClient, principal: Principal, playlist_id: str, data: PlaylistItemCreate
) -> Dict[str, Any]:
    """
    Add a catalogue track to one of the caller's playlists.

    The track row is created on first use. Adding a track that is already
    in the playlist raises ConflictError.
    """
    playlist_id = require_uuid(playlist_id, "Invalid playlist ID format")
    report = await ensure_schema(client)
    await _fetch_owned_playlist(client, principal, playlist_id)

    track = await resolve_track_by_external_id(
        client, data.model_dump(), omit=report.missing_columns
    )
    item, _ = await add_member(
        client,
        PLAYLIST_ITEMS,
        {"playlist_id": playlist_id, "track_id": track["id"]},
    )

    tracks = await fetch_tracks(client, [track["id"]], omit=report.missing_columns)
    return {
        "id": item["id"],
        "playlist_id": item.get("playlist_id", playlist_id),
        "added_at": item.get("added_at"),
        "track": tracks.get(str(track["id"])),
    }
