"""
Lazy track creation.

Tracks are created the first time something references them and are
never updated afterwards. Favorites key the lookup on the caller-supplied
internal id; playlist items key it on the catalogue id and let the
database mint the internal id.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

from soundnest.core.errors import ConflictError
from soundnest.schemas.tracks import build_track_row, track_columns
from soundnest.services.supabase.client import DataClient, DataError, Found

logger = logging.getLogger(__name__)

TRACKS_TABLE = "tracks"


async def _insert_track(
    client: DataClient, row: Dict[str, Any], lookup: Dict[str, Any]
) -> Dict[str, Any]:
    try:
        return await client.insert(TRACKS_TABLE, row, columns="id")
    except DataError as e:
        if not e.is_unique_violation:
            raise
        logger.info(f"Concurrent track insert detected for {lookup}")
        existing = await client.select_one(TRACKS_TABLE, "id", eq=lookup)
        if isinstance(existing, Found):
            return existing.row
        # The unique key that fired is not the one we looked up by
        raise ConflictError(
            "Track identity conflict",
            details="The catalogue id already belongs to a different track.",
        )


async def ensure_track_by_id(
    client: DataClient, data: Mapping[str, Any], omit: Iterable[str] = ()
) -> Dict[str, Any]:
    """Return the track with ``data["id"]``, creating it from ``data`` if absent."""
    lookup = {"id": data["id"]}
    existing = await client.select_one(TRACKS_TABLE, "id", eq=lookup)
    if isinstance(existing, Found):
        return existing.row

    logger.info(f"Track {data['id']} not found, creating it")
    track = await _insert_track(client, build_track_row(data, omit=omit), lookup)
    logger.info(f"Track {track['id']} created successfully")
    return track


async def resolve_track_by_external_id(
    client: DataClient, data: Mapping[str, Any], omit: Iterable[str] = ()
) -> Dict[str, Any]:
    """Return the track with ``data["external_track_id"]``, creating it if absent."""
    lookup = {"external_track_id": data["external_track_id"]}
    existing = await client.select_one(TRACKS_TABLE, "id", eq=lookup)
    if isinstance(existing, Found):
        return existing.row

    # Never let the caller choose the primary key on this path
    row = build_track_row(data, omit=set(omit) | {"id"})
    track = await _insert_track(client, row, lookup)
    logger.info(f"Track {track['id']} created for catalogue id {lookup['external_track_id']}")
    return track


async def fetch_tracks(
    client: DataClient, track_ids: Iterable[str], omit: Iterable[str] = ()
) -> Dict[str, Dict[str, Any]]:
    """Load tracks by internal id, keyed by id."""
    ids: List[str] = list(dict.fromkeys(str(track_id) for track_id in track_ids))
    if not ids:
        return {}
    rows = await client.select(TRACKS_TABLE, track_columns(omit), in_={"id": ids})
    return {str(row["id"]): row for row in rows}
