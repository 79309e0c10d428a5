from fastapi import APIRouter, Depends, status

from soundnest.core.security import Principal
from soundnest.dependencies import get_current_principal, get_data_client
from soundnest.schemas.playlists import (
    PlaylistCreate,
    PlaylistDetailResponse,
    PlaylistItemCreate,
    PlaylistItemResponse,
    PlaylistListResponse,
    PlaylistResponse,
    PlaylistUpdate,
)
from soundnest.services import playlists
from soundnest.services.supabase.client import DataClient

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.post(
    "", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED
)
async def create_playlist(
    data: PlaylistCreate,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Create a playlist owned by the current user."""
    playlist = await playlists.create_playlist(client, principal, data)
    return {"playlist": playlist, "message": "Playlist created successfully"}


@router.get("", response_model=PlaylistListResponse)
async def list_playlists(
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """List the current user's playlists, newest first."""
    return {"playlists": await playlists.list_playlists(client, principal)}


@router.get("/{playlist_id}", response_model=PlaylistDetailResponse)
async def get_playlist(
    playlist_id: str,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Get a playlist with its items, most recently added first."""
    return await playlists.get_playlist_with_items(client, principal, playlist_id)


@router.patch("/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: str,
    data: PlaylistUpdate,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Update description and/or visibility of an owned playlist."""
    playlist = await playlists.update_playlist(client, principal, playlist_id, data)
    return {"playlist": playlist, "message": "Playlist updated successfully"}


@router.post(
    "/{playlist_id}/items",
    response_model=PlaylistItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_playlist_item(
    playlist_id: str,
    data: PlaylistItemCreate,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Add a track to an owned playlist. Adding the same track twice returns 409."""
    item = await playlists.add_track_to_playlist(client, principal, playlist_id, data)
    return {"playlist_item": item, "message": "Track added to playlist successfully"}
