from fastapi import APIRouter, Depends, Response, status

from soundnest.core.security import Principal
from soundnest.dependencies import get_current_principal, get_data_client
from soundnest.schemas.favorites import (
    FavoriteCreate,
    FavoriteListResponse,
    FavoriteResponse,
)
from soundnest.services import favorites
from soundnest.services.supabase.client import DataClient

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.post(
    "",
    response_model=FavoriteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Track was already in favorites"}},
)
async def add_favorite(
    data: FavoriteCreate,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Favorite a track. Repeating the call returns the existing favorite with 200."""
    favorite, created = await favorites.add_favorite(client, principal, data)
    if not created:
        response.status_code = status.HTTP_200_OK
        return {"favorite": favorite, "message": "Track is already in favorites"}
    return {"favorite": favorite, "message": "Track added to favorites successfully"}


@router.get("", response_model=FavoriteListResponse)
async def list_favorites(
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """List the current user's favorites with track details."""
    return {"favorites": await favorites.list_favorites(client, principal)}


@router.delete("/{track_id}")
async def remove_favorite(
    track_id: str,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Remove a track from the current user's favorites."""
    await favorites.remove_favorite(client, principal, track_id)
    return {"message": "Track removed from favorites successfully"}
