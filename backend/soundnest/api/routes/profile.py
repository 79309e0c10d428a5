from fastapi import APIRouter, Depends

from soundnest.core.security import Principal
from soundnest.dependencies import get_current_principal, get_data_client
from soundnest.schemas.profile import Profile, ProfileUpdate
from soundnest.services import profiles
from soundnest.services.supabase.client import DataClient

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Get the current user's profile."""
    profile = await profiles.get_profile(client, principal)
    return {"profile": Profile(**profile)}


@router.put("")
@router.patch("")
async def update_profile(
    data: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    client: DataClient = Depends(get_data_client),
):
    """Update username and/or display name. Unsupplied fields are kept."""
    profile = await profiles.update_profile(client, principal, data)
    return {"profile": Profile(**profile), "message": "Profile updated successfully"}
