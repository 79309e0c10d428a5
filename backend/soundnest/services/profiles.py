import logging
import time
from typing import Any, Dict, Optional, Tuple

from soundnest.core.errors import ConflictError, NotFoundError
from soundnest.core.security import Principal
from soundnest.schemas.profile import ProfileUpdate
from soundnest.services.supabase.client import DataClient, DataError, Found
from soundnest.utils.datetime_helper import utc_now_iso

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


def profile_not_found() -> NotFoundError:
    return NotFoundError(
        "Profile not found", details="Profile record does not exist for this user"
    )


def default_username(user_id: str, email: Optional[str]) -> str:
    local_part = (email or "user").split("@")[0]
    return f"{local_part}_{user_id[:8]}"


async def get_profile(client: DataClient, principal: Principal) -> Dict[str, Any]:
    result = await client.select_one(PROFILES_TABLE, eq={"user_id": principal.id})
    if isinstance(result, Found):
        return result.row
    raise profile_not_found()


async def update_profile(
    client: DataClient, principal: Principal, changes: ProfileUpdate
) -> Dict[str, Any]:
    """Apply only the supplied fields to the caller's profile."""
    patch = changes.model_dump(exclude_none=True)
    patch["updated_at"] = utc_now_iso()

    try:
        rows = await client.update(
            PROFILES_TABLE, patch, eq={"user_id": principal.id}
        )
    except DataError as e:
        if e.is_unique_violation and e.mentions("username"):
            raise ConflictError(
                "Username already taken", details="Please choose a different username"
            )
        raise

    if not rows:
        raise profile_not_found()
    return rows[0]


async def ensure_profile(
    client: DataClient,
    user_id: str,
    email: Optional[str],
    username: Optional[str] = None,
) -> Tuple[Dict[str, Any], bool]:
    """
    Create the profile for ``user_id`` unless it already exists.

    Returns:
        Tuple of (profile, created)
    """
    existing = await client.select_one(PROFILES_TABLE, eq={"user_id": user_id})
    if isinstance(existing, Found):
        return existing.row, False

    row = {
        "user_id": user_id,
        "username": username or default_username(user_id, email),
        "display_name": username or None,
        "avatar_url": None,
    }
    try:
        return await client.insert(PROFILES_TABLE, row), True
    except DataError as e:
        if not e.is_unique_violation:
            raise
        if e.mentions("username"):
            row["username"] = f"{row['username']}_{int(time.time() * 1000)}"
            logger.info(f"Username taken, retrying profile creation as {row['username']}")
            return await client.insert(PROFILES_TABLE, row), True

    # Another request created this user's profile first
    existing = await client.select_one(PROFILES_TABLE, eq={"user_id": user_id})
    if isinstance(existing, Found):
        return existing.row, False
    raise profile_not_found()
