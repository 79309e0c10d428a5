"""
Authentication routes: registration, password login and token refresh.
"""

import logging

from fastapi import APIRouter

from soundnest.core.errors import AppError
from soundnest.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from soundnest.services.profiles import ensure_profile
from soundnest.services.supabase.auth import AuthService
from soundnest.services.supabase.client import DataError, create_scoped_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _ensure_profile_for_session(session, username=None):
    """Create the profile as the new user, so row-level policies see its id."""
    client = create_scoped_client(session.access_token)
    user = session.user
    metadata = user.get("user_metadata") or {}
    return await ensure_profile(
        client,
        user_id=str(user["id"]),
        email=user.get("email"),
        username=username or metadata.get("username"),
    )


@router.post("/register", response_model=AuthResponse, response_model_exclude_none=True)
async def register(data: RegisterRequest):
    """
    Create an account and its profile.

    When the provider requires email confirmation no session is issued and
    the profile is created on first login instead.
    """
    result = await AuthService.sign_up(data.email, data.password, data.username)

    if result.session is None:
        return AuthResponse(
            user=result.user,
            message="Registration successful. Please check your email to confirm "
            "your account. Profile will be created upon first login.",
        )

    session = result.session
    try:
        profile, created = await _ensure_profile_for_session(session, data.username)
    except (AppError, DataError) as e:
        logger.error(f"Profile creation failed for user {result.user.get('id')}: {e}")
        return AuthResponse(
            user=result.user,
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            message="Registration successful but profile creation pending. "
            "Please contact support if issues persist.",
        )

    return AuthResponse(
        user=result.user,
        profile=profile,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        message="Registration successful. Profile created."
        if created
        else "Registration successful. Existing profile found.",
    )


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
async def login(data: LoginRequest):
    """Sign in with email and password."""
    session = await AuthService.sign_in_with_password(data.email, data.password)

    profile = None
    try:
        profile, created = await _ensure_profile_for_session(session)
        if created:
            logger.info(f"Profile created at first login for user {session.user.get('id')}")
    except (AppError, DataError) as e:
        logger.warning(f"Could not ensure profile at login: {e}")

    return AuthResponse(
        user=session.user,
        profile=profile,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post("/refresh", response_model=AuthResponse, response_model_exclude_none=True)
async def refresh(data: RefreshRequest):
    """Exchange a refresh token for a new access token."""
    session = await AuthService.refresh_session(data.refresh_token)
    return AuthResponse(
        user=session.user,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )
