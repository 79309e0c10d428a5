import logging
from typing import Any, Dict, Optional

import httpx

from soundnest.core import config
from soundnest.core.errors import InvalidCredential, UpstreamAuthError
from soundnest.schemas.auth import AuthSession, SignUpResult

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT_SECONDS)


def _headers(access_token: Optional[str] = None) -> Dict[str, str]:
    headers = {"apikey": config.SUPABASE_KEY, "Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or "Request failed"
    if not isinstance(payload, dict):
        return "Request failed"
    return (
        payload.get("error_description")
        or payload.get("msg")
        or payload.get("message")
        or payload.get("error")
        or "Request failed"
    )


class AuthService:
    """Service for the identity provider's password and token flows."""

    @staticmethod
    async def sign_up(
        email: str, password: str, username: Optional[str] = None
    ) -> SignUpResult:
        """Create an account. The session is absent when email confirmation is on."""
        payload = {
            "email": email,
            "password": password,
            "data": {"username": username},
        }
        async with _client() as client:
            response = await client.post(
                f"{config.SUPABASE_URL}{AUTH_PATH}/signup",
                headers=_headers(),
                json=payload,
            )
        if response.is_error:
            raise UpstreamAuthError(
                _error_message(response),
                details="Failed to create authentication account",
            )

        data = response.json()
        if data.get("access_token"):
            session = AuthSession(**data)
            return SignUpResult(user=session.user, session=session)
        if not data.get("id"):
            raise UpstreamAuthError(
                "Registration failed", details="User account was not created"
            )
        return SignUpResult(user=data)

    @staticmethod
    async def sign_in_with_password(email: str, password: str) -> AuthSession:
        """Exchange email and password for a session."""
        async with _client() as client:
            response = await client.post(
                f"{config.SUPABASE_URL}{AUTH_PATH}/token",
                params={"grant_type": "password"},
                headers=_headers(),
                json={"email": email, "password": password},
            )
        if response.is_error:
            raise UpstreamAuthError(_error_message(response))
        return AuthSession(**response.json())

    @staticmethod
    async def refresh_session(refresh_token: str) -> AuthSession:
        """Exchange a refresh token for a new session."""
        async with _client() as client:
            response = await client.post(
                f"{config.SUPABASE_URL}{AUTH_PATH}/token",
                params={"grant_type": "refresh_token"},
                headers=_headers(),
                json={"refresh_token": refresh_token},
            )
        if response.is_error:
            raise UpstreamAuthError(_error_message(response))
        return AuthSession(**response.json())

    @staticmethod
    async def get_user(access_token: str) -> Dict[str, Any]:
        """Resolve an access token to its user, failing on any rejection."""
        async with _client() as client:
            response = await client.get(
                f"{config.SUPABASE_URL}{AUTH_PATH}/user",
                headers=_headers(access_token),
            )
        if response.status_code in (400, 401, 403, 404) or (
            response.is_success and not response.json().get("id")
        ):
            logger.warning(f"Token rejected by identity provider: {response.status_code}")
            raise InvalidCredential(details="Token verification failed. Please login again.")
        # Provider outages surface as unexpected errors, never as a partial principal
        response.raise_for_status()
        return response.json()
