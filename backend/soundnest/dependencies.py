"""
Dependency injection functions for the API.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from soundnest.core.errors import MissingCredential
from soundnest.core.security import Principal, verify_token
from soundnest.services.supabase.client import DataClient, create_scoped_client

# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="auth/login",
    auto_error=False,  # Missing tokens are reported through MissingCredential
)


async def get_token(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """Extract the bearer token from the Authorization header."""
    if not token:
        raise MissingCredential(
            details="Please provide a valid JWT token in the Authorization header"
        )
    return token


async def get_current_principal(token: str = Depends(get_token)) -> Principal:
    """Verify the bearer token and return the identity behind it."""
    return await verify_token(token)


async def get_data_client(
    token: str = Depends(get_token),
    principal: Principal = Depends(get_current_principal),
) -> DataClient:
    """
    Build the data client for this request.

    The client is created only after the token has been verified and acts
    as that principal; it is never shared with another request.
    """
    return create_scoped_client(token)
