"""
Bearer token verification.

Tokens are issued by the hosted identity provider. When the provider's
JWT secret is configured they are verified locally with python-jose;
otherwise the provider is asked to resolve the token to its user.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from soundnest.core import config
from soundnest.core.errors import InvalidCredential, MissingCredential
from soundnest.services.supabase.auth import AuthService

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
AUDIENCE = "authenticated"


@dataclass(frozen=True)
class Principal:
    """The verified identity behind one request."""

    id: str
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def email(self) -> Optional[str]:
        return self.claims.get("email")

    @property
    def username(self) -> Optional[str]:
        metadata = self.claims.get("user_metadata") or {}
        return metadata.get("username")


def decode_access_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Decode and verify a provider-issued access token.

    Raises:
        InvalidCredential: If the signature, expiry or audience is wrong.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise InvalidCredential(details="Token verification failed. Please login again.")

    if not payload.get("sub"):
        raise InvalidCredential(details="Token has no subject")
    return payload


async def verify_token(token: Optional[str]) -> Principal:
    """
    Resolve a bearer token into a Principal.

    Never returns a partial principal: any failure raises.
    """
    if not token:
        raise MissingCredential(
            details="Please provide a valid JWT token in the Authorization header"
        )

    if config.SUPABASE_JWT_SECRET:
        payload = decode_access_token(token, config.SUPABASE_JWT_SECRET)
        return Principal(id=str(payload["sub"]), claims=payload)

    user = await AuthService.get_user(token)
    return Principal(id=str(user["id"]), claims=user)
