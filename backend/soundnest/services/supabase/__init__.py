"""
Thin httpx clients for the hosted Postgres/auth provider.

``AuthService`` talks to the identity endpoints; ``DataClient`` talks to
the REST data endpoints and is always scoped to one caller's token.
"""

from soundnest.services.supabase.auth import AuthService, AuthSession
from soundnest.services.supabase.client import (
    DataClient,
    DataError,
    Found,
    NotFound,
    create_scoped_client,
)

__all__ = [
    "AuthService",
    "AuthSession",
    "DataClient",
    "DataError",
    "Found",
    "NotFound",
    "create_scoped_client",
]
