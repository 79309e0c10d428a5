"""
User-scoped client for the provider's REST data API.

Every request carries the caller's own bearer token so that row-level
security policies are evaluated as that user. There is deliberately no
module-level instance: a client is built per request through
``create_scoped_client`` and dropped when the request ends.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from soundnest.core import config

REST_PATH = "/rest/v1"

# Postgres / PostgREST error codes the service reacts to
UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"
UNDEFINED_TABLE = "42P01"
UNDEFINED_COLUMN = "42703"
SCHEMA_CACHE_MISSING_TABLE = "PGRST205"
SCHEMA_CACHE_MISSING_COLUMN = "PGRST204"


class DataError(Exception):
    """Error reported by the data API."""

    def __init__(
        self,
        code: Optional[str],
        message: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.hint = hint
        super().__init__(f"[{code}] {message}")

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    @property
    def is_missing_table(self) -> bool:
        return self.code in (UNDEFINED_TABLE, SCHEMA_CACHE_MISSING_TABLE)

    @property
    def is_missing_column(self) -> bool:
        return self.code in (UNDEFINED_COLUMN, SCHEMA_CACHE_MISSING_COLUMN)

    @property
    def is_permission_error(self) -> bool:
        return self.code == INSUFFICIENT_PRIVILEGE or "row-level security" in (
            self.message or ""
        )

    def mentions(self, text: str) -> bool:
        return any(text in (part or "") for part in (self.message, self.details))


@dataclass(frozen=True)
class Found:
    """A single-row lookup that matched."""

    row: Dict[str, Any]


@dataclass(frozen=True)
class NotFound:
    """A single-row lookup that matched nothing."""

    filters: Dict[str, Any] = field(default_factory=dict)


LookupResult = Union[Found, NotFound]


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _filter_params(
    eq: Optional[Mapping[str, Any]] = None,
    in_: Optional[Mapping[str, Iterable[Any]]] = None,
) -> List[tuple]:
    params = []
    for column, value in (eq or {}).items():
        operator = "is" if value is None else "eq"
        params.append((column, f"{operator}.{_encode_value(value)}"))
    for column, values in (in_ or {}).items():
        joined = ",".join(f'"{_encode_value(v)}"' for v in values)
        params.append((column, f"in.({joined})"))
    return params


class DataClient:
    """Client for the REST data API acting as one authenticated user."""

    def __init__(
        self,
        access_token: str,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        if not access_token:
            raise ValueError("A scoped data client requires an access token")
        self.access_token = access_token
        self.base_url = (base_url or config.SUPABASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else config.SUPABASE_KEY
        self.timeout = timeout or config.REQUEST_TIMEOUT_SECONDS
        self._transport = transport

    @classmethod
    def for_token(cls, access_token: str, **kwargs) -> "DataClient":
        """Create a client whose queries run as the owner of ``access_token``."""
        return cls(access_token=access_token, **kwargs)

    async def _request(
        self,
        method: str,
        table: str,
        params: List[tuple] = None,
        json: Any = None,
        headers: Dict[str, str] = None,
    ) -> List[Dict[str, Any]]:
        """Send a request to the data API and return the decoded rows."""
        url = f"{self.base_url}{REST_PATH}/{table}"

        default_headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if headers:
            default_headers.update(headers)

        async with httpx.AsyncClient(
            transport=self._transport, timeout=self.timeout
        ) as client:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=default_headers,
            )

        if response.is_error:
            raise self._error_from_response(response)

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    @staticmethod
    def _error_from_response(response: httpx.Response) -> DataError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return DataError(
            code=payload.get("code"),
            message=payload.get("message") or response.reason_phrase or "Request failed",
            status_code=response.status_code,
            details=payload.get("details"),
            hint=payload.get("hint"),
        )

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        eq: Mapping[str, Any] = None,
        in_: Mapping[str, Iterable[Any]] = None,
        order: str = None,
        descending: bool = False,
        limit: int = None,
    ) -> List[Dict[str, Any]]:
        """Fetch rows matching every filter."""
        params = [("select", columns)] + _filter_params(eq, in_)
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("GET", table, params=params)

    async def select_one(
        self, table: str, columns: str = "*", *, eq: Mapping[str, Any]
    ) -> LookupResult:
        """Fetch at most one row matching ``eq``."""
        rows = await self.select(table, columns, eq=eq, limit=1)
        if rows:
            return Found(rows[0])
        return NotFound(dict(eq))

    async def insert(
        self, table: str, row: Mapping[str, Any], columns: str = "*"
    ) -> Dict[str, Any]:
        """Insert one row and return it as stored."""
        rows = await self._request(
            "POST",
            table,
            params=[("select", columns)],
            json=[dict(row)],
            headers={"Prefer": "return=representation"},
        )
        return rows[0] if rows else dict(row)

    async def update(
        self,
        table: str,
        patch: Mapping[str, Any],
        *,
        eq: Mapping[str, Any],
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Apply ``patch`` to matching rows and return the updated rows."""
        return await self._request(
            "PATCH",
            table,
            params=[("select", columns)] + _filter_params(eq),
            json=dict(patch),
            headers={"Prefer": "return=representation"},
        )

    async def delete(
        self, table: str, *, eq: Mapping[str, Any], columns: str = "*"
    ) -> List[Dict[str, Any]]:
        """Delete matching rows and return what was deleted."""
        return await self._request(
            "DELETE",
            table,
            params=[("select", columns)] + _filter_params(eq),
            headers={"Prefer": "return=representation"},
        )


def create_scoped_client(access_token: str) -> DataClient:
    """Build a fresh data client acting as the owner of ``access_token``."""
    return DataClient.for_token(access_token)
