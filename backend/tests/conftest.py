"""
Test configuration and fixtures for pytest.

Route tests run against ``InMemoryDatabase``, a small stand-in for the
hosted data API that enforces the same unique keys, row-level visibility
rules and error codes the real schema does.
"""

import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

os.environ.pop("SUPABASE_JWT_SECRET", None)

from soundnest.core.errors import InvalidCredential  # noqa: E402
from soundnest.core.security import Principal  # noqa: E402
from soundnest.dependencies import (  # noqa: E402
    get_current_principal,
    get_data_client,
    get_token,
)
from soundnest.main import app  # noqa: E402
from soundnest.services.supabase.client import (  # noqa: E402
    DataError,
    Found,
    NotFound,
)

ALICE_ID = "11111111-1111-4111-8111-111111111111"
BOB_ID = "22222222-2222-4222-8222-222222222222"

PRINCIPALS = {
    "alice-token": Principal(id=ALICE_ID, claims={"email": "alice@example.com"}),
    "bob-token": Principal(id=BOB_ID, claims={"email": "bob@example.com"}),
}

TABLES = {
    "profiles": {
        "key": ("user_id",),
        "unique": [("username",)],
        "timestamps": ("created_at", "updated_at"),
        "columns": ("user_id", "username", "display_name", "avatar_url"),
    },
    "tracks": {
        "key": ("id",),
        "unique": [("external_track_id",)],
        "timestamps": ("created_at",),
        "columns": (
            "id",
            "title",
            "artist_name",
            "duration_seconds",
            "external_track_id",
            "external_stream_url",
        ),
    },
    "playlists": {
        "key": ("id",),
        "unique": [],
        "timestamps": ("created_at", "updated_at"),
        "columns": ("id", "owner_id", "name", "description", "is_public"),
    },
    "playlist_items": {
        "key": ("id",),
        "unique": [("playlist_id", "track_id")],
        "timestamps": ("added_at",),
        "columns": ("id", "playlist_id", "track_id"),
    },
    "favorites": {
        "key": ("user_id", "track_id"),
        "unique": [],
        "timestamps": ("created_at",),
        "columns": ("user_id", "track_id"),
    },
}


class InMemoryDatabase:
    """Rows per table plus the rules the real database enforces."""

    def __init__(self):
        self.rows = {name: [] for name in TABLES}
        self.missing_tables = set()
        self.missing_columns = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._serial = 0

    def now(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def next_serial(self) -> int:
        self._serial += 1
        return self._serial

    def seed(self, table, **values):
        row = self._with_defaults(table, values)
        self.rows[table].append(row)
        return dict(row)

    def _with_defaults(self, table, values):
        layout = TABLES[table]
        row = {column: None for column in layout["columns"]}
        row.update(values)
        for column in layout["timestamps"]:
            row.setdefault(column, None)
            if row[column] is None:
                row[column] = self.now()
        if row.get("id") is None and "id" in layout["key"]:
            row["id"] = self.next_serial() if table == "playlist_items" else str(uuid.uuid4())
        if table == "playlists":
            if row["is_public"] is None:
                row["is_public"] = True
            if row["description"] is None:
                row["description"] = ""
        return row

    def all_columns(self, table):
        layout = TABLES[table]
        return layout["columns"] + tuple(
            column for column in layout["timestamps"] if column not in layout["columns"]
        )


class FakeDataClient:
    """Same interface as DataClient, acting as ``user_id`` on InMemoryDatabase."""

    def __init__(self, database: InMemoryDatabase, user_id: str):
        self.database = database
        self.user_id = user_id

    # -- helpers -----------------------------------------------------------

    def _check_table(self, table):
        if table in self.database.missing_tables or table not in TABLES:
            raise DataError("42P01", f'relation "public.{table}" does not exist', 404)

    def _check_columns(self, table, columns):
        known = self.database.all_columns(table)
        missing = self.database.missing_columns.get(table, set())
        for column in columns:
            if column not in known or column in missing:
                raise DataError(
                    "42703", f"column {table}.{column} does not exist", 400
                )

    def _project(self, table, row, columns):
        if columns == "*":
            names = [c for c in self.database.all_columns(table)
                     if c not in self.database.missing_columns.get(table, set())]
        else:
            names = [c.strip() for c in columns.split(",")]
            self._check_columns(table, names)
        return {name: row.get(name) for name in names}

    def _visible(self, table, row):
        if table == "playlists":
            return row["is_public"] or row["owner_id"] == self.user_id
        if table == "playlist_items":
            return any(
                p["id"] == row["playlist_id"] and self._visible("playlists", p)
                for p in self.database.rows["playlists"]
            )
        if table == "favorites":
            return row["user_id"] == self.user_id
        return True

    def _writable(self, table, row):
        if table == "profiles":
            return row["user_id"] == self.user_id
        if table == "playlists":
            return row["owner_id"] == self.user_id
        if table == "playlist_items":
            return any(
                p["id"] == row["playlist_id"] and p["owner_id"] == self.user_id
                for p in self.database.rows["playlists"]
            )
        if table == "favorites":
            return row["user_id"] == self.user_id
        return True

    @staticmethod
    def _matches(row, eq=None, in_=None):
        for column, value in (eq or {}).items():
            if value is None:
                if row.get(column) is not None:
                    return False
            elif str(row.get(column)) != str(value):
                return False
        for column, values in (in_ or {}).items():
            if str(row.get(column)) not in {str(v) for v in values}:
                return False
        return True

    def _check_unique(self, table, row, ignore=None):
        layout = TABLES[table]
        for columns in [layout["key"]] + layout["unique"]:
            values = tuple(row.get(c) for c in columns)
            if any(v is None for v in values):
                continue
            for other in self.database.rows[table]:
                if other is ignore:
                    continue
                if tuple(other.get(c) for c in columns) == values:
                    name = (
                        f"{table}_pkey"
                        if columns == layout["key"]
                        else f"{table}_{'_'.join(columns)}_key"
                    )
                    raise DataError(
                        "23505",
                        f'duplicate key value violates unique constraint "{name}"',
                        409,
                    )

    # -- DataClient interface ----------------------------------------------

    async def select(self, table, columns="*", *, eq=None, in_=None, order=None,
                     descending=False, limit=None):
        self._check_table(table)
        if columns != "*":
            self._check_columns(table, [c.strip() for c in columns.split(",")])
        rows = [
            row for row in self.database.rows[table]
            if self._matches(row, eq, in_) and self._visible(table, row)
        ]
        if order:
            rows.sort(key=lambda row: str(row.get(order)), reverse=descending)
        projected = [self._project(table, row, columns) for row in rows]
        return projected[:limit] if limit is not None else projected

    async def select_one(self, table, columns="*", *, eq):
        rows = await self.select(table, columns, eq=eq, limit=1)
        return Found(rows[0]) if rows else NotFound(dict(eq))

    async def insert(self, table, row, columns="*"):
        self._check_table(table)
        self._check_columns(table, row.keys())
        new_row = self.database._with_defaults(table, dict(row))
        if not self._writable(table, new_row):
            raise DataError(
                "42501",
                f'new row violates row-level security policy for table "{table}"',
                403,
            )
        if table in ("favorites", "playlist_items"):
            if not any(t["id"] == new_row["track_id"] for t in self.database.rows["tracks"]):
                raise DataError("23503", "insert violates foreign key constraint", 409)
        self._check_unique(table, new_row)
        self.database.rows[table].append(new_row)
        return self._project(table, new_row, columns)

    async def update(self, table, patch, *, eq, columns="*"):
        self._check_table(table)
        self._check_columns(table, patch.keys())
        updated = []
        for row in self.database.rows[table]:
            if not (self._matches(row, eq) and self._visible(table, row)):
                continue
            if not self._writable(table, row):
                continue
            candidate = dict(row, **patch)
            self._check_unique(table, candidate, ignore=row)
            row.update(patch)
            if "updated_at" in row and "updated_at" not in patch:
                row["updated_at"] = self.database.now()
            updated.append(self._project(table, row, columns))
        return updated

    async def delete(self, table, *, eq, columns="*"):
        self._check_table(table)
        kept, deleted = [], []
        for row in self.database.rows[table]:
            if self._matches(row, eq) and self._visible(table, row) and self._writable(table, row):
                deleted.append(self._project(table, row, columns))
            else:
                kept.append(row)
        self.database.rows[table] = kept
        return deleted


@pytest.fixture
def database():
    """A fresh in-memory data store per test."""
    return InMemoryDatabase()


@pytest.fixture
def make_data_client(database):
    """Build fake scoped clients for a given token."""

    def factory(token):
        return FakeDataClient(database, PRINCIPALS[token].id)

    return factory


@pytest.fixture
def client(database):
    """Create a test client with the token verifier and data client overridden."""

    async def override_principal(token: str = Depends(get_token)) -> Principal:
        principal = PRINCIPALS.get(token)
        if principal is None:
            raise InvalidCredential(details="Token verification failed. Please login again.")
        return principal

    async def override_data_client(
        principal: Principal = Depends(get_current_principal),
    ):
        return FakeDataClient(database, principal.id)

    app.dependency_overrides[get_current_principal] = override_principal
    app.dependency_overrides[get_data_client] = override_data_client

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def profiles(database):
    """Profiles for both test users."""
    return {
        "alice": database.seed("profiles", user_id=ALICE_ID, username="alice"),
        "bob": database.seed("profiles", user_id=BOB_ID, username="bob"),
    }


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer bob-token"}
