"""
Pre-flight schema check run before writes that touch tracks, playlist
items or favorites.

A missing table aborts the request with a SchemaError carrying a
remediation hint. A missing optional column only degrades the write.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet

from soundnest.core.errors import SchemaError
from soundnest.schemas.tracks import OPTIONAL_TRACK_COLUMNS
from soundnest.services.supabase.client import DataClient, DataError

logger = logging.getLogger(__name__)

# (table, cheapest column to probe)
REQUIRED_TABLES = (
    ("tracks", "id"),
    ("playlist_items", "id"),
    ("favorites", "track_id"),
)

SCHEMA_FILE = "backend/docs/schema.sql"


@dataclass(frozen=True)
class SchemaReport:
    """Result of a successful check."""

    missing_columns: FrozenSet[str] = frozenset()


async def ensure_schema(client: DataClient) -> SchemaReport:
    """
    Probe every table the write paths depend on.

    Raises:
        SchemaError: If a required table does not exist.
        DataError: For any other data API failure.
    """
    for table, column in REQUIRED_TABLES:
        try:
            await client.select(table, column, limit=1)
        except DataError as e:
            if e.is_missing_table:
                logger.warning(
                    f"{table} table does not exist. Please run database migrations."
                )
                raise SchemaError(
                    details="Database schema not initialized. Contact administrator.",
                    hint=f"Table '{table}' is missing. Apply {SCHEMA_FILE} to the database.",
                )
            raise

    missing = set()
    for column in OPTIONAL_TRACK_COLUMNS:
        try:
            await client.select("tracks", column, limit=1)
        except DataError as e:
            if not (e.is_missing_column or e.mentions(column)):
                raise
            logger.warning(
                f"{column} column does not exist in tracks table. Please run "
                f"ALTER TABLE tracks ADD COLUMN IF NOT EXISTS {column} TEXT;"
            )
            missing.add(column)

    return SchemaReport(missing_columns=frozenset(missing))
