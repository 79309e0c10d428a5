"""
Idempotent insert into a junction table.

Both playlist items and favorites follow the same steps: look for the
pair, insert when absent, and reconcile a concurrent insert of the same
pair by re-reading it. They differ only in what a duplicate means.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from soundnest.core.errors import ConflictError
from soundnest.services.supabase.client import DataClient, DataError, Found

logger = logging.getLogger(__name__)


class OnDuplicate(enum.Enum):
    CONFLICT = "conflict"
    RETURN_EXISTING = "return_existing"


@dataclass(frozen=True)
class Junction:
    table: str
    columns: str
    on_duplicate: OnDuplicate
    conflict_message: str = "Already in collection"
    conflict_details: Optional[str] = None


def _resolve_duplicate(junction: Junction, row: Dict[str, Any]) -> Dict[str, Any]:
    if junction.on_duplicate is OnDuplicate.CONFLICT:
        raise ConflictError(junction.conflict_message, details=junction.conflict_details)
    return row


async def add_member(
    client: DataClient, junction: Junction, key: Mapping[str, Any]
) -> Tuple[Dict[str, Any], bool]:
    """
    Insert ``key`` into ``junction`` unless the pair already exists.

    Returns:
        Tuple of (row, created)

    Raises:
        ConflictError: If the pair exists and the junction forbids duplicates.
    """
    existing = await client.select_one(junction.table, junction.columns, eq=key)
    if isinstance(existing, Found):
        logger.info(f"{dict(key)} already present in {junction.table}")
        return _resolve_duplicate(junction, existing.row), False

    try:
        row = await client.insert(junction.table, key, columns=junction.columns)
    except DataError as e:
        if not e.is_unique_violation:
            raise
        logger.info(f"Concurrent insert detected for {dict(key)} in {junction.table}")
        existing = await client.select_one(junction.table, junction.columns, eq=key)
        row = existing.row if isinstance(existing, Found) else dict(key)
        return _resolve_duplicate(junction, row), False

    return row, True
