"""
Base repository module shared by every entity repository.

Provides the store handle plus the insert / partial-update / read-after-write
helpers the entity repositories are built from.
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

from .errors import NotFoundError
from .models import Record
from .store import Store

logger = logging.getLogger(__name__)


def insert_row(conn, table: str, values: dict[str, Any], or_ignore: bool = False):
    """Insert one row of column -> value pairs; OR IGNORE skips duplicate keys."""
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    verb = "INSERT OR IGNORE" if or_ignore else "INSERT"
    return conn.execute(
        f"{verb} INTO {table} ({columns}) VALUES ({placeholders})",
        tuple(values.values()),
    )


class BaseRepository:
    """
    Base repository class bound to a shared Store.

    Subclasses set `table` and `model`. Every create/update follows the same
    two-step contract: write the row, then re-read it by id and return the
    stored version (NotFoundError if it cannot be read back).
    """

    table: str = ""
    model: type[Record] = Record
    entity: str = "Record"

    def __init__(self, store: Store, today: Optional[Callable[[], date]] = None):
        """
        Initialize the repository.

        Args:
            store: The opened Store shared by all repositories
            today: Clock used for store-stamped dates. Defaults to date.today
        """
        self.store = store
        self._today = today or date.today

    def today(self) -> str:
        """Today's date as an ISO string."""
        return self._today().isoformat()

    # =========================================================================
    # Read helpers
    # =========================================================================

    def get(self, entity_id: str):
        """Get a row by id, or None if it does not exist."""
        row = self.store.query_one(
            f"SELECT * FROM {self.table} WHERE id = ?", (entity_id,)
        )
        return self.model.from_row(row) if row else None

    def _require(self, entity_id: str):
        """Re-read a row by id, raising NotFoundError if it is missing."""
        found = self.get(entity_id)
        if found is None:
            logger.error(f"{self.entity} {entity_id} could not be read back")
            raise NotFoundError(self.entity, entity_id)
        return found

    def _list(self, where: str = "", params: tuple = (), order_by: str = "") -> list:
        sql = f"SELECT * FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        rows = self.store.query(sql, params)
        return [self.model.from_row(row) for row in rows]

    # =========================================================================
    # Write helpers
    # =========================================================================

    def _insert(self, conn, table: str, values: dict[str, Any]):
        return insert_row(conn, table, values)

    def _update(self, conn, entity_id: str, changes: dict[str, Any]):
        assignments = ", ".join(f"{column} = ?" for column in changes)
        return conn.execute(
            f"UPDATE {self.table} SET {assignments} WHERE id = ?",
            (*changes.values(), entity_id),
        )
