"""
Asset registry repository.

Every valuation of an asset is historized: creating an asset appends its
first asset_value_history row, and every current_value update appends another
one dated today.
"""

import logging
from typing import Optional

from .base import BaseRepository
from .errors import NotFoundError
from .models import Asset, AssetUpdate, AssetValueHistory, new_id

logger = logging.getLogger(__name__)


class AssetRepository(BaseRepository):
    """Repository for investable assets and their value history."""

    table = "assets"
    model = Asset
    entity = "Asset"

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get(self, asset_id: str) -> Optional[Asset]:
        return super().get(asset_id)

    def list_all(self) -> list[Asset]:
        """Get all assets, most valuable first."""
        assets = self._list(order_by="current_value DESC")
        logger.debug(f"Retrieved {len(assets)} assets")
        return assets

    def list_by_goal(self, goal_id: str) -> list[Asset]:
        """Get the assets linked to a goal."""
        return self._list(
            where="linked_goal_id = ?",
            params=(goal_id,),
            order_by="current_value DESC",
        )

    def list_value_history(self, asset_id: str) -> list[AssetValueHistory]:
        """Get an asset's valuations, newest first."""
        rows = self.store.query(
            """
            SELECT * FROM asset_value_history
            WHERE asset_id = ?
            ORDER BY date DESC, rowid DESC
            """,
            (asset_id,),
        )
        return [AssetValueHistory.from_row(row) for row in rows]

    # =========================================================================
    # Write Operations
    # =========================================================================

    def add(self, asset: Asset) -> Asset:
        """
        Create an asset together with its first valuation.

        Steps (one transaction):
        1. Insert the asset row
        2. Append a history row with current_value dated last_updated
        3. Re-read the asset by id

        Returns:
            The stored Asset
        """
        asset.validate()

        try:
            with self.store.transaction() as conn:
                self._insert(conn, self.table, asset.to_row())
                self._append_history(conn, asset.id, asset.current_value, asset.last_updated)
                stored = self._require(asset.id)

            logger.info(
                f"Added {asset.type.value} asset {asset.id} ({asset.name}): "
                f"value {asset.current_value}"
            )
            return stored
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error adding asset {asset.id}: {e}", exc_info=True)
            raise

    def update(self, asset_id: str, update: AssetUpdate) -> Asset:
        """
        Apply a partial update to an asset.

        When current_value is part of the update, a history row dated today is
        appended and last_updated is forced to today, whatever the caller
        passed. Updates without current_value (e.g. notes) write no history.

        Raises:
            NotFoundError: If the asset does not exist
        """
        today = self.today()

        try:
            with self.store.transaction() as conn:
                if self.get(asset_id) is None:
                    raise NotFoundError(self.entity, asset_id)

                changes = update.changes()
                if update.is_set("current_value"):
                    self._append_history(conn, asset_id, update.current_value, today)
                    changes["last_updated"] = today

                if changes:
                    self._update(conn, asset_id, changes)
                stored = self._require(asset_id)

            logger.info(f"Updated asset {asset_id}: {sorted(changes)}")
            return stored
        except (ValueError, NotFoundError):
            raise
        except Exception as e:
            logger.error(f"Error updating asset {asset_id}: {e}", exc_info=True)
            raise

    def delete(self, asset_id: str) -> bool:
        """Delete an asset; its history is removed by ON DELETE CASCADE."""
        try:
            cursor = self.store.execute("DELETE FROM assets WHERE id = ?", (asset_id,))
            if cursor.rowcount:
                logger.info(f"Deleted asset {asset_id}")
            else:
                logger.debug(f"No asset to delete: {asset_id}")
            return True
        except Exception as e:
            logger.error(f"Error deleting asset {asset_id}: {e}", exc_info=True)
            raise

    def _append_history(self, conn, asset_id: str, value: float, value_date: str):
        self._insert(
            conn,
            "asset_value_history",
            {"id": new_id(), "asset_id": asset_id, "value": value, "date": value_date},
        )
