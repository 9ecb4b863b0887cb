"""
Net worth repository.

Derives net worth from the current asset and loan tables and stores
immutable, dated snapshots of it in net_worth_history.
"""

import logging

from spendora.models.enums import AssetCategory, AssetType

from .base import BaseRepository
from .models import NetWorthSnapshot, NetWorthSummary

logger = logging.getLogger(__name__)


class NetWorthRepository(BaseRepository):
    """Repository for net worth calculation and snapshot history."""

    table = "net_worth_history"
    model = NetWorthSnapshot
    entity = "NetWorthSnapshot"

    def calculate_current(self) -> NetWorthSummary:
        """
        Aggregate current net worth without writing anything.

        - total_assets: sum of current_value over all assets, also grouped by
          asset category
        - total_liabilities: sum of remaining_principal over loans that are
          not paid off, also grouped by loan type
        """
        assets_breakdown: dict[str, float] = {}
        rows = self.store.query(
            "SELECT type, SUM(current_value) AS total FROM assets GROUP BY type"
        )
        for row in rows:
            category = _asset_category(row["type"])
            assets_breakdown[category] = assets_breakdown.get(category, 0.0) + (
                row["total"] or 0.0
            )

        liabilities_breakdown: dict[str, float] = {}
        rows = self.store.query(
            """
            SELECT type, SUM(remaining_principal) AS total
            FROM loans
            WHERE is_paid_off = 0
            GROUP BY type
            """
        )
        for row in rows:
            liabilities_breakdown[row["type"]] = row["total"] or 0.0

        total_assets = sum(assets_breakdown.values())
        total_liabilities = sum(liabilities_breakdown.values())

        summary = NetWorthSummary(
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            net_worth=total_assets - total_liabilities,
            assets_breakdown=assets_breakdown,
            liabilities_breakdown=liabilities_breakdown,
        )
        logger.debug(f"Calculated net worth: {summary.net_worth}")
        return summary

    def record_snapshot(self) -> NetWorthSnapshot:
        """
        Calculate current net worth and store it as a new snapshot dated today.

        Snapshots are never deduplicated; each call adds one row.
        """
        try:
            with self.store.transaction() as conn:
                summary = self.calculate_current()
                snapshot = NetWorthSnapshot.from_summary(summary, self.today())
                self._insert(conn, self.table, snapshot.to_row())
                stored = self._require(snapshot.id)

            logger.info(
                f"Recorded net worth snapshot {stored.id} for {stored.date}: "
                f"{stored.net_worth}"
            )
            return stored
        except Exception as e:
            logger.error(f"Error recording net worth snapshot: {e}", exc_info=True)
            raise

    def list_history(self) -> list[NetWorthSnapshot]:
        """Get all snapshots, newest first."""
        return self._list(order_by="date DESC, rowid DESC")


def _asset_category(asset_type: str) -> str:
    try:
        return AssetType(asset_type).category.value
    except ValueError:
        return AssetCategory.OTHER.value
