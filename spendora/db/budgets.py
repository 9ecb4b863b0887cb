"""
Budget tracker repository.

Budgets are set per (category, month) with upsert semantics; current_spend
is afterwards maintained by the expense ledger.
"""

import logging
from typing import Optional

from .base import BaseRepository
from .models import Budget

logger = logging.getLogger(__name__)


class BudgetRepository(BaseRepository):
    """Repository for managing monthly category budgets."""

    table = "budgets"
    model = Budget
    entity = "Budget"

    def get(self, budget_id: str) -> Optional[Budget]:
        return super().get(budget_id)

    def get_for(self, category: str, month: str) -> Optional[Budget]:
        """
        Get the budget for a category in a month.

        Args:
            category: Expense category
            month: Month key (YYYY-MM)

        Returns:
            Budget if found, None otherwise
        """
        row = self.store.query_one(
            "SELECT * FROM budgets WHERE category = ? AND month = ?",
            (category, month),
        )
        return Budget.from_row(row) if row else None

    def list_all(self) -> list[Budget]:
        """Get all budgets, latest month first, then by category."""
        budgets = self._list(order_by="month DESC, category ASC")
        logger.debug(f"Retrieved {len(budgets)} budgets")
        return budgets

    def upsert(self, budget: Budget) -> Budget:
        """
        Create or replace the budget for (budget.category, budget.month).

        When a budget already exists for the pair, monthly_limit and
        current_spend are overwritten (not incremented) and the existing id is
        kept. Otherwise the budget is inserted as given.

        Returns:
            The stored Budget, re-read after the write

        Raises:
            ConstraintViolationError: If any value is invalid
            NotFoundError: If the row cannot be read back
        """
        budget.validate()

        try:
            with self.store.transaction() as conn:
                existing = self.get_for(budget.category, budget.month)

                if existing:
                    conn.execute(
                        """
                        UPDATE budgets
                        SET monthly_limit = ?, current_spend = ?
                        WHERE id = ?
                        """,
                        (budget.monthly_limit, budget.current_spend, existing.id),
                    )
                    stored = self._require(existing.id)
                    logger.info(
                        f"Updated budget {existing.id} for {budget.category} "
                        f"({budget.month}): limit {budget.monthly_limit}"
                    )
                else:
                    self._insert(conn, self.table, budget.to_row())
                    stored = self._require(budget.id)
                    logger.info(
                        f"Created budget {budget.id} for {budget.category} "
                        f"({budget.month}): limit {budget.monthly_limit}"
                    )

            return stored
        except ValueError:
            raise
        except Exception as e:
            logger.error(
                f"Error upserting budget for {budget.category} ({budget.month}): {e}",
                exc_info=True,
            )
            raise
