"""
Expense ledger repository.

Adding or deleting an expense keeps the matching budget's running spend in
step: the budget for (category, month of the expense's date) is incremented
on add and decremented on delete, inside the same transaction.
"""

import logging
from typing import Optional

from spendora.models.enums import ExpenseType

from .base import BaseRepository
from .models import Expense

logger = logging.getLogger(__name__)


class ExpenseRepository(BaseRepository):
    """Repository for expense records and their budget rollups."""

    table = "expenses"
    model = Expense
    entity = "Expense"

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get(self, expense_id: str) -> Optional[Expense]:
        return super().get(expense_id)

    def list_all(self) -> list[Expense]:
        """Get every expense, newest transaction date first."""
        expenses = self._list(order_by="date DESC")
        logger.debug(f"Retrieved {len(expenses)} expenses")
        return expenses

    def list_recurring(self) -> list[Expense]:
        """Get recurring expenses, newest transaction date first."""
        return self._list(
            where="type = ?",
            params=(ExpenseType.RECURRING.value,),
            order_by="date DESC",
        )

    # =========================================================================
    # Write Operations
    # =========================================================================

    def add(self, expense: Expense) -> Expense:
        """
        Insert an expense and roll its amount into the matching budget.

        Steps (one transaction):
        1. Insert the expense row
        2. Increment current_spend of the budget for (category, month of date)
        3. Re-read the expense by id

        Returns:
            The stored Expense, including created_at

        Raises:
            ConstraintViolationError: If validation or a schema constraint fails
            NotFoundError: If the inserted row cannot be read back
        """
        expense.validate()

        try:
            with self.store.transaction() as conn:
                self._insert(conn, self.table, expense.to_row())
                cursor = self._adjust_budget(conn, expense, expense.amount)
                stored = self._require(expense.id)

            logger.info(
                f"Added expense {expense.id}: {expense.amount} in {expense.category} "
                f"({expense.month}, {cursor.rowcount} budget(s) updated)"
            )
            return stored
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error adding expense {expense.id}: {e}", exc_info=True)
            raise

    def delete(self, expense_id: str) -> bool:
        """
        Delete an expense and reverse its effect on the budget of its own month.

        Returns:
            True if deleted, False if no such expense exists
        """
        try:
            with self.store.transaction() as conn:
                expense = self.get(expense_id)
                if expense is None:
                    logger.debug(f"No expense to delete: {expense_id}")
                    return False

                conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (expense_id,))
                self._adjust_budget(conn, expense, -expense.amount)

            logger.info(
                f"Deleted expense {expense_id}: {expense.amount} in "
                f"{expense.category} ({expense.month})"
            )
            return True
        except Exception as e:
            logger.error(f"Error deleting expense {expense_id}: {e}", exc_info=True)
            raise

    def _adjust_budget(self, conn, expense: Expense, delta: float):
        return conn.execute(
            """
            UPDATE budgets
            SET current_spend = current_spend + ?
            WHERE category = ? AND month = ?
            """,
            (delta, expense.category, expense.month),
        )
