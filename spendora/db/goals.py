"""
Goal tracker repository.

Goals are referenced by assets through a non-owning link, so deleting a goal
first clears assets.linked_goal_id and then removes the goal, atomically.
"""

import logging
from typing import Optional

from spendora.models.enums import GoalStatus

from .base import BaseRepository
from .errors import ConstraintViolationError, NotFoundError
from .models import Goal, GoalUpdate

logger = logging.getLogger(__name__)

# high > medium > low, independent of the words' alphabetical order
PRIORITY_RANK_SQL = """
    CASE priority
        WHEN 'high' THEN 3
        WHEN 'medium' THEN 2
        WHEN 'low' THEN 1
        ELSE 0
    END
"""


class GoalRepository(BaseRepository):
    """Repository for financial goals."""

    table = "goals"
    model = Goal
    entity = "Goal"

    def get(self, goal_id: str) -> Optional[Goal]:
        return super().get(goal_id)

    def list_all(self) -> list[Goal]:
        """Get all goals, most urgent priority first, then latest target date."""
        return self._list(order_by=f"{PRIORITY_RANK_SQL} DESC, target_date DESC")

    def add(self, goal: Goal) -> Goal:
        """
        Create a goal. Missing current_amount, priority and status default to
        0, medium and active.

        Returns:
            The stored Goal, re-read after the write
        """
        goal.validate()

        try:
            with self.store.transaction() as conn:
                self._insert(conn, self.table, goal.to_row())
                stored = self._require(goal.id)

            logger.info(
                f"Added {goal.type.value} goal {goal.id} ({goal.name}): "
                f"target {goal.target_amount} by {goal.target_date}"
            )
            return stored
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error adding goal {goal.id}: {e}", exc_info=True)
            raise

    def update(self, goal_id: str, update: GoalUpdate) -> Goal:
        """
        Apply a partial update (status transitions, contributions, edits).

        Raises:
            NotFoundError: If the goal does not exist
        """
        changes = update.changes()

        try:
            with self.store.transaction() as conn:
                if changes:
                    self._update(conn, goal_id, changes)
                stored = self._require(goal_id)

            logger.info(f"Updated goal {goal_id}: {sorted(changes)}")
            return stored
        except (ValueError, NotFoundError):
            raise
        except Exception as e:
            logger.error(f"Error updating goal {goal_id}: {e}", exc_info=True)
            raise

    def contribute(self, goal_id: str, amount: float) -> Goal:
        """
        Add a contribution and complete the goal once its target is reached.

        Raises:
            ConstraintViolationError: If amount is not positive
            NotFoundError: If the goal does not exist
        """
        if not isinstance(amount, (int, float)) or amount <= 0:
            raise ConstraintViolationError(f"Contribution must be > 0, got {amount!r}")

        with self.store.transaction():
            goal = self.get(goal_id)
            if goal is None:
                raise NotFoundError(self.entity, goal_id)

            new_amount = goal.current_amount + amount
            update = GoalUpdate(current_amount=new_amount)
            if new_amount >= goal.target_amount:
                update.status = GoalStatus.COMPLETED
            return self.update(goal_id, update)

    def delete(self, goal_id: str) -> bool:
        """
        Delete a goal without deleting the assets that point at it.

        Steps (one atomic transaction, in this order):
        1. Set linked_goal_id = NULL on every asset linked to the goal
        2. Delete the goal row

        Returns:
            True if a goal was deleted, False if it did not exist
        """
        with self.store.atomic("delete goal") as conn:
            unlinked = conn.execute(
                "UPDATE assets SET linked_goal_id = NULL WHERE linked_goal_id = ?",
                (goal_id,),
            ).rowcount
            deleted = conn.execute(
                "DELETE FROM goals WHERE id = ?", (goal_id,)
            ).rowcount

        if deleted:
            logger.info(f"Deleted goal {goal_id}, unlinked {unlinked} asset(s)")
        else:
            logger.debug(f"No goal to delete: {goal_id}")
        return deleted > 0
