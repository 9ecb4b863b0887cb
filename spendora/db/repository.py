"""
Finance repository facade.

Composes the entity repositories around one shared Store so callers hold a
single object instead of wiring each repository by hand.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Union

from .assets import AssetRepository
from .budgets import BudgetRepository
from .expenses import ExpenseRepository
from .goals import GoalRepository
from .legacy import ImportResult, LegacyImporter
from .loans import LoanRepository
from .net_worth import NetWorthRepository
from .store import Store

logger = logging.getLogger(__name__)


class FinanceRepository:
    """
    Facade over all Spendora repositories.

    Attributes:
        store: The shared Store
        expenses, budgets, loans, assets, goals, net_worth: entity repositories
    """

    def __init__(self, store: Store, today: Optional[Callable[[], date]] = None):
        """
        Initialize the facade.

        Args:
            store: An opened Store
            today: Optional clock for store-stamped dates and date-relative
                analytics (tests pin it)
        """
        self.store = store
        self.clock = today or date.today
        self.expenses = ExpenseRepository(store, today)
        self.budgets = BudgetRepository(store, today)
        self.loans = LoanRepository(store, today)
        self.assets = AssetRepository(store, today)
        self.goals = GoalRepository(store, today)
        self.net_worth = NetWorthRepository(store, today)
        logger.debug(f"FinanceRepository ready on {store.db_path}")

    @classmethod
    def open(
        cls,
        db_path: Optional[Union[Path, str]] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> "FinanceRepository":
        """Open a Store at `db_path` and wrap it."""
        return cls(Store(db_path).open(), today)

    def import_legacy(self, document: dict) -> ImportResult:
        """Import a legacy `{expenses, budgets}` document."""
        return LegacyImporter(self.store).import_document(document)

    def close(self):
        self.store.close()
