"""
Database module for the Spendora finance tracker.

This module provides the persistence layer: one SQLite Store shared by the
entity repositories, which keep the cross-table invariants (budget rollups,
loan amortization, asset value history, goal unlinking) consistent.

Structure:
- store.py: Store with connection lifecycle, transactions and schema
- errors.py: Error taxonomy
- base.py: Base repository with read-after-write helpers
- models.py: Entity dataclasses and partial-update specs
- expenses.py, budgets.py, loans.py, assets.py, goals.py: Entity repositories
- net_worth.py: Net worth calculation and snapshots
- legacy.py: One-time import of the legacy JSON data file
- repository.py: Facade that composes all repositories
"""

from .assets import AssetRepository
from .base import BaseRepository
from .budgets import BudgetRepository
from .errors import (
    ConstraintViolationError,
    NotFoundError,
    NotInitializedError,
    StoreError,
    TransactionFailureError,
)
from .expenses import ExpenseRepository
from .goals import GoalRepository
from .legacy import ImportResult, LegacyImporter, migrate_legacy_file
from .loans import LoanRepository
from .models import (
    UNSET,
    Asset,
    AssetUpdate,
    AssetValueHistory,
    Budget,
    Expense,
    Goal,
    GoalUpdate,
    Loan,
    LoanPayment,
    LoanUpdate,
    NetWorthSnapshot,
    NetWorthSummary,
    month_of,
)
from .net_worth import NetWorthRepository
from .repository import FinanceRepository
from .store import Store

__all__ = [
    # Store
    "Store",
    "BaseRepository",
    # Errors
    "ConstraintViolationError",
    "NotFoundError",
    "NotInitializedError",
    "StoreError",
    "TransactionFailureError",
    # Models
    "UNSET",
    "Asset",
    "AssetUpdate",
    "AssetValueHistory",
    "Budget",
    "Expense",
    "Goal",
    "GoalUpdate",
    "Loan",
    "LoanPayment",
    "LoanUpdate",
    "NetWorthSnapshot",
    "NetWorthSummary",
    "month_of",
    # Repositories
    "AssetRepository",
    "BudgetRepository",
    "ExpenseRepository",
    "FinanceRepository",
    "GoalRepository",
    "LoanRepository",
    "NetWorthRepository",
    # Legacy import
    "ImportResult",
    "LegacyImporter",
    "migrate_legacy_file",
]
