"""
Spendora - Personal Finance Tracker Backend

Persistence and aggregation layer for a desktop finance tracker: expenses,
monthly budgets, loans, investments, savings goals and net worth history,
stored in SQLite and served to the UI as named commands.
"""

from .api import CommandError, CommandRouter
from .db import FinanceRepository, Store
from .models import AssetCategory, AssetType, GoalPriority, GoalStatus

__version__ = "0.1.0"

__all__ = [
    "AssetCategory",
    "AssetType",
    "CommandError",
    "CommandRouter",
    "FinanceRepository",
    "GoalPriority",
    "GoalStatus",
    "Store",
]
