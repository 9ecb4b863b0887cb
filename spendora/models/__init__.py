from .enums import (
    ASSET_TYPE_CATEGORIES,
    EMERGENCY_FUND_TYPES,
    GOAL_PRIORITY_RANK,
    AssetCategory,
    AssetType,
    ExpenseType,
    GoalPriority,
    GoalStatus,
    GoalType,
    LoanType,
    PaymentMethod,
    RecurringFrequency,
)

__all__ = [
    "ASSET_TYPE_CATEGORIES",
    "AssetCategory",
    "AssetType",
    "EMERGENCY_FUND_TYPES",
    "ExpenseType",
    "GOAL_PRIORITY_RANK",
    "GoalPriority",
    "GoalStatus",
    "GoalType",
    "LoanType",
    "PaymentMethod",
    "RecurringFrequency",
]
