"""
Enumerations for the Spendora finance tracker.

Every enum here is mirrored by a CHECK constraint in the SQLite schema, so
values are validated before they reach persistence.
"""

from enum import Enum


class PaymentMethod(str, Enum):
    """How an expense was paid."""

    UPI = "upi"
    CASH = "cash"
    CARD = "card"


class ExpenseType(str, Enum):
    """Whether an expense happens once or repeats."""

    ONE_TIME = "one-time"
    RECURRING = "recurring"


class RecurringFrequency(str, Enum):
    """Repeat interval of a recurring expense."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class LoanType(str, Enum):
    HOME = "home"
    CAR = "car"
    PERSONAL = "personal"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


class AssetCategory(str, Enum):
    """Portfolio grouping used for allocation and net worth breakdowns."""

    MARKET = "Market"
    GOLD = "Gold"
    PROPERTY = "Property"
    FIXED_INCOME = "Fixed Income"
    ALTERNATIVE = "Alternative"
    CASH = "Cash"
    OTHER = "Other"


class AssetType(str, Enum):
    """
    Kinds of investable assets.

    Each type belongs to exactly one AssetCategory:
    - MARKET: stocks, mutual funds, ETFs
    - GOLD: physical and digital gold
    - PROPERTY: real estate and land
    - FIXED_INCOME: deposits, provident/pension funds and bonds
    - ALTERNATIVE: ESOPs, private equity and crypto
    - CASH and OTHER map to themselves
    """

    STOCKS = "stocks"
    MUTUAL_FUNDS = "mutual_funds"
    ETF = "etf"
    GOLD_PHYSICAL = "gold_physical"
    GOLD_DIGITAL = "gold_digital"
    REAL_ESTATE = "real_estate"
    LAND = "land"
    CASH = "cash"
    FD = "fd"
    RD = "rd"
    ESOP = "esop"
    PRIVATE_EQUITY = "private_equity"
    PPF = "ppf"
    EPF = "epf"
    NPS = "nps"
    BONDS = "bonds"
    CRYPTO = "crypto"
    OTHER = "other"

    @property
    def category(self) -> AssetCategory:
        """The portfolio category this asset type rolls up into."""
        return ASSET_TYPE_CATEGORIES[self]


ASSET_TYPE_CATEGORIES = {
    AssetType.STOCKS: AssetCategory.MARKET,
    AssetType.MUTUAL_FUNDS: AssetCategory.MARKET,
    AssetType.ETF: AssetCategory.MARKET,
    AssetType.GOLD_PHYSICAL: AssetCategory.GOLD,
    AssetType.GOLD_DIGITAL: AssetCategory.GOLD,
    AssetType.REAL_ESTATE: AssetCategory.PROPERTY,
    AssetType.LAND: AssetCategory.PROPERTY,
    AssetType.FD: AssetCategory.FIXED_INCOME,
    AssetType.RD: AssetCategory.FIXED_INCOME,
    AssetType.PPF: AssetCategory.FIXED_INCOME,
    AssetType.EPF: AssetCategory.FIXED_INCOME,
    AssetType.NPS: AssetCategory.FIXED_INCOME,
    AssetType.BONDS: AssetCategory.FIXED_INCOME,
    AssetType.ESOP: AssetCategory.ALTERNATIVE,
    AssetType.PRIVATE_EQUITY: AssetCategory.ALTERNATIVE,
    AssetType.CRYPTO: AssetCategory.ALTERNATIVE,
    AssetType.CASH: AssetCategory.CASH,
    AssetType.OTHER: AssetCategory.OTHER,
}

# Asset types counted towards the emergency fund
EMERGENCY_FUND_TYPES = (AssetType.CASH, AssetType.FD, AssetType.RD)


class GoalType(str, Enum):
    HOUSE = "house"
    CAR = "car"
    RETIREMENT = "retirement"
    TRAVEL = "travel"
    EDUCATION = "education"
    WEDDING = "wedding"
    EMERGENCY_FUND = "emergency_fund"
    OTHER = "other"


class GoalPriority(str, Enum):
    """Goal urgency. Sorting uses `rank`, never the string value."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return GOAL_PRIORITY_RANK[self]


GOAL_PRIORITY_RANK = {
    GoalPriority.HIGH: 3,
    GoalPriority.MEDIUM: 2,
    GoalPriority.LOW: 1,
}


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


def sql_values(enum_cls: type[Enum]) -> str:
    """Render an enum's values as a SQL IN-list, e.g. `'upi', 'cash', 'card'`."""
    return ", ".join(f"'{member.value}'" for member in enum_cls)
