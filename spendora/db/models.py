"""
Database models for the Spendora finance tracker.

Each entity is a dataclass that maps 1:1 onto a SQLite table (attribute names
are the column names) and onto the camelCase payloads exchanged with the UI.
Partial updates go through per-entity update specs that only list the fields
that may change after creation.
"""

import json
import re
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

from spendora.models.enums import (
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

from .errors import ConstraintViolationError

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
DATE_PREFIX_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])")


def new_id() -> str:
    """Generate an id for rows the store creates itself."""
    return str(uuid.uuid4())


def month_of(date_value: str) -> str:
    """Return the YYYY-MM month key of an ISO date or date-time string."""
    if not isinstance(date_value, str) or not DATE_PREFIX_PATTERN.match(date_value):
        raise ConstraintViolationError(f"Invalid ISO date: {date_value!r}")
    return date_value[:7]


def to_snake(key: str) -> str:
    """Convert a camelCase payload key to its snake_case column name."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def to_camel(name: str) -> str:
    """Convert a snake_case column name to its camelCase payload key."""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def coerce_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    """Parse a raw value into `enum_cls`, rejecting values outside the allowed set."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConstraintViolationError(
            f"Invalid {field_name}: {value!r} (allowed: {allowed})"
        ) from None


def to_column(value: Any) -> Any:
    """Convert a Python value into what SQLite stores."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    return value


class Record:
    """Payload/row conversion shared by all entity dataclasses."""

    def to_dict(self) -> dict:
        """Convert to a camelCase dictionary (the UI payload shape)."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[to_camel(f.name)] = value.value if isinstance(value, Enum) else value
        return result

    def to_row(self) -> dict:
        """Convert to a column -> value mapping, without store-managed columns."""
        return {
            f.name: to_column(getattr(self, f.name))
            for f in fields(self)
            if f.name != "created_at"
        }

    @classmethod
    def from_dict(cls, data: dict):
        """Create an instance from a camelCase payload; unknown keys are ignored."""
        if not isinstance(data, dict):
            raise ConstraintViolationError(f"Expected an object, got {type(data).__name__}")
        names = {f.name for f in fields(cls)}
        kwargs = {to_snake(key): value for key, value in data.items()}
        kwargs = {key: value for key, value in kwargs.items() if key in names}
        if not kwargs.get("id"):
            kwargs["id"] = new_id()
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConstraintViolationError(f"Invalid {cls.__name__}: {e}") from None

    @classmethod
    def from_row(cls, row):
        """Create an instance from a sqlite3.Row."""
        names = {f.name for f in fields(cls)}
        return cls(**{key: row[key] for key in row.keys() if key in names})


def _require_positive(value: Any, field_name: str):
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        raise ConstraintViolationError(f"{field_name} must be > 0, got {value!r}")


def _require_number(value: Any, field_name: str):
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConstraintViolationError(f"{field_name} must be a number, got {value!r}")


def _require_text(value: Any, field_name: str):
    if not isinstance(value, str) or not value.strip():
        raise ConstraintViolationError(f"{field_name} is required")


@dataclass
class Expense(Record):
    """
    A single spending record.

    Recurring expenses carry a frequency and the next due date; one-time
    expenses carry neither. Expenses are never edited in place.
    """

    id: str
    amount: float
    category: str
    description: str
    date: str  # ISO date-time of the transaction
    payment_method: PaymentMethod
    type: ExpenseType = ExpenseType.ONE_TIME
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_next_date: Optional[str] = None
    created_at: Optional[str] = None  # Set by the store

    def __post_init__(self):
        self.payment_method = coerce_enum(
            PaymentMethod, self.payment_method, "paymentMethod"
        )
        self.type = coerce_enum(ExpenseType, self.type, "type")
        self.recurring_frequency = coerce_enum(
            RecurringFrequency, self.recurring_frequency, "recurringFrequency"
        )

    @property
    def month(self) -> str:
        return month_of(self.date)

    @property
    def is_recurring(self) -> bool:
        return self.type == ExpenseType.RECURRING

    def validate(self):
        """Check the write-boundary rules mirrored by the schema."""
        _require_text(self.id, "id")
        _require_positive(self.amount, "amount")
        _require_text(self.category, "category")
        if not isinstance(self.description, str):
            raise ConstraintViolationError("description is required")
        month_of(self.date)
        if self.is_recurring:
            if self.recurring_frequency is None or not self.recurring_next_date:
                raise ConstraintViolationError(
                    "Recurring expenses need recurringFrequency and recurringNextDate"
                )
        elif self.recurring_frequency is not None or self.recurring_next_date:
            raise ConstraintViolationError(
                "One-time expenses cannot have recurring details"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """Create from a payload, accepting the old nested `recurringDetails` form."""
        if isinstance(data, dict) and isinstance(data.get("recurringDetails"), dict):
            details = data["recurringDetails"]
            data = {
                **data,
                "recurringFrequency": data.get("recurringFrequency")
                or details.get("frequency"),
                "recurringNextDate": data.get("recurringNextDate")
                or details.get("nextDate"),
            }
        return super().from_dict(data)


@dataclass
class Budget(Record):
    """Spending limit for one category in one month, with its running spend."""

    id: str
    category: str
    month: str  # YYYY-MM
    monthly_limit: float
    current_spend: float = 0.0
    created_at: Optional[str] = None

    @property
    def remaining(self) -> float:
        return self.monthly_limit - self.current_spend

    def validate(self):
        _require_text(self.id, "id")
        _require_text(self.category, "category")
        if not isinstance(self.month, str) or not MONTH_PATTERN.match(self.month):
            raise ConstraintViolationError(f"month must be YYYY-MM, got {self.month!r}")
        _require_positive(self.monthly_limit, "monthlyLimit")
        _require_number(self.current_spend, "currentSpend")


@dataclass
class Loan(Record):
    """
    A loan or other liability being repaid in installments.

    remaining_principal starts at principal_amount and only moves through
    recorded payments. is_paid_off is set by the caller, never automatically.
    """

    id: str
    name: str
    type: LoanType
    principal_amount: float
    interest_rate: float  # Annual percent
    tenure_months: float
    start_date: str
    emi_amount: float
    remaining_principal: Optional[float] = None
    next_emi_date: Optional[str] = None
    is_paid_off: bool = False
    created_at: Optional[str] = None

    def __post_init__(self):
        self.type = coerce_enum(LoanType, self.type, "type")
        self.is_paid_off = bool(self.is_paid_off)
        if self.remaining_principal is None:
            self.remaining_principal = self.principal_amount

    @property
    def amount_repaid(self) -> float:
        return self.principal_amount - self.remaining_principal

    def validate(self):
        _require_text(self.id, "id")
        _require_text(self.name, "name")
        _require_positive(self.principal_amount, "principalAmount")
        _require_number(self.interest_rate, "interestRate")
        _require_number(self.tenure_months, "tenureMonths")
        _require_number(self.emi_amount, "emiAmount")
        month_of(self.start_date)


@dataclass
class LoanPayment(Record):
    """One installment paid against a loan. Immutable once stored."""

    id: str
    loan_id: str
    amount: float
    principal_component: float
    interest_component: float
    date: str
    created_at: Optional[str] = None

    def validate(self):
        _require_text(self.id, "id")
        _require_text(self.loan_id, "loanId")
        _require_number(self.amount, "amount")
        _require_number(self.principal_component, "principalComponent")
        _require_number(self.interest_component, "interestComponent")
        month_of(self.date)


@dataclass
class Asset(Record):
    """An investable asset, marked to market by value updates."""

    id: str
    name: str
    type: AssetType
    invested_amount: float  # Cost basis
    current_value: float
    purchase_date: str
    last_updated: str
    units: Optional[float] = None
    notes: Optional[str] = None
    linked_goal_id: Optional[str] = None  # Non-owning link to a Goal
    created_at: Optional[str] = None

    def __post_init__(self):
        self.type = coerce_enum(AssetType, self.type, "type")

    @property
    def category(self) -> AssetCategory:
        return self.type.category

    @property
    def gain(self) -> float:
        return self.current_value - self.invested_amount

    @property
    def gain_percent(self) -> float:
        if not self.invested_amount:
            return 0.0
        return self.gain / self.invested_amount * 100

    def validate(self):
        _require_text(self.id, "id")
        _require_text(self.name, "name")
        _require_number(self.invested_amount, "investedAmount")
        _require_number(self.current_value, "currentValue")
        if self.units is not None:
            _require_number(self.units, "units")
        month_of(self.purchase_date)
        month_of(self.last_updated)


@dataclass
class AssetValueHistory(Record):
    """One valuation event of an asset (creation or value update)."""

    id: str
    asset_id: str
    value: float
    date: str
    created_at: Optional[str] = None


@dataclass
class Goal(Record):
    """A savings target, optionally backed by linked assets."""

    id: str
    name: str
    type: GoalType
    target_amount: float
    target_date: str
    current_amount: float = 0.0
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.ACTIVE
    notes: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        self.type = coerce_enum(GoalType, self.type, "type")
        self.priority = coerce_enum(GoalPriority, self.priority, "priority")
        self.status = coerce_enum(GoalStatus, self.status, "status")
        if self.current_amount is None:
            self.current_amount = 0.0
        if self.priority is None:
            self.priority = GoalPriority.MEDIUM
        if self.status is None:
            self.status = GoalStatus.ACTIVE

    @property
    def remaining(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)

    def validate(self):
        _require_text(self.id, "id")
        _require_text(self.name, "name")
        _require_positive(self.target_amount, "targetAmount")
        _require_number(self.current_amount, "currentAmount")
        month_of(self.target_date)


@dataclass
class NetWorthSummary:
    """Point-in-time net worth derived from current assets and open loans."""

    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0
    assets_breakdown: dict[str, float] = field(default_factory=dict)
    liabilities_breakdown: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "totalAssets": self.total_assets,
            "totalLiabilities": self.total_liabilities,
            "netWorth": self.net_worth,
            "assetsBreakdown": dict(self.assets_breakdown),
            "liabilitiesBreakdown": dict(self.liabilities_breakdown),
        }


@dataclass
class NetWorthSnapshot(Record):
    """Immutable, dated copy of a NetWorthSummary (a net_worth_history row)."""

    id: str
    date: str
    total_assets: float
    total_liabilities: float
    net_worth: float
    assets_breakdown: dict[str, float] = field(default_factory=dict)
    liabilities_breakdown: dict[str, float] = field(default_factory=dict)
    created_at: Optional[str] = None

    def to_row(self) -> dict:
        row = super().to_row()
        row["assets_breakdown"] = json.dumps(self.assets_breakdown)
        row["liabilities_breakdown"] = json.dumps(self.liabilities_breakdown)
        return row

    @classmethod
    def from_row(cls, row) -> "NetWorthSnapshot":
        return cls(
            id=row["id"],
            date=row["date"],
            total_assets=row["total_assets"],
            total_liabilities=row["total_liabilities"],
            net_worth=row["net_worth"],
            assets_breakdown=json.loads(row["assets_breakdown"] or "{}"),
            liabilities_breakdown=json.loads(row["liabilities_breakdown"] or "{}"),
            created_at=row["created_at"],
        )

    @classmethod
    def from_summary(
        cls, summary: NetWorthSummary, snapshot_date: str
    ) -> "NetWorthSnapshot":
        return cls(
            id=new_id(),
            date=snapshot_date,
            total_assets=summary.total_assets,
            total_liabilities=summary.total_liabilities,
            net_worth=summary.net_worth,
            assets_breakdown=dict(summary.assets_breakdown),
            liabilities_breakdown=dict(summary.liabilities_breakdown),
        )


# =============================================================================
# Partial updates
# =============================================================================


class _Unset:
    """Marker for update-spec fields the caller did not set."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class UpdateSpec:
    """
    Base class for partial updates.

    Only fields declared on the subclass can be changed, so immutable columns
    (id, created_at, ...) can never be patched. Fields left as UNSET are not
    touched; None clears a nullable column.
    """

    def changes(self) -> dict[str, Any]:
        """Column -> stored value for every field that was set."""
        return {
            f.name: to_column(getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    @classmethod
    def from_dict(cls, data: dict):
        """Create from a camelCase patch, rejecting fields that cannot change."""
        if not isinstance(data, dict):
            raise ConstraintViolationError(f"Expected an object, got {type(data).__name__}")
        names = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = to_snake(key)
            if name not in names:
                raise ConstraintViolationError(f"Field cannot be updated: {key}")
            kwargs[name] = value
        return cls(**kwargs)


@dataclass
class LoanUpdate(UpdateSpec):
    name: Any = UNSET
    type: Any = UNSET
    interest_rate: Any = UNSET
    tenure_months: Any = UNSET
    emi_amount: Any = UNSET
    next_emi_date: Any = UNSET
    is_paid_off: Any = UNSET

    def __post_init__(self):
        if self.is_set("type"):
            self.type = coerce_enum(LoanType, self.type, "type")
        if self.is_set("is_paid_off"):
            self.is_paid_off = bool(self.is_paid_off)
        if self.is_set("name"):
            _require_text(self.name, "name")
        for name in ("interest_rate", "tenure_months", "emi_amount"):
            if self.is_set(name):
                _require_number(getattr(self, name), to_camel(name))


@dataclass
class AssetUpdate(UpdateSpec):
    name: Any = UNSET
    type: Any = UNSET
    invested_amount: Any = UNSET
    current_value: Any = UNSET
    units: Any = UNSET
    purchase_date: Any = UNSET
    last_updated: Any = UNSET
    notes: Any = UNSET
    linked_goal_id: Any = UNSET

    def __post_init__(self):
        if self.is_set("type"):
            self.type = coerce_enum(AssetType, self.type, "type")
        if self.is_set("name"):
            _require_text(self.name, "name")
        for name in ("invested_amount", "current_value"):
            if self.is_set(name):
                _require_number(getattr(self, name), to_camel(name))


@dataclass
class GoalUpdate(UpdateSpec):
    name: Any = UNSET
    type: Any = UNSET
    target_amount: Any = UNSET
    current_amount: Any = UNSET
    target_date: Any = UNSET
    priority: Any = UNSET
    status: Any = UNSET
    notes: Any = UNSET

    def __post_init__(self):
        if self.is_set("type"):
            self.type = coerce_enum(GoalType, self.type, "type")
        if self.is_set("priority"):
            self.priority = coerce_enum(GoalPriority, self.priority, "priority")
        if self.is_set("status"):
            self.status = coerce_enum(GoalStatus, self.status, "status")
        if self.is_set("name"):
            _require_text(self.name, "name")
        if self.is_set("target_amount"):
            _require_positive(self.target_amount, "targetAmount")
        if self.is_set("current_amount"):
            _require_number(self.current_amount, "currentAmount")
