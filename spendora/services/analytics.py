"""
Analytics over stored finance data.

Provides the derived figures the dashboards show:
- Budget utilization and status per budget
- Goal progress and the monthly saving needed to reach each goal
- Portfolio gain and allocation by asset category
- Net worth change between snapshots and emergency-fund coverage
- Upcoming occurrences of recurring expenses
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from spendora.config import (
    BUDGET_EXCEEDED_THRESHOLD,
    BUDGET_WARNING_THRESHOLD,
    DEFAULT_MONTHLY_OUTFLOW,
    EMERGENCY_FUND_TARGET_MONTHS,
    LIABILITY_OUTFLOW_RATIO,
)
from spendora.db.models import (
    Asset,
    Budget,
    Expense,
    Goal,
    NetWorthSnapshot,
    NetWorthSummary,
)
from spendora.models.enums import EMERGENCY_FUND_TYPES, RecurringFrequency

logger = logging.getLogger(__name__)


@dataclass
class BudgetUtilization:
    """How much of a budget has been used."""

    budget_id: str
    category: str
    month: str
    spent: float
    limit: float
    remaining: float
    percentage: float
    status: str  # "safe", "warning", "exceeded"


@dataclass
class GoalProgress:
    goal_id: str
    name: str
    percentage: float
    remaining: float
    days_remaining: int
    months_remaining: int
    monthly_savings_needed: float
    linked_assets_total: float


@dataclass
class PortfolioSummary:
    total_invested: float
    total_current: float
    total_gain: float
    gain_percent: float
    allocation: dict[str, float] = field(default_factory=dict)  # category -> value
    allocation_percent: dict[str, float] = field(default_factory=dict)


@dataclass
class NetWorthChange:
    """Difference between the two most recent snapshots."""

    latest: Optional[float]
    previous: Optional[float]
    change: float
    change_percent: float


@dataclass
class EmergencyFundStatus:
    amount: float
    monthly_outflow: float
    months_covered: float
    is_healthy: bool


def budget_utilization(budget: Budget) -> BudgetUtilization:
    """Classify a budget: safe below 80%, warning below 100%, else exceeded."""
    ratio = budget.current_spend / budget.monthly_limit if budget.monthly_limit else 0.0

    if ratio >= BUDGET_EXCEEDED_THRESHOLD:
        status = "exceeded"
    elif ratio >= BUDGET_WARNING_THRESHOLD:
        status = "warning"
    else:
        status = "safe"

    return BudgetUtilization(
        budget_id=budget.id,
        category=budget.category,
        month=budget.month,
        spent=budget.current_spend,
        limit=budget.monthly_limit,
        remaining=budget.monthly_limit - budget.current_spend,
        percentage=ratio * 100,
        status=status,
    )


def goal_progress(
    goal: Goal,
    linked_assets: Optional[list[Asset]] = None,
    today: Optional[date] = None,
) -> GoalProgress:
    """
    Progress towards a goal.

    Months remaining are counted in 30-day blocks (rounded up); when the
    target date has passed, the whole remaining amount is due now.
    """
    if today is None:
        today = date.today()

    target = date.fromisoformat(goal.target_date[:10])
    days_remaining = (target - today).days
    months_remaining = -(-days_remaining // 30) if days_remaining > 0 else 0

    remaining = goal.remaining
    monthly_needed = remaining / months_remaining if months_remaining > 0 else remaining
    percentage = (
        goal.current_amount / goal.target_amount * 100 if goal.target_amount else 0.0
    )

    return GoalProgress(
        goal_id=goal.id,
        name=goal.name,
        percentage=percentage,
        remaining=remaining,
        days_remaining=days_remaining,
        months_remaining=months_remaining,
        monthly_savings_needed=monthly_needed,
        linked_assets_total=sum(a.current_value for a in linked_assets or []),
    )


def portfolio_summary(assets: list[Asset]) -> PortfolioSummary:
    """Totals, gain and allocation by category for a list of assets."""
    total_invested = sum(a.invested_amount for a in assets)
    total_current = sum(a.current_value for a in assets)
    total_gain = total_current - total_invested

    allocation: dict[str, float] = {}
    for asset in assets:
        category = asset.category.value
        allocation[category] = allocation.get(category, 0.0) + asset.current_value

    allocation_percent = {
        category: (value / total_current * 100 if total_current else 0.0)
        for category, value in allocation.items()
    }

    return PortfolioSummary(
        total_invested=total_invested,
        total_current=total_current,
        total_gain=total_gain,
        gain_percent=total_gain / total_invested * 100 if total_invested else 0.0,
        allocation=allocation,
        allocation_percent=allocation_percent,
    )


def net_worth_change(history: list[NetWorthSnapshot]) -> NetWorthChange:
    """Change between the latest and previous snapshot (history newest first)."""
    latest = history[0].net_worth if history else None
    previous = history[1].net_worth if len(history) > 1 else None

    if latest is None or previous is None:
        return NetWorthChange(latest=latest, previous=previous, change=0.0, change_percent=0.0)

    change = latest - previous
    change_percent = change / abs(previous) * 100 if previous != 0 else 0.0
    return NetWorthChange(
        latest=latest, previous=previous, change=change, change_percent=change_percent
    )


def asset_debt_ratio(summary: NetWorthSummary) -> float:
    """Assets per unit of debt; infinite when there is no debt but some assets."""
    if summary.total_liabilities > 0:
        return summary.total_assets / summary.total_liabilities
    return float("inf") if summary.total_assets > 0 else 0.0


def emergency_fund_status(
    assets: list[Asset], summary: NetWorthSummary
) -> EmergencyFundStatus:
    """
    Months of outflow covered by cash, fixed and recurring deposits.

    Monthly outflow is estimated as a share of outstanding debt, or a
    default amount when there is none.
    """
    amount = sum(a.current_value for a in assets if a.type in EMERGENCY_FUND_TYPES)
    if summary.total_liabilities > 0:
        outflow = summary.total_liabilities * LIABILITY_OUTFLOW_RATIO
    else:
        outflow = DEFAULT_MONTHLY_OUTFLOW
    months = amount / outflow if outflow > 0 else 0.0
    return EmergencyFundStatus(
        amount=amount,
        monthly_outflow=outflow,
        months_covered=months,
        is_healthy=months >= EMERGENCY_FUND_TARGET_MONTHS,
    )


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of short months."""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_occurrence(from_date: date, frequency: RecurringFrequency) -> date:
    """The next due date after `from_date` for a recurring frequency."""
    frequency = RecurringFrequency(frequency)
    if frequency == RecurringFrequency.DAILY:
        return from_date + timedelta(days=1)
    if frequency == RecurringFrequency.WEEKLY:
        return from_date + timedelta(weeks=1)
    if frequency == RecurringFrequency.MONTHLY:
        return add_months(from_date, 1)
    return add_months(from_date, 12)


def upcoming_recurring(
    expenses: list[Expense],
    today: Optional[date] = None,
    within_days: int = 7,
) -> list[Expense]:
    """Recurring expenses due between today and `within_days` from now, soonest first."""
    if today is None:
        today = date.today()
    horizon = today + timedelta(days=within_days)

    due = []
    for expense in expenses:
        if not expense.is_recurring or not expense.recurring_next_date:
            continue
        try:
            next_date = date.fromisoformat(expense.recurring_next_date[:10])
        except ValueError:
            logger.warning(
                f"Expense {expense.id} has an invalid next date: "
                f"{expense.recurring_next_date}"
            )
            continue
        if today <= next_date <= horizon:
            due.append(expense)

    return sorted(due, key=lambda e: e.recurring_next_date)
