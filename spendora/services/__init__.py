from .amortization import (
    LoanProgress,
    PaymentSplit,
    build_payment,
    calculate_emi,
    loan_progress,
    split_payment,
)
from .analytics import (
    BudgetUtilization,
    EmergencyFundStatus,
    GoalProgress,
    NetWorthChange,
    PortfolioSummary,
    asset_debt_ratio,
    budget_utilization,
    emergency_fund_status,
    goal_progress,
    net_worth_change,
    next_occurrence,
    portfolio_summary,
    upcoming_recurring,
)
from .charts import ChartService
from .export import ExportFormat, ExportService

__all__ = [
    "BudgetUtilization",
    "ChartService",
    "EmergencyFundStatus",
    "ExportFormat",
    "ExportService",
    "GoalProgress",
    "LoanProgress",
    "NetWorthChange",
    "PaymentSplit",
    "PortfolioSummary",
    "asset_debt_ratio",
    "budget_utilization",
    "build_payment",
    "calculate_emi",
    "emergency_fund_status",
    "goal_progress",
    "loan_progress",
    "net_worth_change",
    "next_occurrence",
    "portfolio_summary",
    "split_payment",
    "upcoming_recurring",
]
