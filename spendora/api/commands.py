"""
Command router for the UI process.

Maps the command names the UI invokes (get-expenses, add-loan-payment, ...)
onto repository and service calls. Payloads arrive as camelCase dicts and
results go back as plain dicts, lists and booleans; exported files and charts
go back base64 encoded.

Read commands never fail: errors are logged and an empty result is returned
so the UI can still render. Write commands log the error and raise
CommandError with a message the UI can show.
"""

import base64
import logging
from dataclasses import asdict
from typing import Any, Callable, Optional

from spendora.config import ERROR_MESSAGES
from spendora.db import (
    Asset,
    AssetUpdate,
    Budget,
    Expense,
    FinanceRepository,
    Goal,
    GoalUpdate,
    Loan,
    LoanPayment,
    LoanUpdate,
    NetWorthSummary,
)
from spendora.db.errors import NotFoundError, StoreError
from spendora.db.models import to_camel
from spendora.services import (
    ChartService,
    ExportFormat,
    ExportService,
    asset_debt_ratio,
    budget_utilization,
    build_payment,
    calculate_emi,
    emergency_fund_status,
    goal_progress,
    loan_progress,
    net_worth_change,
    portfolio_summary,
    split_payment,
    upcoming_recurring,
)

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when a write command fails or a command is unknown."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.command = command


def _to_dicts(records) -> list[dict]:
    return [record.to_dict() for record in records]


def _camel_dict(result) -> dict:
    """Top-level keys of a service dataclass as camelCase."""
    return {to_camel(key): value for key, value in asdict(result).items()}


def _file_payload(buffer, filename: str, format: str) -> dict:
    return {
        "filename": filename,
        "format": format,
        "content": base64.b64encode(buffer.getvalue()).decode("ascii"),
    }


class CommandRouter:
    """Dispatches named commands to the finance repository."""

    def __init__(self, repository: FinanceRepository):
        """
        Initialize the router.

        Args:
            repository: Facade over an opened store
        """
        self.repository = repository

        # command -> (handler, fallback); a fallback marks a read command
        self._reads: dict[str, tuple[Callable[..., Any], Callable[[], Any]]] = {
            "get-expenses": (self.get_expenses, list),
            "get-recurring-expenses": (self.get_recurring_expenses, list),
            "get-budgets": (self.get_budgets, list),
            "get-loans": (self.get_loans, list),
            "get-loan-payments": (self.get_loan_payments, list),
            "get-assets": (self.get_assets, list),
            "get-asset-value-history": (self.get_asset_value_history, list),
            "get-assets-by-goal": (self.get_assets_by_goal, list),
            "get-goals": (self.get_goals, list),
            "get-net-worth-history": (self.get_net_worth_history, list),
            "calculate-net-worth": (
                self.calculate_net_worth,
                lambda: NetWorthSummary().to_dict(),
            ),
            "get-budget-utilization": (self.get_budget_utilization, list),
            "get-goal-progress": (self.get_goal_progress, list),
            "get-loan-progress": (self.get_loan_progress, list),
            "get-portfolio-summary": (
                self.get_portfolio_summary,
                lambda: _camel_dict(portfolio_summary([])),
            ),
            "get-net-worth-change": (
                self.get_net_worth_change,
                lambda: _camel_dict(net_worth_change([])),
            ),
            "get-financial-health": (
                self.get_financial_health,
                lambda: self._health(NetWorthSummary(), []),
            ),
            "get-upcoming-recurring": (self.get_upcoming_recurring, list),
        }
        # writes, calculators and file exports raise on failure
        self._writes: dict[str, Callable[..., Any]] = {
            "add-expense": self.add_expense,
            "delete-expense": self.delete_expense,
            "set-budget": self.set_budget,
            "add-loan": self.add_loan,
            "update-loan": self.update_loan,
            "delete-loan": self.delete_loan,
            "add-loan-payment": self.add_loan_payment,
            "pay-loan": self.pay_loan,
            "split-loan-payment": self.split_loan_payment,
            "calculate-emi": self.calculate_emi,
            "add-asset": self.add_asset,
            "update-asset": self.update_asset,
            "delete-asset": self.delete_asset,
            "add-goal": self.add_goal,
            "update-goal": self.update_goal,
            "delete-goal": self.delete_goal,
            "contribute-goal": self.contribute_goal,
            "record-net-worth-snapshot": self.record_net_worth_snapshot,
            "export-expenses": self.export_expenses,
            "get-net-worth-chart": self.get_net_worth_chart,
            "get-allocation-chart": self.get_allocation_chart,
        }

    @property
    def commands(self) -> list[str]:
        return sorted([*self._reads, *self._writes])

    def dispatch(self, command: str, *args) -> Any:
        """
        Run a command by name.

        Raises:
            CommandError: For unknown commands and failed write commands
        """
        if command in self._reads:
            handler, fallback = self._reads[command]
            try:
                return handler(*args)
            except Exception as e:
                logger.error(f"Error handling {command}: {e}", exc_info=True)
                return fallback()

        handler = self._writes.get(command)
        if handler is None:
            logger.warning(f"Unknown command: {command}")
            raise CommandError(
                ERROR_MESSAGES["unknown_command"].format(command=command), command
            )

        try:
            return handler(*args)
        except StoreError as e:
            logger.error(f"Error handling {command}: {e}", exc_info=True)
            raise CommandError(str(e), command) from e
        except ValueError as e:
            logger.error(f"Invalid value for {command}: {e}", exc_info=True)
            raise CommandError(str(e), command) from e
        except TypeError as e:
            logger.error(f"Bad arguments for {command}: {e}", exc_info=True)
            raise CommandError(ERROR_MESSAGES["constraint"], command) from e
        except Exception as e:
            logger.error(f"Unexpected error handling {command}: {e}", exc_info=True)
            raise CommandError(ERROR_MESSAGES["internal_error"], command) from e

    # =========================================================================
    # Expenses
    # =========================================================================

    def get_expenses(self) -> list[dict]:
        return _to_dicts(self.repository.expenses.list_all())

    def get_recurring_expenses(self) -> list[dict]:
        return _to_dicts(self.repository.expenses.list_recurring())

    def add_expense(self, payload: dict) -> dict:
        return self.repository.expenses.add(Expense.from_dict(payload)).to_dict()

    def delete_expense(self, expense_id: str) -> bool:
        return self.repository.expenses.delete(expense_id)

    def get_upcoming_recurring(self, within_days: int = 7) -> list[dict]:
        return _to_dicts(
            upcoming_recurring(
                self.repository.expenses.list_recurring(),
                today=self.repository.clock(),
                within_days=within_days,
            )
        )

    # =========================================================================
    # Budgets
    # =========================================================================

    def get_budgets(self) -> list[dict]:
        return _to_dicts(self.repository.budgets.list_all())

    def set_budget(self, payload: dict) -> dict:
        return self.repository.budgets.upsert(Budget.from_dict(payload)).to_dict()

    def get_budget_utilization(self, month: Optional[str] = None) -> list[dict]:
        budgets = self.repository.budgets.list_all()
        if month:
            budgets = [b for b in budgets if b.month == month]
        return [_camel_dict(budget_utilization(b)) for b in budgets]

    # =========================================================================
    # Loans
    # =========================================================================

    def get_loans(self) -> list[dict]:
        return _to_dicts(self.repository.loans.list_all())

    def add_loan(self, payload: dict) -> dict:
        return self.repository.loans.add(Loan.from_dict(payload)).to_dict()

    def update_loan(self, loan_id: str, updates: dict) -> dict:
        return self.repository.loans.update(
            loan_id, LoanUpdate.from_dict(updates)
        ).to_dict()

    def delete_loan(self, loan_id: str) -> bool:
        return self.repository.loans.delete(loan_id)

    def get_loan_payments(self, loan_id: str) -> list[dict]:
        return _to_dicts(self.repository.loans.list_payments(loan_id))

    def add_loan_payment(self, payload: dict) -> dict:
        return self.repository.loans.add_payment(
            LoanPayment.from_dict(payload)
        ).to_dict()

    def get_loan_progress(self) -> list[dict]:
        return [
            {"loanId": loan.id, **_camel_dict(loan_progress(loan))}
            for loan in self.repository.loans.list_all()
        ]

    def _get_loan(self, loan_id: str) -> Loan:
        loan = self.repository.loans.get(loan_id)
        if loan is None:
            raise NotFoundError("Loan", loan_id)
        return loan

    def split_loan_payment(self, loan_id: str, amount: float) -> dict:
        split = split_payment(self._get_loan(loan_id), amount)
        return {
            "principal": split.principal,
            "interest": split.interest,
            "total": split.total,
        }

    def pay_loan(
        self, loan_id: str, amount: float, payment_date: Optional[str] = None
    ) -> dict:
        """Record a payment whose split is computed from the remaining principal."""
        payment_date = payment_date or self.repository.clock().isoformat()
        payment = build_payment(self._get_loan(loan_id), amount, payment_date)
        return self.repository.loans.add_payment(payment).to_dict()

    def calculate_emi(
        self, principal: float, annual_rate: float, tenure_months: int
    ) -> float:
        return calculate_emi(principal, annual_rate, tenure_months)

    # =========================================================================
    # Assets
    # =========================================================================

    def get_assets(self) -> list[dict]:
        return _to_dicts(self.repository.assets.list_all())

    def add_asset(self, payload: dict) -> dict:
        return self.repository.assets.add(Asset.from_dict(payload)).to_dict()

    def update_asset(self, asset_id: str, updates: dict) -> dict:
        return self.repository.assets.update(
            asset_id, AssetUpdate.from_dict(updates)
        ).to_dict()

    def delete_asset(self, asset_id: str) -> bool:
        return self.repository.assets.delete(asset_id)

    def get_asset_value_history(self, asset_id: str) -> list[dict]:
        return _to_dicts(self.repository.assets.list_value_history(asset_id))

    def get_assets_by_goal(self, goal_id: str) -> list[dict]:
        return _to_dicts(self.repository.assets.list_by_goal(goal_id))

    def get_portfolio_summary(self) -> dict:
        return _camel_dict(portfolio_summary(self.repository.assets.list_all()))

    # =========================================================================
    # Goals
    # =========================================================================

    def get_goals(self) -> list[dict]:
        return _to_dicts(self.repository.goals.list_all())

    def add_goal(self, payload: dict) -> dict:
        return self.repository.goals.add(Goal.from_dict(payload)).to_dict()

    def update_goal(self, goal_id: str, updates: dict) -> dict:
        return self.repository.goals.update(
            goal_id, GoalUpdate.from_dict(updates)
        ).to_dict()

    def delete_goal(self, goal_id: str) -> bool:
        return self.repository.goals.delete(goal_id)

    def contribute_goal(self, goal_id: str, amount: float) -> dict:
        return self.repository.goals.contribute(goal_id, amount).to_dict()

    def get_goal_progress(self) -> list[dict]:
        today = self.repository.clock()
        return [
            _camel_dict(
                goal_progress(goal, self.repository.assets.list_by_goal(goal.id), today)
            )
            for goal in self.repository.goals.list_all()
        ]

    # =========================================================================
    # Net worth
    # =========================================================================

    def get_net_worth_history(self) -> list[dict]:
        return _to_dicts(self.repository.net_worth.list_history())

    def calculate_net_worth(self) -> dict:
        return self.repository.net_worth.calculate_current().to_dict()

    def record_net_worth_snapshot(self) -> dict:
        return self.repository.net_worth.record_snapshot().to_dict()

    def get_net_worth_change(self) -> dict:
        return _camel_dict(net_worth_change(self.repository.net_worth.list_history()))

    def get_financial_health(self) -> dict:
        return self._health(
            self.repository.net_worth.calculate_current(),
            self.repository.assets.list_all(),
        )

    def _health(self, summary: NetWorthSummary, assets: list[Asset]) -> dict:
        # JSON has no infinity; a debt-free ratio is reported as null
        ratio = asset_debt_ratio(summary)
        return {
            "assetDebtRatio": None if ratio == float("inf") else ratio,
            "emergencyFund": _camel_dict(emergency_fund_status(assets, summary)),
        }

    # =========================================================================
    # Exports and charts (base64 file payloads)
    # =========================================================================

    def export_expenses(self, format: str = "csv", month: Optional[str] = None) -> dict:
        export_format = ExportFormat(format)
        service = ExportService(self.repository)
        return _file_payload(
            service.export(export_format, month),
            service.get_filename(export_format, month),
            export_format.value,
        )

    def get_net_worth_chart(self, points: Optional[int] = None) -> dict:
        buffer = ChartService().net_worth_trend_chart(
            self.repository.net_worth.list_history(), points
        )
        return _file_payload(buffer, "net_worth_trend.png", "png")

    def get_allocation_chart(self) -> dict:
        buffer = ChartService().allocation_chart(self.repository.assets.list_all())
        return _file_payload(buffer, "asset_allocation.png", "png")
