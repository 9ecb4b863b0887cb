"""
Shared fixtures.

Every test gets its own in-memory Store, so tests never share rows. The
facade's clock is pinned so store-stamped dates are predictable.
"""

from datetime import date

import pytest

from spendora.api import CommandRouter
from spendora.db import (
    Asset,
    Budget,
    Expense,
    FinanceRepository,
    Goal,
    Loan,
    LoanPayment,
    Store,
)

TODAY = date(2024, 6, 20)


@pytest.fixture
def store():
    store = Store(":memory:").open()
    yield store
    store.close()


@pytest.fixture
def repo(store):
    return FinanceRepository(store, today=lambda: TODAY)


@pytest.fixture
def router(repo):
    return CommandRouter(repo)


@pytest.fixture
def make_expense():
    def factory(**overrides):
        data = {
            "amount": 1200.0,
            "category": "Food",
            "description": "Groceries",
            "date": "2024-06-15",
            "paymentMethod": "upi",
            "type": "one-time",
        }
        data.update(overrides)
        return Expense.from_dict(data)

    return factory


@pytest.fixture
def make_budget():
    def factory(**overrides):
        data = {
            "category": "Food",
            "month": "2024-06",
            "monthlyLimit": 5000.0,
            "currentSpend": 0.0,
        }
        data.update(overrides)
        return Budget.from_dict(data)

    return factory


@pytest.fixture
def make_loan():
    def factory(**overrides):
        data = {
            "name": "Home loan",
            "type": "home",
            "principalAmount": 100000.0,
            "interestRate": 6.0,
            "tenureMonths": 240,
            "startDate": "2024-01-01",
            "emiAmount": 716.43,
            "nextEmiDate": "2024-07-01",
        }
        data.update(overrides)
        return Loan.from_dict(data)

    return factory


@pytest.fixture
def make_payment():
    def factory(loan_id, **overrides):
        data = {
            "loanId": loan_id,
            "amount": 2500.0,
            "principalComponent": 2000.0,
            "interestComponent": 500.0,
            "date": "2024-06-01",
        }
        data.update(overrides)
        return LoanPayment.from_dict(data)

    return factory


@pytest.fixture
def make_asset():
    def factory(**overrides):
        data = {
            "name": "Index fund",
            "type": "mutual_funds",
            "investedAmount": 8000.0,
            "currentValue": 10000.0,
            "purchaseDate": "2023-01-10",
            "lastUpdated": "2024-06-01",
        }
        data.update(overrides)
        return Asset.from_dict(data)

    return factory


@pytest.fixture
def make_goal():
    def factory(**overrides):
        data = {
            "name": "Emergency fund",
            "type": "emergency_fund",
            "targetAmount": 300000.0,
            "targetDate": "2025-12-31",
        }
        data.update(overrides)
        return Goal.from_dict(data)

    return factory
