"""Tests for the command router."""

import base64

import pytest

from spendora.api import CommandError

EXPECTED_COMMANDS = {
    "get-expenses",
    "add-expense",
    "delete-expense",
    "get-recurring-expenses",
    "get-budgets",
    "set-budget",
    "get-loans",
    "add-loan",
    "update-loan",
    "delete-loan",
    "get-loan-payments",
    "add-loan-payment",
    "get-assets",
    "add-asset",
    "update-asset",
    "delete-asset",
    "get-asset-value-history",
    "get-assets-by-goal",
    "get-goals",
    "add-goal",
    "update-goal",
    "delete-goal",
    "get-net-worth-history",
    "calculate-net-worth",
    "record-net-worth-snapshot",
    "get-budget-utilization",
    "get-goal-progress",
    "get-loan-progress",
    "get-portfolio-summary",
    "get-net-worth-change",
    "get-financial-health",
    "get-upcoming-recurring",
    "pay-loan",
    "split-loan-payment",
    "calculate-emi",
    "contribute-goal",
    "export-expenses",
    "get-net-worth-chart",
    "get-allocation-chart",
}


def expense_payload(**overrides):
    data = {
        "id": "e1",
        "amount": 1200,
        "category": "Food",
        "description": "Groceries",
        "date": "2024-06-15",
        "paymentMethod": "upi",
        "type": "one-time",
    }
    data.update(overrides)
    return data


class TestRouting:
    """Tests for dispatch behaviour."""

    def test_all_commands_registered(self, router):
        """Test that every UI command has a handler."""
        assert set(router.commands) == EXPECTED_COMMANDS

    def test_unknown_command(self, router):
        """Test that unknown commands raise CommandError."""
        with pytest.raises(CommandError, match="get-everything"):
            router.dispatch("get-everything")

    def test_read_degrades_to_empty_list(self, router, store):
        """Test that read errors return an empty result."""
        store.close()
        assert router.dispatch("get-expenses") == []
        assert router.dispatch("get-goals") == []

    def test_net_worth_degrades_to_zero(self, router, store):
        """Test that a failed net worth calculation returns zeros."""
        store.close()
        assert router.dispatch("calculate-net-worth") == {
            "totalAssets": 0.0,
            "totalLiabilities": 0.0,
            "netWorth": 0.0,
            "assetsBreakdown": {},
            "liabilitiesBreakdown": {},
        }

    def test_write_error_raises(self, router):
        """Test that write errors surface as CommandError."""
        with pytest.raises(CommandError) as exc_info:
            router.dispatch("add-expense", expense_payload(paymentMethod="cheque"))
        assert "paymentMethod" in exc_info.value.message
        assert exc_info.value.command == "add-expense"

    def test_write_on_closed_store_raises(self, router, store):
        """Test that writes never degrade silently."""
        store.close()
        with pytest.raises(CommandError):
            router.dispatch("add-expense", expense_payload())

    def test_missing_arguments(self, router):
        """Test calling a write command without its payload."""
        with pytest.raises(CommandError):
            router.dispatch("add-expense")


class TestCommands:
    """Tests for end-to-end command flows."""

    def test_expense_and_budget_flow(self, router):
        """Test the budget rollup through commands."""
        router.dispatch(
            "set-budget",
            {"id": "b1", "category": "Food", "month": "2024-06", "monthlyLimit": 5000},
        )
        added = router.dispatch("add-expense", expense_payload())
        assert added["id"] == "e1"
        assert added["createdAt"]

        budgets = router.dispatch("get-budgets")
        assert budgets[0]["currentSpend"] == 1200

        assert router.dispatch("delete-expense", "e1") is True
        assert router.dispatch("get-budgets")[0]["currentSpend"] == 0
        assert router.dispatch("delete-expense", "e1") is False

    def test_recurring_expenses(self, router):
        """Test listing recurring expenses."""
        router.dispatch(
            "add-expense",
            expense_payload(
                type="recurring",
                recurringFrequency="weekly",
                recurringNextDate="2024-06-22",
            ),
        )
        recurring = router.dispatch("get-recurring-expenses")
        assert [e["recurringFrequency"] for e in recurring] == ["weekly"]

    def test_loan_flow(self, router):
        """Test loans, payments and updates through commands."""
        loan = router.dispatch(
            "add-loan",
            {
                "id": "l1",
                "name": "Car",
                "type": "car",
                "principalAmount": 100000,
                "interestRate": 9,
                "tenureMonths": 60,
                "startDate": "2024-01-01",
                "emiAmount": 2076,
            },
        )
        assert loan["remainingPrincipal"] == 100000
        assert loan["isPaidOff"] is False

        router.dispatch(
            "add-loan-payment",
            {
                "loanId": "l1",
                "amount": 2500,
                "principalComponent": 2000,
                "interestComponent": 500,
                "date": "2024-02-01",
            },
        )
        assert router.dispatch("get-loans")[0]["remainingPrincipal"] == 98000
        assert len(router.dispatch("get-loan-payments", "l1")) == 1

        updated = router.dispatch("update-loan", "l1", {"isPaidOff": True})
        assert updated["isPaidOff"] is True

        with pytest.raises(CommandError):
            router.dispatch("update-loan", "l1", {"principalAmount": 1})

        assert router.dispatch("delete-loan", "l1") is True
        assert router.dispatch("get-loan-payments", "l1") == []

    def test_payment_on_missing_loan(self, router):
        """Test that a failed atomic write is reported."""
        with pytest.raises(CommandError, match="rolled back"):
            router.dispatch(
                "add-loan-payment",
                {
                    "loanId": "missing",
                    "amount": 1,
                    "principalComponent": 1,
                    "interestComponent": 0,
                    "date": "2024-02-01",
                },
            )

    def test_asset_and_goal_flow(self, router):
        """Test assets linked to goals through commands."""
        goal = router.dispatch(
            "add-goal",
            {
                "name": "House",
                "type": "house",
                "targetAmount": 2000000,
                "targetDate": "2030-01-01",
                "priority": "high",
            },
        )
        router.dispatch(
            "add-asset",
            {
                "id": "a1",
                "name": "Nifty ETF",
                "type": "etf",
                "investedAmount": 9000,
                "currentValue": 10000,
                "purchaseDate": "2024-01-01",
                "lastUpdated": "2024-06-01",
                "linkedGoalId": goal["id"],
            },
        )

        updated = router.dispatch("update-asset", "a1", {"currentValue": 11000})
        assert updated["lastUpdated"] == "2024-06-20"
        history = router.dispatch("get-asset-value-history", "a1")
        assert [h["value"] for h in history] == [11000, 10000]
        assert [a["id"] for a in router.dispatch("get-assets-by-goal", goal["id"])] == ["a1"]

        router.dispatch("update-goal", goal["id"], {"status": "paused"})
        assert router.dispatch("get-goals")[0]["status"] == "paused"

        assert router.dispatch("delete-goal", goal["id"]) is True
        assert router.dispatch("get-goals") == []
        assert router.dispatch("get-assets")[0]["linkedGoalId"] is None

        assert router.dispatch("delete-asset", "a1") is True
        assert router.dispatch("get-asset-value-history", "a1") == []

    def test_net_worth_flow(self, router):
        """Test calculation and snapshots through commands."""
        for asset_id, value in (("a1", 100), ("a2", 50)):
            router.dispatch(
                "add-asset",
                {
                    "id": asset_id,
                    "name": asset_id,
                    "type": "stocks",
                    "investedAmount": value,
                    "currentValue": value,
                    "purchaseDate": "2024-01-01",
                    "lastUpdated": "2024-01-01",
                },
            )

        current = router.dispatch("calculate-net-worth")
        assert current["netWorth"] == 150

        snapshot = router.dispatch("record-net-worth-snapshot")
        assert snapshot["date"] == "2024-06-20"
        assert snapshot["assetsBreakdown"] == {"Market": 150}
        assert len(router.dispatch("get-net-worth-history")) == 1


def asset_payload(asset_id, value, **overrides):
    data = {
        "id": asset_id,
        "name": asset_id,
        "type": "stocks",
        "investedAmount": value,
        "currentValue": value,
        "purchaseDate": "2024-01-01",
        "lastUpdated": "2024-01-01",
    }
    data.update(overrides)
    return data


def car_loan():
    return {
        "id": "l1",
        "name": "Car",
        "type": "car",
        "principalAmount": 120000,
        "interestRate": 12,
        "tenureMonths": 24,
        "startDate": "2024-01-01",
        "emiAmount": 5649,
    }


class TestReportCommands:
    """Tests for analytics, calculator and export commands."""

    def test_budget_utilization(self, router):
        """Test utilization status per budget, optionally for one month."""
        router.dispatch(
            "set-budget",
            {"id": "b1", "category": "Food", "month": "2024-06", "monthlyLimit": 5000},
        )
        router.dispatch(
            "set-budget",
            {"id": "b2", "category": "Food", "month": "2024-05", "monthlyLimit": 5000},
        )
        router.dispatch("add-expense", expense_payload(amount=4200))

        usage = router.dispatch("get-budget-utilization", "2024-06")
        assert len(usage) == 1
        assert usage[0]["budgetId"] == "b1"
        assert usage[0]["spent"] == 4200
        assert usage[0]["status"] == "warning"
        assert len(router.dispatch("get-budget-utilization")) == 2

    def test_upcoming_recurring(self, router):
        """Test the due window is measured from the repository clock."""
        router.dispatch(
            "add-expense",
            expense_payload(
                type="recurring",
                recurringFrequency="monthly",
                recurringNextDate="2024-06-22",
            ),
        )
        assert [e["id"] for e in router.dispatch("get-upcoming-recurring")] == ["e1"]
        assert router.dispatch("get-upcoming-recurring", 1) == []

    def test_goal_progress_and_contribution(self, router):
        """Test progress with linked assets and contributing to completion."""
        router.dispatch(
            "add-goal",
            {
                "id": "g1",
                "name": "Trip",
                "type": "travel",
                "targetAmount": 12000,
                "currentAmount": 3000,
                "targetDate": "2024-12-17",
            },
        )
        router.dispatch("add-asset", asset_payload("a1", 1000, linkedGoalId="g1"))

        progress = router.dispatch("get-goal-progress")[0]
        assert progress["goalId"] == "g1"
        assert progress["monthsRemaining"] == 6
        assert progress["monthlySavingsNeeded"] == pytest.approx(1500.0)
        assert progress["linkedAssetsTotal"] == 1000

        goal = router.dispatch("contribute-goal", "g1", 9000)
        assert goal["currentAmount"] == 12000
        assert goal["status"] == "completed"

        with pytest.raises(CommandError):
            router.dispatch("contribute-goal", "g1", -5)

    def test_loan_calculators(self, router):
        """Test the split preview, computed payments and progress."""
        router.dispatch("add-loan", car_loan())

        split = router.dispatch("split-loan-payment", "l1", 5000)
        assert split == {"principal": 3800, "interest": 1200, "total": 5000}

        payment = router.dispatch("pay-loan", "l1", 5000)
        assert payment["date"] == "2024-06-20"
        assert payment["principalComponent"] == 3800
        assert router.dispatch("get-loans")[0]["remainingPrincipal"] == 116200

        progress = router.dispatch("get-loan-progress")
        assert progress[0]["loanId"] == "l1"
        assert progress[0]["amountRepaid"] == 3800

        with pytest.raises(CommandError, match="not found"):
            router.dispatch("pay-loan", "missing", 5000)

    def test_calculate_emi(self, router):
        """Test the installment calculator and its input checks."""
        assert router.dispatch("calculate-emi", 100000, 12, 12) == pytest.approx(
            8884.88, abs=0.01
        )
        with pytest.raises(CommandError, match="principal"):
            router.dispatch("calculate-emi", 0, 12, 12)

    def test_portfolio_and_health(self, router):
        """Test portfolio totals, net worth change and emergency fund."""
        router.dispatch("add-asset", asset_payload("a1", 300000, type="cash"))
        router.dispatch("record-net-worth-snapshot")
        router.dispatch("add-asset", asset_payload("a2", 100000))
        router.dispatch("record-net-worth-snapshot")

        summary = router.dispatch("get-portfolio-summary")
        assert summary["totalCurrent"] == 400000
        assert summary["allocation"] == {"Cash": 300000, "Market": 100000}

        change = router.dispatch("get-net-worth-change")
        assert change["change"] == 100000
        assert change["changePercent"] == pytest.approx(33.333, abs=0.001)

        health = router.dispatch("get-financial-health")
        assert health["assetDebtRatio"] is None
        assert health["emergencyFund"]["amount"] == 300000
        assert health["emergencyFund"]["isHealthy"] is True

    def test_reports_degrade_on_closed_store(self, router, store):
        """Test that report reads fall back to empty figures."""
        store.close()
        assert router.dispatch("get-budget-utilization") == []
        assert router.dispatch("get-goal-progress") == []
        assert router.dispatch("get-portfolio-summary")["totalCurrent"] == 0
        assert router.dispatch("get-net-worth-change")["latest"] is None
        assert router.dispatch("get-financial-health")["assetDebtRatio"] == 0.0

    def test_export_expenses(self, router):
        """Test CSV and XLSX exports as base64 file payloads."""
        router.dispatch("add-expense", expense_payload())

        csv_file = router.dispatch("export-expenses", "csv", "2024-06")
        assert csv_file["format"] == "csv"
        assert csv_file["filename"].endswith("_202406.csv")
        content = base64.b64decode(csv_file["content"])
        assert content.startswith(b"\xef\xbb\xbf")
        assert b"Groceries" in content

        xlsx_file = router.dispatch("export-expenses", "xlsx")
        assert base64.b64decode(xlsx_file["content"]).startswith(b"PK")

        with pytest.raises(CommandError):
            router.dispatch("export-expenses", "pdf")

    def test_charts(self, router):
        """Test chart commands return PNG payloads."""
        router.dispatch("add-asset", asset_payload("a1", 1000))
        router.dispatch("record-net-worth-snapshot")

        for command in ("get-net-worth-chart", "get-allocation-chart"):
            chart = router.dispatch(command)
            assert chart["format"] == "png"
            assert base64.b64decode(chart["content"]).startswith(b"\x89PNG")
