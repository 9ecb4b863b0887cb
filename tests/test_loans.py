"""Tests for loans and loan payments."""

import pytest

from spendora.db import (
    ConstraintViolationError,
    LoanUpdate,
    NotFoundError,
    TransactionFailureError,
)
from spendora.models import LoanType


class TestLoanRepository:
    """Tests for loan CRUD."""

    def test_add_starts_with_full_principal(self, repo, make_loan):
        """Test that a new loan owes its whole principal and is open."""
        stored = repo.loans.add(
            make_loan(id="l1", remainingPrincipal=5, isPaidOff=True)
        )
        assert stored.remaining_principal == 100000
        assert stored.is_paid_off is False
        assert stored.type == LoanType.HOME

    def test_list_all_insertion_order(self, repo, make_loan):
        """Test that loans come back in the order they were added."""
        for loan_id in ("c", "a", "b"):
            repo.loans.add(make_loan(id=loan_id))
        assert [loan.id for loan in repo.loans.list_all()] == ["c", "a", "b"]

    def test_invalid_type_rejected(self, make_loan):
        """Test the loan type allowed set."""
        with pytest.raises(ConstraintViolationError):
            make_loan(type="boat")

    def test_update_mutable_fields(self, repo, make_loan):
        """Test a partial update."""
        repo.loans.add(make_loan(id="l1"))
        stored = repo.loans.update(
            "l1", LoanUpdate(next_emi_date="2024-08-01", is_paid_off=True)
        )
        assert stored.next_emi_date == "2024-08-01"
        assert stored.is_paid_off is True
        assert stored.name == "Home loan"

    def test_update_can_clear_nullable(self, repo, make_loan):
        """Test that None clears a nullable column."""
        repo.loans.add(make_loan(id="l1"))
        stored = repo.loans.update("l1", LoanUpdate(next_emi_date=None))
        assert stored.next_emi_date is None

    def test_update_rejects_immutable_fields(self):
        """Test that principal and id cannot be patched."""
        with pytest.raises(ConstraintViolationError, match="remainingPrincipal"):
            LoanUpdate.from_dict({"remainingPrincipal": 1})
        with pytest.raises(ConstraintViolationError):
            LoanUpdate.from_dict({"id": "other"})

    def test_update_missing_raises(self, repo):
        """Test updating an unknown loan."""
        with pytest.raises(NotFoundError):
            repo.loans.update("missing", LoanUpdate(name="x"))

    def test_delete_always_true(self, repo, make_loan):
        """Test that delete reports True for existing and missing loans."""
        repo.loans.add(make_loan(id="l1"))
        assert repo.loans.delete("l1") is True
        assert repo.loans.delete("l1") is True
        assert repo.loans.get("l1") is None


class TestLoanPayments:
    """Tests for payments and amortization."""

    def test_payment_reduces_principal(self, repo, make_loan, make_payment):
        """Test that principal drops by the principal component only."""
        repo.loans.add(make_loan(id="l1"))
        payment = repo.loans.add_payment(make_payment("l1"))

        assert payment.amount == 2500
        assert repo.loans.get("l1").remaining_principal == 98000

    def test_remaining_principal_conservation(self, repo, make_loan, make_payment):
        """Test remaining == principal - sum of principal components."""
        repo.loans.add(make_loan(id="l1"))
        components = [2000.0, 2010.5, 1999.25, 3000.0]
        for i, component in enumerate(components):
            repo.loans.add_payment(
                make_payment("l1", principalComponent=component, date=f"2024-0{i + 2}-01")
            )

        loan = repo.loans.get("l1")
        paid = sum(p.principal_component for p in repo.loans.list_payments("l1"))
        assert loan.remaining_principal == pytest.approx(loan.principal_amount - paid)
        assert paid == pytest.approx(sum(components))

    def test_payments_newest_first(self, repo, make_loan, make_payment):
        """Test ordering by payment date descending."""
        repo.loans.add(make_loan(id="l1"))
        repo.loans.add_payment(make_payment("l1", id="p1", date="2024-04-01"))
        repo.loans.add_payment(make_payment("l1", id="p2", date="2024-06-01"))
        repo.loans.add_payment(make_payment("l1", id="p3", date="2024-05-01"))
        assert [p.id for p in repo.loans.list_payments("l1")] == ["p2", "p3", "p1"]

    def test_payment_for_missing_loan_persists_nothing(self, repo, make_payment):
        """Test that a payment on an unknown loan is rolled back."""
        with pytest.raises(TransactionFailureError):
            repo.loans.add_payment(make_payment("missing", id="p1"))
        assert repo.store.scalar("SELECT COUNT(*) FROM loan_payments") == 0

    def test_duplicate_payment_rolls_back_principal(self, repo, make_loan, make_payment):
        """Test that a failed payment leaves the loan untouched."""
        repo.loans.add(make_loan(id="l1"))
        repo.loans.add_payment(make_payment("l1", id="p1"))
        with pytest.raises(TransactionFailureError):
            repo.loans.add_payment(make_payment("l1", id="p1"))
        assert repo.loans.get("l1").remaining_principal == 98000
        assert len(repo.loans.list_payments("l1")) == 1

    def test_failed_principal_update_removes_payment(
        self, repo, make_loan, make_payment
    ):
        """Test that the inserted payment is undone when the loan update fails."""
        repo.loans.add(make_loan(id="l1"))
        repo.store.execute(
            """
            CREATE TRIGGER block_loan_update BEFORE UPDATE ON loans
            BEGIN SELECT RAISE(ABORT, 'loan locked'); END
            """
        )

        with pytest.raises(TransactionFailureError):
            repo.loans.add_payment(make_payment("l1", id="p1"))

        assert repo.store.scalar("SELECT COUNT(*) FROM loan_payments") == 0
        assert repo.loans.get("l1").remaining_principal == 100000

    def test_delete_cascades_payments(self, repo, make_loan, make_payment):
        """Test that deleting a loan removes its payments."""
        repo.loans.add(make_loan(id="l1"))
        repo.loans.add(make_loan(id="l2"))
        repo.loans.add_payment(make_payment("l1"))
        repo.loans.add_payment(make_payment("l1"))
        repo.loans.add_payment(make_payment("l2"))

        repo.loans.delete("l1")

        assert repo.loans.list_payments("l1") == []
        assert len(repo.loans.list_payments("l2")) == 1
        assert repo.store.scalar("SELECT COUNT(*) FROM loan_payments") == 1
