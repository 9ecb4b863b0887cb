"""
Loan amortization repository.

Handles loans and their payment history:
- Creating, updating and deleting loans (payments cascade with the loan)
- Recording payments, which reduce the loan's remaining principal by the
  payment's principal component in the same atomic transaction
"""

import logging
from typing import Optional

from .base import BaseRepository
from .errors import NotFoundError
from .models import Loan, LoanPayment, LoanUpdate

logger = logging.getLogger(__name__)


class LoanRepository(BaseRepository):
    """
    Repository for loans and loan payments.

    Invariant: remaining_principal == principal_amount minus the sum of
    principal_component over the loan's payments.
    """

    table = "loans"
    model = Loan
    entity = "Loan"

    # =========================================================================
    # Loans
    # =========================================================================

    def get(self, loan_id: str) -> Optional[Loan]:
        return super().get(loan_id)

    def list_all(self) -> list[Loan]:
        """Get all loans in insertion order."""
        return self._list(order_by="rowid")

    def add(self, loan: Loan) -> Loan:
        """
        Create a loan. remaining_principal starts at principal_amount and the
        loan starts unpaid, whatever the caller passed.

        Returns:
            The stored Loan, re-read after the write
        """
        loan.validate()
        loan.remaining_principal = loan.principal_amount
        loan.is_paid_off = False

        try:
            with self.store.transaction() as conn:
                self._insert(conn, self.table, loan.to_row())
                stored = self._require(loan.id)

            logger.info(
                f"Added {loan.type.value} loan {loan.id} ({loan.name}): "
                f"principal {loan.principal_amount}"
            )
            return stored
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error adding loan {loan.id}: {e}", exc_info=True)
            raise

    def update(self, loan_id: str, update: LoanUpdate) -> Loan:
        """
        Apply a partial update (e.g. advancing next_emi_date, marking paid off).

        Returns:
            The stored Loan, re-read after the write

        Raises:
            NotFoundError: If the loan does not exist
        """
        changes = update.changes()

        try:
            with self.store.transaction() as conn:
                if changes:
                    self._update(conn, loan_id, changes)
                stored = self._require(loan_id)

            logger.info(f"Updated loan {loan_id}: {sorted(changes)}")
            return stored
        except (ValueError, NotFoundError):
            raise
        except Exception as e:
            logger.error(f"Error updating loan {loan_id}: {e}", exc_info=True)
            raise

    def delete(self, loan_id: str) -> bool:
        """Delete a loan; its payments are removed by ON DELETE CASCADE."""
        try:
            cursor = self.store.execute("DELETE FROM loans WHERE id = ?", (loan_id,))
            if cursor.rowcount:
                logger.info(f"Deleted loan {loan_id}")
            else:
                logger.debug(f"No loan to delete: {loan_id}")
            return True
        except Exception as e:
            logger.error(f"Error deleting loan {loan_id}: {e}", exc_info=True)
            raise

    # =========================================================================
    # Payments
    # =========================================================================

    def list_payments(self, loan_id: str) -> list[LoanPayment]:
        """Get a loan's payments, newest first."""
        rows = self.store.query(
            """
            SELECT * FROM loan_payments
            WHERE loan_id = ?
            ORDER BY date DESC, rowid DESC
            """,
            (loan_id,),
        )
        return [LoanPayment.from_row(row) for row in rows]

    def add_payment(self, payment: LoanPayment) -> LoanPayment:
        """
        Record a payment and reduce the loan's remaining principal.

        Both writes happen in one atomic transaction:
        1. Insert the loan_payments row
        2. Decrement loans.remaining_principal by principal_component

        The principal/interest split is supplied by the caller.

        Returns:
            The stored LoanPayment

        Raises:
            ConstraintViolationError: If the payment is invalid
            TransactionFailureError: If the loan does not exist or either
                write fails; nothing is persisted in that case
        """
        payment.validate()

        with self.store.atomic("add loan payment") as conn:
            self._insert(conn, "loan_payments", payment.to_row())
            # the loan_id foreign key has already rejected unknown loans
            conn.execute(
                """
                UPDATE loans
                SET remaining_principal = remaining_principal - ?
                WHERE id = ?
                """,
                (payment.principal_component, payment.loan_id),
            )

            row = conn.execute(
                "SELECT * FROM loan_payments WHERE id = ?", (payment.id,)
            ).fetchone()

        logger.info(
            f"Recorded payment {payment.id} on loan {payment.loan_id}: "
            f"{payment.amount} (principal {payment.principal_component}, "
            f"interest {payment.interest_component})"
        )
        return LoanPayment.from_row(row)
