"""
Loan amortization helpers.

The store records whatever principal/interest split it is given; these
helpers compute the split (and the installment) the way the loan dialogs do.
"""

from dataclasses import dataclass
from typing import Optional

from spendora.config import PAID_OFF_TOLERANCE
from spendora.db.models import Loan, LoanPayment, new_id


@dataclass
class PaymentSplit:
    """How an installment divides between principal and interest."""

    principal: float
    interest: float

    @property
    def total(self) -> float:
        return self.principal + self.interest


@dataclass
class LoanProgress:
    amount_repaid: float
    percent_repaid: float
    remaining_principal: float
    is_repaid: bool


def monthly_rate(annual_rate: float) -> float:
    """Convert an annual percentage rate to a monthly fraction."""
    return annual_rate / 12 / 100


def calculate_emi(principal: float, annual_rate: float, tenure_months: int) -> float:
    """
    Calculate the equated monthly installment.

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate and n
    the tenure in months. A zero rate spreads the principal evenly.

    Raises:
        ValueError: If principal or tenure is not positive
    """
    if principal <= 0:
        raise ValueError(f"principal must be > 0, got {principal}")
    if tenure_months <= 0:
        raise ValueError(f"tenure_months must be > 0, got {tenure_months}")

    r = monthly_rate(annual_rate)
    if r == 0:
        return round(principal / tenure_months, 2)

    growth = (1 + r) ** tenure_months
    return round(principal * r * growth / (growth - 1), 2)


def split_payment(loan: Loan, amount: float) -> PaymentSplit:
    """
    Split a payment into interest on the remaining principal for one month
    and the principal it repays.
    """
    interest = round(loan.remaining_principal * monthly_rate(loan.interest_rate), 2)
    principal = round(amount - interest, 2)
    return PaymentSplit(principal=principal, interest=interest)


def build_payment(
    loan: Loan,
    amount: float,
    payment_date: str,
    split: Optional[PaymentSplit] = None,
) -> LoanPayment:
    """Build a LoanPayment for `loan`, computing the split unless one is given."""
    split = split or split_payment(loan, amount)
    return LoanPayment(
        id=new_id(),
        loan_id=loan.id,
        amount=amount,
        principal_component=split.principal,
        interest_component=split.interest,
        date=payment_date,
    )


def loan_progress(loan: Loan) -> LoanProgress:
    """Share of the original principal repaid so far."""
    repaid = loan.amount_repaid
    percent = repaid / loan.principal_amount * 100 if loan.principal_amount else 0.0
    return LoanProgress(
        amount_repaid=repaid,
        percent_repaid=percent,
        remaining_principal=loan.remaining_principal,
        is_repaid=loan.remaining_principal <= PAID_OFF_TOLERANCE,
    )
