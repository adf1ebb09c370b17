"""
Debt repayments.

Every repayment moves money from balance_owed to amount_payable_now on its
debt, so balance_owed + amount_payable_now == total_price after each
create, update or delete.
"""

import logging
import re
from decimal import Decimal
from typing import Optional
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import (
    DebtNotFound,
    ExceedsBalance,
    NegativeBalance,
    NotFound,
    ValidationError,
)
from accountant.ledger.store import atomic
from accountant.models import Debt, DebtRepayment
from accountant.utils import to_decimal, to_int

logger = logging.getLogger(__name__)

DEBT_RECEIPT_PATTERN = re.compile(r"^DEBT-(\d+)$")


def format_receipt_number(repayment_id: int) -> str:
    return f"REPAY-{repayment_id:06d}"


def get_debt(debt_id) -> Debt:
    debt = db.session.get(Debt, debt_id)
    if debt is None:
        raise DebtNotFound(debt_id)
    return debt


def get_repayment(repayment_id: int) -> DebtRepayment:
    repayment = db.session.get(DebtRepayment, repayment_id)
    if repayment is None:
        raise NotFound("Repayment not found", id=repayment_id)
    return repayment


def list_repayments():
    return db.session.execute(
        sa.select(DebtRepayment)
        .join(Debt, Debt.id == DebtRepayment.debt_id)
        .order_by(DebtRepayment.payment_date.desc(), DebtRepayment.id.desc())
    ).scalars().all()


def find_debt_by_receipt(receipt_no: str):
    """
    Resolve a debt receipt number (DEBT-000001) to the debt and its
    repayments, oldest first.
    """
    match = DEBT_RECEIPT_PATTERN.match((receipt_no or "").strip().upper())
    if not match:
        raise ValidationError("Invalid receipt number. Use format DEBT-000001")

    debt = db.session.get(Debt, int(match.group(1)))
    if debt is None:
        raise NotFound("Debt not found for this receipt number", receipt_number=receipt_no)

    payments = db.session.execute(
        sa.select(DebtRepayment)
        .filter_by(debt_id=debt.id)
        .order_by(DebtRepayment.payment_date.asc(), DebtRepayment.id.asc())
    ).scalars().all()
    return debt, payments


def _move_to_paid(debt_id: int, amount: Decimal):
    """
    Shift amount from balance_owed to amount_payable_now in one statement.
    Returns the number of rows changed, which is zero when the balance
    would go below zero.
    """
    result = db.session.execute(
        sa.update(Debt)
        .where(Debt.id == debt_id, Debt.balance_owed >= amount)
        .values(
            balance_owed=Debt.balance_owed - amount,
            amount_payable_now=Debt.amount_payable_now + amount,
        )
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


def _move_to_owed(debt_id: int, amount: Decimal) -> None:
    """
    Shift amount back from amount_payable_now to balance_owed.
    amount_payable_now is floored at zero and balance_owed is derived from
    it, so the two still add up to total_price when the debt was edited
    after the payment.
    """
    paid_after = sa.case(
        (Debt.amount_payable_now - amount < 0, 0),
        else_=Debt.amount_payable_now - amount,
    )
    db.session.execute(
        sa.update(Debt)
        .where(Debt.id == debt_id)
        .values(
            amount_payable_now=paid_after,
            balance_owed=Debt.total_price - paid_after,
        )
        .execution_options(synchronize_session="fetch")
    )


def create_repayment(debt_id, amount, payment_date, seller_name: Optional[str] = None) -> DebtRepayment:
    if not debt_id or not payment_date or amount is None:
        raise ValidationError("debt_id, payment_date, and amount are required")
    amount = to_decimal(amount, "amount", positive=True)

    debt = get_debt(to_int(debt_id, "debt_id", minimum=1))
    if amount > debt.balance_owed:
        raise ExceedsBalance(debt.balance_owed, amount)

    with atomic("creating repayment"):
        if not _move_to_paid(debt.id, amount):
            db.session.refresh(debt)
            raise ExceedsBalance(debt.balance_owed, amount)

        repayment = DebtRepayment(
            debt_id=debt.id,
            payment_date=str(payment_date),
            amount=amount,
            seller_name=seller_name or "",
        )
        db.session.add(repayment)
        db.session.flush()
        repayment.receipt_number = format_receipt_number(repayment.id)

    logger.info("Repayment %s of %s recorded on debt #%s", repayment.receipt_number, amount, debt_id)
    return repayment


def update_repayment(repayment_id: int, amount=None, payment_date=None, seller_name=None) -> DebtRepayment:
    """
    Re-apply a repayment with a new amount and/or date. Only the difference
    moves: a raise is taken from balance_owed, a cut goes back to it with
    the same floor as a delete.
    """
    repayment = get_repayment(repayment_id)
    new_amount = repayment.amount
    if amount is not None:
        new_amount = to_decimal(amount, "amount", positive=True)

    debt = repayment.debt
    if debt is None:
        raise DebtNotFound(repayment.debt_id)

    diff = new_amount - repayment.amount
    if debt.balance_owed - diff < 0:
        raise NegativeBalance(balance_owed=debt.balance_owed, amount=new_amount)

    with atomic("updating repayment"):
        if diff > 0:
            if not _move_to_paid(debt.id, diff):
                raise NegativeBalance(balance_owed=debt.balance_owed, amount=new_amount)
        elif diff < 0:
            _move_to_owed(debt.id, -diff)

        repayment.amount = new_amount
        if payment_date:
            repayment.payment_date = str(payment_date)
        if seller_name is not None:
            repayment.seller_name = seller_name

    return repayment


def delete_repayment(repayment_id: int) -> None:
    """Reverse a repayment and remove it."""
    repayment = get_repayment(repayment_id)
    debt_id, amount = repayment.debt_id, repayment.amount

    with atomic("deleting repayment"):
        _move_to_owed(debt_id, amount)
        db.session.delete(repayment)

    logger.info("Repayment #%s (%s) reversed on debt #%s", repayment_id, amount, debt_id)
