import pytest

from accountant import db
from accountant.exceptions import (
    DebtNotFound,
    ExceedsBalance,
    NegativeBalance,
    NotFound,
    ValidationError,
)
from accountant.ledger import balance, stock
from accountant.models import Debt


@pytest.fixture
def debt(make_lot, sale_payload):
    """A 1000 credit sale with nothing paid yet."""
    make_lot(pcs=10, unit_price=50)
    return stock.create_sale("debt", sale_payload(pcs=4, unit_price=250, client_name="Awa"))


def _reload(debt_id):
    db.session.expire_all()
    return db.session.get(Debt, debt_id)


def _assert_balanced(debt):
    assert debt.balance_owed + debt.amount_payable_now == debt.total_price


def test_repayment_moves_money_to_paid(debt):
    repayment = balance.create_repayment(debt.id, 400, "2024-01-10")

    debt = _reload(debt.id)
    assert debt.balance_owed == 600
    assert debt.amount_payable_now == 400
    assert debt.status == "partially_paid"
    assert repayment.receipt_number == f"REPAY-{repayment.id:06d}"
    _assert_balanced(debt)


def test_full_repayment_settles_debt(debt):
    balance.create_repayment(debt.id, 1000, "2024-01-10")

    debt = _reload(debt.id)
    assert debt.balance_owed == 0
    assert debt.status == "settled"


def test_repayment_above_balance_is_rejected(debt):
    balance.create_repayment(debt.id, 400, "2024-01-10")

    with pytest.raises(ExceedsBalance) as excinfo:
        balance.create_repayment(debt.id, 601, "2024-01-11")

    assert excinfo.value.details["balance_owed"] == 600
    debt = _reload(debt.id)
    assert debt.balance_owed == 600
    assert len(debt.repayments) == 1


@pytest.mark.parametrize("amount", [0, -5, "abc", None])
def test_repayment_amount_must_be_positive(debt, amount):
    with pytest.raises(ValidationError):
        balance.create_repayment(debt.id, amount, "2024-01-10")


def test_repayment_on_missing_debt(app):
    with pytest.raises(DebtNotFound):
        balance.create_repayment(42, 10, "2024-01-10")


def test_editing_repayment_reapplies_difference(debt):
    repayment = balance.create_repayment(debt.id, 400, "2024-01-10")

    balance.update_repayment(repayment.id, amount=300)
    debt = _reload(debt.id)
    assert debt.balance_owed == 700
    assert debt.amount_payable_now == 300
    _assert_balanced(debt)

    balance.update_repayment(repayment.id, amount=1000, payment_date="2024-01-12")
    debt = _reload(debt.id)
    assert debt.balance_owed == 0
    assert debt.repayments[0].payment_date == "2024-01-12"


def test_editing_repayment_cannot_overpay(debt):
    first = balance.create_repayment(debt.id, 400, "2024-01-10")
    balance.create_repayment(debt.id, 500, "2024-01-11")

    with pytest.raises(NegativeBalance):
        balance.update_repayment(first.id, amount=600)

    debt = _reload(debt.id)
    assert debt.balance_owed == 100
    _assert_balanced(debt)


def test_deleting_repayment_restores_balance(debt):
    repayment = balance.create_repayment(debt.id, 400, "2024-01-10")

    balance.delete_repayment(repayment.id)

    debt = _reload(debt.id)
    assert debt.balance_owed == 1000
    assert debt.amount_payable_now == 0
    assert debt.status == "open"
    with pytest.raises(NotFound):
        balance.get_repayment(repayment.id)


def test_deleting_repayment_after_debt_edit_keeps_totals_consistent(debt):
    repayment = balance.create_repayment(debt.id, 400, "2024-01-10")
    stock.update_sale("debt", debt.id, {"amount_payable_now": 100})

    balance.delete_repayment(repayment.id)

    debt = _reload(debt.id)
    assert debt.amount_payable_now == 0
    assert debt.balance_owed == 1000
    _assert_balanced(debt)


def test_lowering_repayment_after_debt_edit_keeps_totals_consistent(debt):
    repayment = balance.create_repayment(debt.id, 400, "2024-01-10")
    stock.update_sale("debt", debt.id, {"amount_payable_now": 100})

    balance.update_repayment(repayment.id, amount=50)

    debt = _reload(debt.id)
    assert debt.amount_payable_now == 0
    assert debt.balance_owed == 1000
    _assert_balanced(debt)


def test_lowering_repayment_moves_only_the_difference(debt):
    repayment = balance.create_repayment(debt.id, 400, "2024-01-10")

    balance.update_repayment(repayment.id, amount=150)

    debt = _reload(debt.id)
    assert debt.amount_payable_now == 150
    assert debt.balance_owed == 850
    _assert_balanced(debt)


def test_find_debt_by_receipt(debt):
    balance.create_repayment(debt.id, 100, "2024-01-12")
    balance.create_repayment(debt.id, 200, "2024-01-10")

    found, payments = balance.find_debt_by_receipt(f"debt-{debt.id:06d}")

    assert found.id == debt.id
    assert [p.payment_date for p in payments] == ["2024-01-10", "2024-01-12"]


@pytest.mark.parametrize("receipt", ["", "REPAY-000001", "DEBT-abc"])
def test_find_debt_by_malformed_receipt(app, receipt):
    with pytest.raises(ValidationError):
        balance.find_debt_by_receipt(receipt)


def test_find_debt_by_unknown_receipt(app):
    with pytest.raises(NotFound):
        balance.find_debt_by_receipt("DEBT-000099")


def test_deleting_debt_removes_its_repayments(debt):
    balance.create_repayment(debt.id, 100, "2024-01-10")

    stock.delete_sale("debt", debt.id)

    assert balance.list_repayments() == []
