import logging
import threading

import pytest
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import (
    InsufficientStock,
    ItemNotFound,
    NegativeBalance,
    NotFound,
    StorageError,
    ValidationError,
)
from accountant.ledger import stock, purchases
from accountant.models import Income, Debt, PurchaseLot


def _stock_of(lot_id):
    db.session.expire_all()
    return db.session.get(PurchaseLot, lot_id).available_stock


def _count(model):
    return db.session.execute(sa.select(sa.func.count()).select_from(model)).scalar_one()


def test_cash_sale_takes_units_from_lot(make_lot, sale_payload):
    lot = make_lot(pcs=10)
    sale = stock.create_sale("income", sale_payload(pcs=3, unit_price=15))

    assert sale.total_price == 45
    assert _stock_of(lot.id) == 7


def test_credit_sale_takes_units_from_lot(make_lot, sale_payload):
    lot = make_lot(pcs=10)
    debt = stock.create_sale("debt", sale_payload(pcs=4, unit_price=250, amount_payable_now=200))

    assert _stock_of(lot.id) == 6
    assert debt.total_price == 1000
    assert debt.balance_owed == 800
    assert debt.status == "partially_paid"


def test_oversell_is_rejected_and_nothing_written(make_lot, sale_payload):
    lot = make_lot(pcs=5)

    with pytest.raises(InsufficientStock) as excinfo:
        stock.create_sale("income", sale_payload(pcs=6))

    assert excinfo.value.details == {"available": 5, "requested": 6}
    assert excinfo.value.message == "Insufficient stock. Available: 5, Requested: 6"
    assert _stock_of(lot.id) == 5
    assert _count(Income) == 0


def test_selling_exactly_the_remaining_stock(make_lot, sale_payload):
    lot = make_lot(pcs=2)
    stock.create_sale("income", sale_payload(pcs=2))
    assert _stock_of(lot.id) == 0

    with pytest.raises(InsufficientStock):
        stock.create_sale("debt", sale_payload(pcs=1))


def test_unknown_item_is_rejected(make_lot, sale_payload):
    make_lot(name="Rice 25kg")

    with pytest.raises(ItemNotFound):
        stock.create_sale("income", sale_payload(name="Sugar 1kg"))
    assert _count(Income) == 0


def test_item_names_match_exactly(make_lot, sale_payload):
    make_lot(name="Rice 25kg")

    with pytest.raises(ItemNotFound):
        stock.create_sale("income", sale_payload(name="rice 25kg"))


def test_latest_lot_with_the_same_name_is_used(make_lot, sale_payload):
    older = make_lot(pcs=10, date="2024-01-01")
    newer = make_lot(pcs=3, date="2023-12-01")

    stock.create_sale("income", sale_payload(pcs=2))

    assert _stock_of(older.id) == 10
    assert _stock_of(newer.id) == 1


def test_latest_lot_is_used_even_when_older_lot_has_stock(make_lot, sale_payload):
    older = make_lot(pcs=10)
    newer = make_lot(pcs=1)

    with pytest.raises(InsufficientStock):
        stock.create_sale("income", sale_payload(pcs=2))
    assert _stock_of(older.id) == 10
    assert _stock_of(newer.id) == 1


@pytest.mark.parametrize("kind", ["income", "debt"])
def test_delete_sale_restores_stock(kind, make_lot, sale_payload):
    lot = make_lot(pcs=10)
    sale_id = stock.create_sale(kind, sale_payload(pcs=4)).id
    assert _stock_of(lot.id) == 6

    stock.delete_sale(kind, sale_id)

    assert _stock_of(lot.id) == 10
    with pytest.raises(NotFound):
        stock.get_sale(kind, sale_id)


def test_delete_sale_without_matching_lot_still_deletes(make_lot, sale_payload, caplog):
    lot = make_lot(pcs=10)
    sale = stock.create_sale("income", sale_payload(pcs=1))
    purchases.delete_purchase(lot.id)

    with caplog.at_level(logging.WARNING):
        stock.delete_sale("income", sale.id)

    assert _count(Income) == 0
    assert "not restored" in caplog.text


def test_delete_missing_sale(app):
    with pytest.raises(NotFound):
        stock.delete_sale("income", 999)


def test_update_quantity_moves_stock(make_lot, sale_payload):
    lot = make_lot(pcs=10)
    sale = stock.create_sale("income", sale_payload(pcs=3))

    stock.update_sale("income", sale.id, {"pcs": 5})
    assert _stock_of(lot.id) == 5
    assert sale.total_price == 75

    stock.update_sale("income", sale.id, {"pcs": 1})
    assert _stock_of(lot.id) == 9


def test_update_item_moves_stock_between_lots(make_lot, sale_payload):
    rice = make_lot(name="Rice 25kg", pcs=10)
    oil = make_lot(name="Oil 5L", pcs=10)
    sale = stock.create_sale("income", sale_payload(name="Rice 25kg", pcs=3))

    stock.update_sale("income", sale.id, {"name": "Oil 5L"})

    assert _stock_of(rice.id) == 10
    assert _stock_of(oil.id) == 7


def test_failed_update_leaves_sale_and_stock_unchanged(make_lot, sale_payload):
    lot = make_lot(pcs=5)
    sale = stock.create_sale("income", sale_payload(pcs=2))

    with pytest.raises(InsufficientStock):
        stock.update_sale("income", sale.id, {"pcs": 8})

    db.session.expire_all()
    assert stock.get_sale("income", sale.id).pcs == 2
    assert _stock_of(lot.id) == 3


def test_update_without_quantity_change_keeps_stock(make_lot, sale_payload):
    lot = make_lot(pcs=5)
    sale = stock.create_sale("income", sale_payload(pcs=2))

    stock.update_sale("income", sale.id, {"client_name": "Mama Ngono", "unit_price": 20})

    assert _stock_of(lot.id) == 3
    assert sale.client_name == "Mama Ngono"
    assert sale.total_price == 40


@pytest.mark.parametrize("changes", [
    {"pcs": 0},
    {"pcs": "three"},
    {"unit_price": -1},
    {"unit_price": 0},
])
def test_invalid_sale_fields(changes, make_lot, sale_payload):
    make_lot()
    with pytest.raises(ValidationError):
        stock.create_sale("income", sale_payload(**changes))


def test_missing_required_fields(app):
    with pytest.raises(ValidationError) as excinfo:
        stock.create_sale("income", {"name": "Rice 25kg"})
    assert set(excinfo.value.details["fields"]) == {"date", "pcs", "unit_price"}


def test_debt_paid_now_cannot_exceed_total(make_lot, sale_payload):
    lot = make_lot(pcs=10)
    with pytest.raises(NegativeBalance):
        stock.create_sale("debt", sale_payload(pcs=1, unit_price=100, amount_payable_now=150))
    assert _stock_of(lot.id) == 10
    assert _count(Debt) == 0


def test_listing_is_newest_first(make_lot, sale_payload):
    make_lot(pcs=10)
    first = stock.create_sale("income", sale_payload(date="2024-01-02"))
    second = stock.create_sale("income", sale_payload(date="2024-01-05"))
    third = stock.create_sale("income", sale_payload(date="2024-01-05"))

    assert [s.id for s in stock.list_sales("income")] == [third.id, second.id, first.id]


def test_concurrent_sales_of_the_last_unit(app, make_lot, sale_payload):
    lot = make_lot(pcs=1)
    barrier = threading.Barrier(2)
    outcomes = []

    def sell():
        with app.app_context():
            barrier.wait()
            try:
                stock.create_sale("income", sale_payload(pcs=1))
                outcomes.append("sold")
            except (InsufficientStock, StorageError) as e:
                outcomes.append(e.code)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=sell) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert outcomes.count("sold") == 1
    assert len(outcomes) == 2
    assert _stock_of(lot.id) == 0
    assert _count(Income) == 1
