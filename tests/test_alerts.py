import pytest

from accountant.exceptions import NotFound, ValidationError
from accountant.ledger import alerts, purchases, stock


def test_lot_at_or_below_threshold_alerts(make_lot, sale_payload):
    low = make_lot(name="Oil 5L", pcs=10, stock_deficiency_threshold=5)
    stock.create_sale("income", sale_payload(name="Oil 5L", pcs=7))

    [row] = alerts.get_deficiency_alerts()

    assert row["id"] == low.id
    assert row["available_stock"] == 3
    assert row["pcs_sold"] == 7


def test_lot_above_threshold_does_not_alert(make_lot, sale_payload):
    make_lot(name="Oil 5L", pcs=10, stock_deficiency_threshold=5)
    stock.create_sale("income", sale_payload(name="Oil 5L", pcs=4))

    assert alerts.get_deficiency_alerts() == []


def test_stock_equal_to_threshold_alerts(make_lot):
    make_lot(pcs=5, stock_deficiency_threshold=5)

    assert len(alerts.get_deficiency_alerts()) == 1


def test_zero_threshold_never_alerts(make_lot, sale_payload):
    make_lot(pcs=1)
    stock.create_sale("income", sale_payload(pcs=1))

    assert alerts.get_deficiency_alerts() == []


def test_alerts_sorted_by_available_stock(make_lot):
    make_lot(name="Soap", pcs=4, stock_deficiency_threshold=5)
    make_lot(name="Sugar", pcs=1, stock_deficiency_threshold=5)
    make_lot(name="Salt", pcs=2, stock_deficiency_threshold=5)

    names = [row["name"] for row in alerts.get_deficiency_alerts()]

    assert names == ["Sugar", "Salt", "Soap"]


def test_pcs_sold_counts_cash_and_credit_sales(make_lot, sale_payload):
    make_lot(name="Soap", pcs=20, stock_deficiency_threshold=15)
    stock.create_sale("income", sale_payload(name="Soap", pcs=3))
    stock.create_sale("debt", sale_payload(name="Soap", pcs=4))

    [row] = alerts.get_deficiency_alerts()

    assert row["pcs_sold"] == 7
    assert row["available_stock"] == 13


def test_inventory_stock_lists_every_lot_by_name(make_lot, sale_payload):
    make_lot(name="Sugar", pcs=3)
    make_lot(name="Beans", pcs=3)
    stock.create_sale("income", sale_payload(name="Sugar", pcs=1))

    rows = alerts.get_inventory_stock()

    assert [row["name"] for row in rows] == ["Beans", "Sugar"]
    assert [row["pcs_sold"] for row in rows] == [0, 1]


def test_update_threshold(make_lot):
    lot = make_lot(pcs=3)
    assert alerts.get_deficiency_alerts() == []

    alerts.update_threshold(lot.id, 5)

    assert [row["id"] for row in alerts.get_deficiency_alerts()] == [lot.id]


@pytest.mark.parametrize("value", [-1, None, "x"])
def test_invalid_threshold(make_lot, value):
    lot = make_lot()
    with pytest.raises(ValidationError):
        alerts.update_threshold(lot.id, value)


def test_manual_stock_override(make_lot):
    lot = make_lot(pcs=10)

    alerts.set_available_stock(lot.id, 4)
    assert purchases.get_purchase(lot.id).available_stock == 4

    with pytest.raises(ValidationError):
        alerts.set_available_stock(lot.id, -1)


def test_override_missing_lot(app):
    with pytest.raises(NotFound):
        alerts.set_available_stock(1234, 1)
