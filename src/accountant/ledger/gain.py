"""
Gain/loss over a date range.

The cost of a sale is the unit price of a lot with the same item name: the
first one in purchase order (date, then id, newest first). That lot is not
necessarily the one whose stock the sale consumed.
"""

from decimal import Decimal
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import ValidationError
from accountant.models import PurchaseLot, Income, Debt, to_float
from accountant.utils import CENT, parse_date_param

ZERO = Decimal("0.00")


def resolve_range(date=None, start_date=None, end_date=None):
    """A single date wins over a start/end pair."""
    if date:
        start_date = end_date = date
    if not start_date or not end_date:
        raise ValidationError(
            "Provide `date` or both `startDate` and `endDate` in YYYY-MM-DD format"
        )
    start_date = parse_date_param(start_date, "startDate")
    end_date = parse_date_param(end_date, "endDate")
    if start_date > end_date:
        raise ValidationError("startDate must not be after endDate")
    return start_date, end_date


def _unit_costs() -> dict:
    lots = db.session.execute(
        sa.select(PurchaseLot).order_by(PurchaseLot.date.desc(), PurchaseLot.id.desc())
    ).scalars().all()
    costs = {}
    for lot in lots:
        costs.setdefault(lot.name, lot.unit_price or ZERO)
    return costs


def _sales_in_range(model, start_date: str, end_date: str):
    day = sa.func.substr(model.date, 1, 10)
    return db.session.execute(
        sa.select(model)
        .where(day >= start_date, day <= end_date)
        .order_by(model.date.asc(), model.id.asc())
    ).scalars().all()


def _gain_row(sale, source: str, row_id, costs: dict) -> dict:
    pcs = sale.pcs or 0
    cost_unit_price = costs.get(sale.name, ZERO)
    selling_unit_price = sale.unit_price or ZERO
    total_cost = (cost_unit_price * pcs).quantize(CENT)
    total_sale = sale.total_price or (selling_unit_price * pcs).quantize(CENT)
    return {
        "id": row_id,
        "source": source,
        "date": str(sale.date or ""),
        "name": sale.name,
        "pcs": pcs,
        "cost_unit_price": cost_unit_price,
        "selling_unit_price": selling_unit_price,
        "total_cost": total_cost,
        "total_sale": total_sale,
        "gain_loss": total_sale - total_cost,
    }


def get_gain_loss(start_date: str, end_date: str) -> dict:
    """
    Per-sale gain/loss rows for cash and credit sales dated within
    [start_date, end_date], plus their totals.
    """
    start_date, end_date = resolve_range(start_date=start_date, end_date=end_date)
    costs = _unit_costs()

    rows = [
        _gain_row(sale, "income", sale.id, costs)
        for sale in _sales_in_range(Income, start_date, end_date)
    ]
    rows.extend(
        _gain_row(debt, "debt", f"debt-{debt.id}", costs)
        for debt in _sales_in_range(Debt, start_date, end_date)
    )
    # full date string, so times order rows within a day; ties keep query order
    rows.sort(key=lambda row: row["date"])

    totals = {
        "total_cost": sum((row["total_cost"] for row in rows), ZERO),
        "total_sale": sum((row["total_sale"] for row in rows), ZERO),
        "total_gain_loss": sum((row["gain_loss"] for row in rows), ZERO),
    }
    return {
        "gain": rows,
        "totals": totals,
        "startDate": start_date,
        "endDate": end_date,
    }


def serialize_report(report: dict) -> dict:
    """Decimal amounts to JSON numbers."""
    money_keys = (
        "cost_unit_price",
        "selling_unit_price",
        "total_cost",
        "total_sale",
        "gain_loss",
    )
    rows = []
    for row in report["gain"]:
        row = dict(row)
        for key in money_keys:
            row[key] = to_float(row[key])
        rows.append(row)
    return {
        "gain": rows,
        "totals": {key: to_float(value) for key, value in report["totals"].items()},
        "startDate": report["startDate"],
        "endDate": report["endDate"],
    }
