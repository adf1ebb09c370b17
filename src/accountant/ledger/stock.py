"""
Stock consistency for cash and credit sales.

A sale is matched to the most recently created purchase lot with the same
item name. Reserving stock is a single conditional UPDATE
(available_stock >= pcs), so two concurrent sales can never both take the
last units; the sale row and the stock change commit together.
"""

import logging
from decimal import Decimal
from typing import Optional
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import (
    ItemNotFound,
    InsufficientStock,
    NegativeBalance,
    NotFound,
    ValidationError,
)
from accountant.ledger.store import atomic
from accountant.models import PurchaseLot, Income, Debt
from accountant.utils import CENT, require_fields, to_decimal, to_int

logger = logging.getLogger(__name__)

SALE_MODELS = {
    "income": Income,
    "debt": Debt,
}

SALE_LABELS = {
    "income": "Income",
    "debt": "Debt",
}

OPTIONAL_TEXT_FIELDS = (
    "description",
    "customer_signature",
    "electronic_signature",
    "client_name",
    "client_phone",
    "seller_name",
)


def get_sale_model(kind: str):
    try:
        return SALE_MODELS[kind]
    except KeyError:
        raise ValidationError(f"Unknown sale kind: {kind}", kind=kind)


# ── Lot matching and stock movements ─────────────────────────────────────────

def find_lot(name: str) -> Optional[PurchaseLot]:
    """Most recently created lot carrying this exact item name."""
    return db.session.execute(
        sa.select(PurchaseLot)
        .filter_by(name=name)
        .order_by(PurchaseLot.id.desc())
        .limit(1)
    ).scalar_one_or_none()


def current_stock(lot_id: int) -> int:
    return db.session.execute(
        sa.select(PurchaseLot.available_stock).where(PurchaseLot.id == lot_id)
    ).scalar_one()


def reserve_stock(name: str, pcs: int) -> PurchaseLot:
    """
    Take pcs units from the lot matching name. The check and the decrement
    are one statement; no row updated means the stock was not there.
    """
    lot = find_lot(name)
    if lot is None:
        raise ItemNotFound(name)

    result = db.session.execute(
        sa.update(PurchaseLot)
        .where(PurchaseLot.id == lot.id, PurchaseLot.available_stock >= pcs)
        .values(available_stock=PurchaseLot.available_stock - pcs)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        raise InsufficientStock(current_stock(lot.id), pcs)
    return lot


def restore_stock(name: str, pcs: int) -> Optional[PurchaseLot]:
    """Give pcs units back to the lot matching name, if there still is one."""
    lot = find_lot(name)
    if lot is None:
        logger.warning("No inventory lot named %r, %s units not restored", name, pcs)
        return None

    db.session.execute(
        sa.update(PurchaseLot)
        .where(PurchaseLot.id == lot.id)
        .values(available_stock=PurchaseLot.available_stock + pcs)
        .execution_options(synchronize_session="fetch")
    )
    return lot


# ── Field validation ─────────────────────────────────────────────────────────

def _price_total(pcs: int, unit_price: Decimal) -> Decimal:
    return (Decimal(pcs) * unit_price).quantize(CENT)


def _debt_amounts(total_price: Decimal, amount_payable_now: Decimal):
    if amount_payable_now > total_price:
        raise NegativeBalance(
            "Amount payable now cannot exceed the total price",
            total_price=total_price,
            amount_payable_now=amount_payable_now,
        )
    return total_price - amount_payable_now


def build_sale_fields(kind: str, payload: dict) -> dict:
    """Validate a create payload and compute the amounts fixed at write time."""
    require_fields(payload, "date", "name", "pcs", "unit_price")

    pcs = to_int(payload["pcs"], "pcs", minimum=1)
    unit_price = to_decimal(payload["unit_price"], "unit_price", positive=True)

    fields = {
        "date": str(payload["date"]),
        "name": str(payload["name"]).strip(),
        "pcs": pcs,
        "unit_price": unit_price,
        "total_price": _price_total(pcs, unit_price),
    }
    for key in OPTIONAL_TEXT_FIELDS:
        fields[key] = payload.get(key) or ""

    if kind == "debt":
        if payload.get("total_price") not in (None, ""):
            fields["total_price"] = to_decimal(payload["total_price"], "total_price")
        amount_payable_now = to_decimal(
            payload.get("amount_payable_now") or 0, "amount_payable_now"
        )
        fields["amount_payable_now"] = amount_payable_now
        fields["balance_owed"] = _debt_amounts(fields["total_price"], amount_payable_now)

    return fields


# ── Sale lifecycle ───────────────────────────────────────────────────────────

def list_sales(kind: str):
    model = get_sale_model(kind)
    return db.session.execute(
        sa.select(model).order_by(model.date.desc(), model.id.desc())
    ).scalars().all()


def get_sale(kind: str, sale_id: int):
    model = get_sale_model(kind)
    sale = db.session.get(model, sale_id)
    if sale is None:
        raise NotFound(f"{SALE_LABELS[kind]} record not found", id=sale_id)
    return sale


def create_sale(kind: str, payload: dict):
    """
    Record a cash sale or a credit sale and take its units out of stock.

    Raises ItemNotFound when no lot carries the item name and
    InsufficientStock when the lot holds fewer than pcs units. Nothing is
    written in either case.
    """
    model = get_sale_model(kind)
    fields = build_sale_fields(kind, payload)

    with atomic(f"creating {kind} record"):
        reserve_stock(fields["name"], fields["pcs"])
        sale = model(**fields)
        db.session.add(sale)

    logger.info("%s #%s recorded: %sx %s", SALE_LABELS[kind], sale.id, sale.pcs, sale.name)
    return sale


def update_sale(kind: str, sale_id: int, payload: dict):
    """
    Apply a partial update. A change of item or quantity moves the stock:
    the old units go back to their lot and the new units are reserved, in
    the same transaction.
    """
    sale = get_sale(kind, sale_id)

    name = str(payload["name"]).strip() if payload.get("name") else sale.name
    pcs = sale.pcs
    if payload.get("pcs") is not None:
        pcs = to_int(payload["pcs"], "pcs", minimum=1)
    unit_price = sale.unit_price
    if payload.get("unit_price") is not None:
        unit_price = to_decimal(payload["unit_price"], "unit_price", positive=True)

    total_price = sale.total_price
    if pcs != sale.pcs or unit_price != sale.unit_price:
        total_price = _price_total(pcs, unit_price)

    if kind == "debt":
        if payload.get("total_price") is not None:
            total_price = to_decimal(payload["total_price"], "total_price")
        amount_payable_now = sale.amount_payable_now
        if payload.get("amount_payable_now") is not None:
            amount_payable_now = to_decimal(
                payload["amount_payable_now"], "amount_payable_now"
            )
        balance_owed = _debt_amounts(total_price, amount_payable_now)

    with atomic(f"updating {kind} record"):
        if name != sale.name or pcs != sale.pcs:
            restore_stock(sale.name, sale.pcs)
            reserve_stock(name, pcs)

        if payload.get("date"):
            sale.date = str(payload["date"])
        sale.name = name
        sale.pcs = pcs
        sale.unit_price = unit_price
        sale.total_price = total_price
        for key in OPTIONAL_TEXT_FIELDS:
            if key in payload and payload[key] is not None:
                setattr(sale, key, payload[key])
        if kind == "debt":
            sale.amount_payable_now = amount_payable_now
            sale.balance_owed = balance_owed

    return sale


def delete_sale(kind: str, sale_id: int) -> None:
    """Delete a sale and put its units back into the matching lot."""
    sale = get_sale(kind, sale_id)
    name, pcs = sale.name, sale.pcs

    with atomic(f"deleting {kind} record"):
        restore_stock(name, pcs)
        db.session.delete(sale)

    logger.info("%s #%s deleted, %s units of %s restored", SALE_LABELS[kind], sale_id, pcs, name)
