"""
Purchase lots (inventory).
"""

import logging
from decimal import Decimal
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import NotFound
from accountant.ledger.store import atomic
from accountant.models import PurchaseLot
from accountant.utils import CENT, require_fields, to_decimal, to_int

logger = logging.getLogger(__name__)


def list_purchases():
    return db.session.execute(
        sa.select(PurchaseLot).order_by(PurchaseLot.date.desc(), PurchaseLot.id.desc())
    ).scalars().all()


def get_purchase(lot_id: int) -> PurchaseLot:
    lot = db.session.get(PurchaseLot, lot_id)
    if lot is None:
        raise NotFound("Purchase not found", id=lot_id)
    return lot


def create_purchase(payload: dict) -> PurchaseLot:
    """New lot; its whole quantity is available."""
    require_fields(payload, "date", "name", "pcs", "unit_price")
    pcs = to_int(payload["pcs"], "pcs", minimum=1)
    unit_price = to_decimal(payload["unit_price"], "unit_price", positive=True)

    threshold = 0
    if payload.get("stock_deficiency_threshold") not in (None, ""):
        threshold = to_int(
            payload["stock_deficiency_threshold"], "stock_deficiency_threshold"
        )

    lot = PurchaseLot(
        date=str(payload["date"]),
        name=str(payload["name"]).strip(),
        pcs=pcs,
        unit_price=unit_price,
        total_amount=(Decimal(pcs) * unit_price).quantize(CENT),
        description=payload.get("description") or "",
        supplier_name=payload.get("supplier_name") or "",
        available_stock=pcs,
        stock_deficiency_threshold=threshold,
    )
    with atomic("creating purchase"):
        db.session.add(lot)

    logger.info("Purchase #%s: %sx %s", lot.id, lot.pcs, lot.name)
    return lot


def update_purchase(lot_id: int, payload: dict) -> PurchaseLot:
    """
    Partial update. A new pcs shifts available_stock by the same amount,
    never below zero.
    """
    lot = get_purchase(lot_id)

    pcs = lot.pcs
    if payload.get("pcs") is not None:
        pcs = to_int(payload["pcs"], "pcs", minimum=1)
    unit_price = lot.unit_price
    if payload.get("unit_price") is not None:
        unit_price = to_decimal(payload["unit_price"], "unit_price", positive=True)
    threshold = lot.stock_deficiency_threshold
    if payload.get("stock_deficiency_threshold") is not None:
        threshold = to_int(
            payload["stock_deficiency_threshold"], "stock_deficiency_threshold"
        )

    with atomic("updating purchase"):
        if pcs != lot.pcs:
            lot.available_stock = max(0, lot.available_stock + pcs - lot.pcs)
        if payload.get("date"):
            lot.date = str(payload["date"])
        if payload.get("name"):
            lot.name = str(payload["name"]).strip()
        for key in ("description", "supplier_name"):
            if payload.get(key) is not None:
                setattr(lot, key, payload[key])
        lot.pcs = pcs
        lot.unit_price = unit_price
        lot.total_amount = (Decimal(pcs) * unit_price).quantize(CENT)
        lot.stock_deficiency_threshold = threshold

    return lot


def delete_purchase(lot_id: int) -> None:
    lot = get_purchase(lot_id)
    name = lot.name
    with atomic("deleting purchase"):
        db.session.delete(lot)
    logger.info("Purchase #%s (%s) deleted", lot_id, name)
