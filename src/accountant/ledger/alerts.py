"""
Low-stock alerts and manual inventory adjustments.
"""

import logging
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import NotFound
from accountant.ledger.store import atomic
from accountant.models import PurchaseLot, Income, Debt
from accountant.utils import to_int

logger = logging.getLogger(__name__)


def pcs_sold_by_name() -> dict:
    """Units sold per item name, cash and credit sales together."""
    sold = {}
    for model in (Income, Debt):
        rows = db.session.execute(
            sa.select(model.name, sa.func.coalesce(sa.func.sum(model.pcs), 0))
            .group_by(model.name)
        ).all()
        for name, pcs in rows:
            sold[name] = sold.get(name, 0) + int(pcs)
    return sold


def _stock_row(lot: PurchaseLot, sold: dict) -> dict:
    data = lot.to_dict()
    data["pcs_sold"] = sold.get(lot.name, 0)
    return data


def get_deficiency_alerts() -> list:
    """Lots with a threshold set whose stock has fallen to it or below."""
    lots = db.session.execute(
        sa.select(PurchaseLot)
        .where(
            PurchaseLot.stock_deficiency_threshold > 0,
            PurchaseLot.available_stock <= PurchaseLot.stock_deficiency_threshold,
        )
        .order_by(PurchaseLot.available_stock.asc(), PurchaseLot.id.asc())
    ).scalars().all()
    sold = pcs_sold_by_name()
    return [_stock_row(lot, sold) for lot in lots]


def get_inventory_stock() -> list:
    lots = db.session.execute(
        sa.select(PurchaseLot).order_by(PurchaseLot.name.asc(), PurchaseLot.id.asc())
    ).scalars().all()
    sold = pcs_sold_by_name()
    return [_stock_row(lot, sold) for lot in lots]


def _get_lot(lot_id: int) -> PurchaseLot:
    lot = db.session.get(PurchaseLot, lot_id)
    if lot is None:
        raise NotFound("Purchase not found", id=lot_id)
    return lot


def update_threshold(lot_id: int, threshold) -> PurchaseLot:
    lot = _get_lot(lot_id)
    threshold = to_int(threshold, "stock_deficiency_threshold", minimum=0)
    with atomic("updating stock deficiency threshold"):
        lot.stock_deficiency_threshold = threshold
    return lot


def set_available_stock(lot_id: int, available_stock) -> PurchaseLot:
    """Manual stock count correction. Sales history is left untouched."""
    lot = _get_lot(lot_id)
    available_stock = to_int(available_stock, "available_stock", minimum=0)
    previous = lot.available_stock
    with atomic("updating available stock"):
        lot.available_stock = available_stock
    logger.info("Lot #%s (%s) stock set %s -> %s", lot_id, lot.name, previous, available_stock)
    return lot
