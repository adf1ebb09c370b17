"""
Ledger services: stock, balances, gain/loss and alerts.

Route handlers call these functions and translate the LedgerError
subclasses they raise into JSON responses.
"""

from accountant.ledger.stock import create_sale, update_sale, delete_sale
from accountant.ledger.balance import (
    create_repayment,
    update_repayment,
    delete_repayment,
)
from accountant.ledger.gain import get_gain_loss
from accountant.ledger.alerts import get_deficiency_alerts

__all__ = [
    "create_sale",
    "update_sale",
    "delete_sale",
    "create_repayment",
    "update_repayment",
    "delete_repayment",
    "get_gain_loss",
    "get_deficiency_alerts",
]
