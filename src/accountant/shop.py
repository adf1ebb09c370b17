"""
Shop bookkeeping outside the stock ledger: expenses, display currencies
and the storefront configuration.
"""

import logging
from decimal import Decimal, InvalidOperation
import sqlalchemy as sa

from accountant import db
from accountant.exceptions import NotFound, ValidationError
from accountant.ledger.store import atomic
from accountant.models import (
    Currency,
    Expense,
    ensure_default_currency,
    get_store_configuration,
)
from accountant.utils import require_fields, to_decimal

logger = logging.getLogger(__name__)

BASE_CURRENCY = "FCFA"
MAX_STORE_ITEMS = 7


# ===========================================
# Expenses
# ===========================================

def list_expenses():
    return db.session.execute(
        sa.select(Expense).order_by(Expense.date.desc(), Expense.id.desc())
    ).scalars().all()


def get_expense(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        raise NotFound("Expense not found", id=expense_id)
    return expense


def create_expense(payload: dict) -> Expense:
    require_fields(payload, "date", "name", "amount")
    expense = Expense(
        date=str(payload["date"]),
        name=str(payload["name"]).strip(),
        amount=to_decimal(payload["amount"], "amount", positive=True),
        description=payload.get("description") or "",
    )
    with atomic("creating expense"):
        db.session.add(expense)
    return expense


def update_expense(expense_id: int, payload: dict) -> Expense:
    expense = get_expense(expense_id)
    amount = expense.amount
    if payload.get("amount") is not None:
        amount = to_decimal(payload["amount"], "amount", positive=True)

    with atomic("updating expense"):
        if payload.get("date"):
            expense.date = str(payload["date"])
        if payload.get("name"):
            expense.name = str(payload["name"]).strip()
        if payload.get("description") is not None:
            expense.description = payload["description"]
        expense.amount = amount
    return expense


def delete_expense(expense_id: int) -> None:
    expense = get_expense(expense_id)
    with atomic("deleting expense"):
        db.session.delete(expense)


# ===========================================
# Currencies
# ===========================================

def _conversion_rate(value) -> Decimal:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError("Conversion rate must be a number", field="conversion_rate_to_fcfa")
    if not rate.is_finite() or rate <= 0:
        raise ValidationError(
            "Conversion rate must be greater than 0", field="conversion_rate_to_fcfa"
        )
    return rate


def _code_taken(code: str, exclude_id=None) -> bool:
    query = sa.select(Currency.id).filter_by(code=code)
    if exclude_id is not None:
        query = query.where(Currency.id != exclude_id)
    return db.session.execute(query).first() is not None


def list_currencies():
    """FCFA first, then the default, then by name."""
    return db.session.execute(
        sa.select(Currency).order_by(
            sa.case((Currency.code == BASE_CURRENCY, 0), else_=1),
            Currency.is_default.desc(),
            Currency.name.asc(),
        )
    ).scalars().all()


def get_currency(currency_id: int) -> Currency:
    currency = db.session.get(Currency, currency_id)
    if currency is None:
        raise NotFound("Currency not found", id=currency_id)
    return currency


def get_default_currency() -> dict:
    currency = db.session.execute(
        sa.select(Currency).filter_by(is_default=True).limit(1)
    ).scalar_one_or_none()
    if currency is None:
        currency = db.session.execute(
            sa.select(Currency).filter_by(code=BASE_CURRENCY)
        ).scalar_one_or_none()
    if currency is None:
        return {
            "code": BASE_CURRENCY,
            "name": "Central African CFA Franc",
            "symbol": BASE_CURRENCY,
            "conversion_rate_to_fcfa": 1.0,
            "is_default": True,
        }
    return currency.to_dict()


def create_currency(payload: dict) -> Currency:
    if not payload.get("code") or not payload.get("name") or payload.get("conversion_rate_to_fcfa") is None:
        raise ValidationError("Code, name, and valid conversion rate are required")
    code = str(payload["code"]).strip().upper()
    rate = _conversion_rate(payload["conversion_rate_to_fcfa"])
    if _code_taken(code):
        raise ValidationError("Currency code already exists", code=code)

    currency = Currency(
        code=code,
        name=payload["name"],
        symbol=payload.get("symbol") or code,
        conversion_rate_to_fcfa=rate,
        is_default=False,
    )
    with atomic("creating currency"):
        db.session.add(currency)
    return currency


def update_currency(currency_id: int, payload: dict) -> Currency:
    currency = get_currency(currency_id)

    code = currency.code
    if payload.get("code"):
        code = str(payload["code"]).strip().upper()
        if code != currency.code and _code_taken(code, exclude_id=currency.id):
            raise ValidationError("Currency code already exists", code=code)
    rate = currency.conversion_rate_to_fcfa
    if payload.get("conversion_rate_to_fcfa") is not None:
        rate = _conversion_rate(payload["conversion_rate_to_fcfa"])

    with atomic("updating currency"):
        currency.code = code
        currency.name = payload.get("name") or currency.name
        if "symbol" in payload:
            currency.symbol = payload["symbol"]
        currency.conversion_rate_to_fcfa = rate
    return currency


def set_default_currency(currency_id: int) -> Currency:
    """Exactly one currency is the default afterwards."""
    currency = get_currency(currency_id)
    with atomic("setting default currency"):
        db.session.execute(
            sa.update(Currency)
            .values(is_default=sa.case((Currency.id == currency.id, True), else_=False))
            .execution_options(synchronize_session="fetch")
        )
    logger.info("Default currency is now %s", currency.code)
    return currency


def delete_currency(currency_id: int) -> None:
    currency = get_currency(currency_id)
    if currency.code == BASE_CURRENCY:
        raise ValidationError("FCFA currency cannot be deleted")

    was_default = currency.is_default
    with atomic("deleting currency"):
        db.session.delete(currency)
        if was_default:
            ensure_default_currency(BASE_CURRENCY).is_default = True


# ===========================================
# Storefront configuration
# ===========================================

def _clean_text(value):
    if not isinstance(value, str):
        return None
    return value.strip() or None


def update_app_name(app_name) -> dict:
    app_name = _clean_text(app_name)
    if not app_name:
        raise ValidationError("App name is required")
    with atomic("updating app name"):
        get_store_configuration().app_name = app_name
    return get_store_configuration().to_dict()


def update_store_configuration(payload: dict) -> dict:
    """
    Updates only the keys present: location, items (at most seven non-empty
    strings) and the two receipt texts. An empty text restores its default.
    """
    items = None
    if "items" in payload:
        items = payload["items"]
        if not isinstance(items, list):
            raise ValidationError("Items must be an array")
        if len(items) > MAX_STORE_ITEMS:
            raise ValidationError(f"Maximum {MAX_STORE_ITEMS} items allowed")
        items = [item.strip() for item in items if isinstance(item, str) and item.strip()]

    with atomic("updating configuration"):
        configuration = get_store_configuration()
        if "location" in payload:
            configuration.location = _clean_text(payload["location"])
        if items is not None:
            configuration.items = items
        if "receipt_thank_you_message" in payload:
            configuration.receipt_thank_you_message = _clean_text(
                payload["receipt_thank_you_message"]
            )
        if "receipt_items_received_message" in payload:
            configuration.receipt_items_received_message = _clean_text(
                payload["receipt_items_received_message"]
            )
    return get_store_configuration().to_dict()
