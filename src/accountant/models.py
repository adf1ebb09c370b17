"""
Shop Accountant Database Models

Ledger tables:
- purchases: inventory lots, each with its own available_stock counter
- income: cash sales, consume lot stock
- debts: credit sales, consume lot stock and carry a balance
- debt_repayments: payments against a debt

Sales are matched to lots by item name, not by foreign key.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
import sqlalchemy as sa
import sqlalchemy.orm as so

from accountant import db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_float(value) -> Optional[float]:
    return float(value) if value is not None else None


class TimestampMixin:
    created_at: so.Mapped[datetime] = so.mapped_column(
        sa.DateTime(timezone=True), default=utcnow
    )
    updated_at: so.Mapped[datetime] = so.mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ===========================================
# User Model
# ===========================================

class User(db.Model, UserMixin):
    __tablename__ = "users"

    id: so.Mapped[int] = so.mapped_column(primary_key=True, autoincrement=True)

    created_at: so.Mapped[datetime] = so.mapped_column(
        sa.DateTime(timezone=True), default=utcnow
    )

    username: so.Mapped[str] = so.mapped_column(
        sa.String(255), index=True, unique=True, nullable=False
    )
    full_name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False)
    phone: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100))
    email: so.Mapped[str] = so.mapped_column(
        sa.String(255), unique=True, nullable=False
    )
    password_hash: so.Mapped[str] = so.mapped_column(sa.String(256), nullable=False)

    def set_password(self, password: str) -> None:
        """Hash and set the user's password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.username}>"


# ===========================================
# PurchaseLot Model
# ===========================================

class PurchaseLot(TimestampMixin, db.Model):
    """
    One purchase of an item, tracked as a batch with its own stock counter.

    available_stock starts at pcs and moves with every Income/Debt carrying
    the same name. It must never drop below zero.
    """
    __tablename__ = "purchases"

    id: so.Mapped[int] = so.mapped_column(primary_key=True, autoincrement=True)

    date: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False, index=True)
    pcs: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False)
    unit_price: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(12, 2), nullable=False)
    total_amount: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(12, 2), nullable=False)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    supplier_name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))

    available_stock: so.Mapped[int] = so.mapped_column(
        sa.Integer, nullable=False, default=0
    )
    stock_deficiency_threshold: so.Mapped[int] = so.mapped_column(
        sa.Integer, nullable=False, default=0
    )

    __table_args__ = (
        sa.CheckConstraint("available_stock >= 0", name="ck_purchases_stock_non_negative"),
    )

    @property
    def is_deficient(self) -> bool:
        threshold = self.stock_deficiency_threshold or 0
        return threshold > 0 and self.available_stock <= threshold

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "pcs": self.pcs,
            "unit_price": to_float(self.unit_price),
            "total_amount": to_float(self.total_amount),
            "description": self.description,
            "supplier_name": self.supplier_name,
            "available_stock": self.available_stock,
            "stock_deficiency_threshold": self.stock_deficiency_threshold,
        }

    def __repr__(self) -> str:
        return f"<PurchaseLot #{self.id} {self.name}: {self.available_stock}/{self.pcs}>"


# ===========================================
# Sale Models (Income / Debt)
# ===========================================

class SaleMixin(TimestampMixin):
    """Columns shared by cash sales and credit sales."""

    id: so.Mapped[int] = so.mapped_column(primary_key=True, autoincrement=True)

    date: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False, index=True)
    pcs: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=1)
    unit_price: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(12, 2), nullable=False)
    total_price: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(12, 2), nullable=False)

    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    customer_signature: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    electronic_signature: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    client_name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))
    client_phone: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100))
    seller_name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "pcs": self.pcs,
            "unit_price": to_float(self.unit_price),
            "total_price": to_float(self.total_price),
            "description": self.description,
            "customer_signature": self.customer_signature,
            "electronic_signature": self.electronic_signature,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "seller_name": self.seller_name,
        }


class Income(SaleMixin, db.Model):
    """Cash sale."""
    __tablename__ = "income"

    def __repr__(self) -> str:
        return f"<Income #{self.id} {self.pcs}x {self.name}>"


class Debt(SaleMixin, db.Model):
    """Credit sale. balance_owed + amount_payable_now == total_price."""
    __tablename__ = "debts"

    amount_payable_now: so.Mapped[Decimal] = so.mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    balance_owed: so.Mapped[Decimal] = so.mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )

    repayments: so.Mapped[List["DebtRepayment"]] = so.relationship(
        back_populates="debt",
        cascade="all, delete-orphan",
        order_by="DebtRepayment.payment_date",
    )

    @property
    def receipt_number(self) -> str:
        return f"DEBT-{self.id:06d}"

    @property
    def status(self) -> str:
        """Derived from the balance, never stored."""
        if self.balance_owed <= 0:
            return "settled"
        if self.amount_payable_now > 0:
            return "partially_paid"
        return "open"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "amount_payable_now": to_float(self.amount_payable_now),
            "balance_owed": to_float(self.balance_owed),
            "receipt_number": self.receipt_number,
            "status": self.status,
        })
        return data

    def __repr__(self) -> str:
        return f"<Debt #{self.id} {self.name}: owes {self.balance_owed}>"


class DebtRepayment(TimestampMixin, db.Model):
    __tablename__ = "debt_repayments"

    id: so.Mapped[int] = so.mapped_column(primary_key=True, autoincrement=True)

    debt_id: so.Mapped[int] = so.mapped_column(
        sa.ForeignKey("debts.id"), nullable=False, index=True
    )
    debt: so.Mapped[Debt] = so.relationship(back_populates="repayments")

    payment_date: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False)
    amount: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(12, 2), nullable=False)
    receipt_number: so.Mapped[Optional[str]] = so.mapped_column(sa.String(20))
    seller_name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "debt_id": self.debt_id,
            "payment_date": self.payment_date,
            "amount": to_float(self.amount),
            "receipt_number": self.receipt_number,
            "seller_name": self.seller_name,
        }
        if self.debt is not None:
            data.update({
                "debt_date": self.debt.date,
                "item_name": self.debt.name,
                "total_price": to_float(self.debt.total_price),
                "client_name": self.debt.client_name,
                "client_phone": self.debt.client_phone,
                "debt_balance_after": to_float(self.debt.balance_owed),
            })
        return data

    def __repr__(self) -> str:
        return f"<DebtRepayment {self.receipt_number} {self.amount}>"


# ===========================================
# Expense Model
# ===========================================

class Expense(TimestampMixin, db.Model):
    __tablename__ = "expenses"

    id: so.Mapped[int] = so.mapped_column(primary_key=True, autoincrement=True)
    date: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False)
    amount: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(12, 2), nullable=False)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "amount": to_float(self.amount),
            "description": self.description,
        }


# ===========================================
# Currency Model
# ===========================================

class Currency(TimestampMixin, db.Model):
    """Display currencies, each with a rate against the FCFA base."""
    __tablename__ = "currencies"

    id: so.Mapped[int] = so.mapped_column(primary_key=True, autoincrement=True)
    code: so.Mapped[str] = so.mapped_column(sa.String(20), unique=True, nullable=False)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False)
    symbol: so.Mapped[Optional[str]] = so.mapped_column(sa.String(20))
    conversion_rate_to_fcfa: so.Mapped[Decimal] = so.mapped_column(
        sa.Numeric(18, 6), nullable=False, default=Decimal("1.0")
    )
    is_default: so.Mapped[bool] = so.mapped_column(default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "symbol": self.symbol,
            "conversion_rate_to_fcfa": to_float(self.conversion_rate_to_fcfa),
            "is_default": self.is_default,
        }


# ===========================================
# Storefront Configuration (singleton row)
# ===========================================

DEFAULT_THANK_YOU_MESSAGE = "Thank you for your business"
DEFAULT_ITEMS_RECEIVED_MESSAGE = "{customer} received the above items in good condition."


class StoreConfiguration(db.Model):
    __tablename__ = "configuration"

    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    app_name: so.Mapped[str] = so.mapped_column(
        sa.String(255), default="Shop Accountant"
    )
    location: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    items: so.Mapped[Optional[list]] = so.mapped_column(sa.JSON)
    receipt_thank_you_message: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    receipt_items_received_message: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    updated_at: so.Mapped[datetime] = so.mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        sa.CheckConstraint("id = 1", name="ck_configuration_singleton"),
    )

    def to_dict(self) -> dict:
        return {
            "app_name": self.app_name or "Shop Accountant",
            "location": self.location,
            "items": self.items or [],
            "receipt_thank_you_message": self.receipt_thank_you_message
            or DEFAULT_THANK_YOU_MESSAGE,
            "receipt_items_received_message": self.receipt_items_received_message
            or DEFAULT_ITEMS_RECEIVED_MESSAGE,
        }


# ===========================================
# Helper Functions
# ===========================================

def get_store_configuration() -> StoreConfiguration:
    """Return the configuration row, creating it on first use."""
    configuration = db.session.get(StoreConfiguration, 1)
    if configuration is None:
        configuration = StoreConfiguration(id=1, app_name="Shop Accountant")
        db.session.add(configuration)
        db.session.flush()
    return configuration


def ensure_default_currency(code: str = "FCFA") -> Currency:
    """Create the FCFA base currency as default if it is missing."""
    currency = db.session.execute(
        sa.select(Currency).filter_by(code=code)
    ).scalar_one_or_none()
    if currency is None:
        currency = Currency(
            code=code,
            name="Central African CFA Franc",
            symbol=code,
            conversion_rate_to_fcfa=Decimal("1.0"),
            is_default=True,
        )
        db.session.add(currency)
        db.session.flush()
    return currency
