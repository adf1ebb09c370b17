"""
Typed errors raised by the ledger services.

Every error carries a machine-readable ``code``, the HTTP status the API
answers with, a human-readable message and optional structured details.

    LedgerError
    +-- NotFound
    |   +-- ItemNotFound
    |   +-- DebtNotFound
    +-- ValidationError
    +-- AuthenticationFailed
    +-- Conflict
    +-- InsufficientStock
    +-- ExceedsBalance
    +-- NegativeBalance
    +-- StorageError
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"success": False, "error": self.code, "message": self.message}
        for key, value in self.details.items():
            payload[key] = float(value) if isinstance(value, Decimal) else value
        return payload


class NotFound(LedgerError):
    code = "not_found"
    status_code = 404


class ItemNotFound(NotFound):
    """No purchase lot carries the requested item name."""

    code = "item_not_found"
    status_code = 400

    def __init__(self, name: str):
        super().__init__("Item not found in inventory", name=name)


class DebtNotFound(NotFound):
    code = "debt_not_found"

    def __init__(self, debt_id):
        super().__init__("Debt not found", debt_id=debt_id)


class ValidationError(LedgerError):
    code = "validation_error"


class Conflict(LedgerError):
    code = "conflict"
    status_code = 409


class AuthenticationFailed(LedgerError):
    code = "invalid_credentials"
    status_code = 401


class InsufficientStock(LedgerError):
    code = "insufficient_stock"

    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}",
            available=available,
            requested=requested,
        )


class ExceedsBalance(LedgerError):
    code = "exceeds_balance"

    def __init__(self, balance_owed, amount):
        super().__init__(
            f"Amount cannot exceed balance owed ({balance_owed})",
            balance_owed=balance_owed,
            amount=amount,
        )


class NegativeBalance(LedgerError):
    code = "negative_balance"

    def __init__(self, message: str = "Resulting balance cannot be negative", **details):
        super().__init__(message, **details)


class StorageError(LedgerError):
    """The database rejected or failed a write."""

    code = "storage_error"
    status_code = 503
