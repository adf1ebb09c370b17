from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import pytz
from flask import current_app

from accountant.exceptions import ValidationError

CENT = Decimal("0.01")


def to_decimal(value, field: str, positive: bool = False, allow_zero: bool = True) -> Decimal:
    """
    Parse a JSON number or numeric string into a Decimal rounded to cents.
    Raises ValidationError with the field name on bad input.
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)

    if positive and amount <= 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    if not allow_zero and amount == 0:
        raise ValidationError(f"{field} cannot be zero", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_int(value, field: str, minimum: int = 0) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    try:
        number = int(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a whole number", field=field)
    if number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    return number


def require_fields(payload: dict, *fields) -> None:
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}", fields=missing
        )


def parse_date_param(date_str, field: str = "date") -> str:
    """Validate a YYYY-MM-DD string and return it unchanged."""
    if not date_str:
        raise ValidationError(f"{field} is required (YYYY-MM-DD)", field=field)
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"{field} must use the YYYY-MM-DD format", field=field)
    return date_str


def get_app_timezone():
    return pytz.timezone(current_app.config.get("APP_TIMEZONE", "UTC"))


def local_now() -> datetime:
    """Current time in the shop's timezone."""
    return datetime.now(pytz.utc).astimezone(get_app_timezone())


def format_number(value, decimals: int = 2) -> str:
    """Format a number with thousand separators and decimal places."""
    if value is None:
        value = Decimal("0.00")
    if not isinstance(value, (int, float, Decimal)):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            value = Decimal("0.00")
    return f"{value:,.{decimals}f}"
