"""
Ledger field coercion.

Entries are typed in by hand from paper books, so numeric input is
deliberately permissive: anything that is not a usable number becomes 0
instead of failing the request. Every numeric wire field goes through
the functions below and nowhere else.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict

from bookkeeper.app.models.ledger_enums import PaymentType

ZERO = Decimal("0")

MONEY_PLACES = 2
QUANTITY_PLACES = 3

# Wire fields coerced as money / quantity / integer days
MONEY_FIELDS = ("debit", "credit", "amount", "rate", "loading", "other_expense_amount")
QUANTITY_FIELDS = ("quantity",)
INTEGER_FIELDS = ("mdays",)

# Text fields stored as "" rather than NULL
TEXT_FIELDS = (
    "description", "product_type", "bank_name", "cheque_no",
    "transaction_reference", "invoice_number", "other_expense_name",
)


def coerce_amount(value: Any, places: int = MONEY_PLACES) -> Decimal:
    """
    Coerce a wire value to a Decimal quantized to ``places``.

    Numbers and numeric strings convert; None, blanks, garbage, NaN and
    infinities become 0. Never raises.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(str(value).strip())
        if not number.is_finite():
            return ZERO
        return number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return ZERO


def coerce_quantity(value: Any) -> Decimal:
    return coerce_amount(value, places=QUANTITY_PLACES)


def coerce_int(value: Any) -> int:
    """Coerce to int, truncating toward zero; invalid input becomes 0."""
    return int(coerce_amount(value, places=6))


def coerce_numeric_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``fields`` with every present numeric field coerced."""
    coerced = dict(fields)
    for name in MONEY_FIELDS:
        if name in coerced:
            coerced[name] = coerce_amount(coerced[name])
    for name in QUANTITY_FIELDS:
        if name in coerced:
            coerced[name] = coerce_quantity(coerced[name])
    for name in INTEGER_FIELDS:
        if name in coerced:
            coerced[name] = coerce_int(coerced[name])
    for name in TEXT_FIELDS:
        if name in coerced and coerced[name] is None:
            coerced[name] = ""
    return coerced


def normalize_payment_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep bank/cheque details consistent with the payment type.

    Only applies when ``payment_type`` is present: bank name survives only
    for BANK payments, cheque number and date only for CHEQUE payments.
    """
    if "payment_type" not in fields:
        return fields
    normalized = dict(fields)
    payment_type = normalized["payment_type"] or PaymentType.CASH
    payment_type = PaymentType(payment_type)
    normalized["payment_type"] = payment_type
    if payment_type != PaymentType.BANK:
        normalized["bank_name"] = ""
    if payment_type != PaymentType.CHEQUE:
        normalized["cheque_no"] = ""
        normalized["cheque_date"] = None
    for name in ("bank_name", "cheque_no"):
        if normalized.get(name) is None:
            normalized[name] = ""
    return normalized
