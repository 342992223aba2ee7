"""
Numeric coercion and payment field normalization.
"""

from decimal import Decimal
from datetime import date

import pytest

from bookkeeper.app.domain.ledger.fields import (
    coerce_amount, coerce_quantity, coerce_int, coerce_numeric_fields, normalize_payment_fields
)
from bookkeeper.app.models.ledger_enums import PaymentType


@pytest.mark.parametrize("value, expected", [
    (1000, Decimal("1000.00")),
    (12.5, Decimal("12.50")),
    ("400", Decimal("400.00")),
    ("  250.75 ", Decimal("250.75")),
    ("-30", Decimal("-30.00")),
    (Decimal("1.005"), Decimal("1.01")),
    (None, Decimal("0")),
    ("", Decimal("0")),
    ("abc", Decimal("0")),
    ("NaN", Decimal("0")),
    (float("inf"), Decimal("0")),
    ([1, 2], Decimal("0")),
])
def test_coerce_amount(value, expected):
    assert coerce_amount(value) == expected


def test_coerce_quantity_keeps_three_places():
    assert coerce_quantity("2.3456") == Decimal("2.346")
    assert coerce_quantity(None) == Decimal("0")


def test_coerce_int_truncates_toward_zero():
    assert coerce_int("7.9") == 7
    assert coerce_int(-7.9) == -7
    assert coerce_int("days") == 0


def test_coerce_numeric_fields_only_touches_present_fields():
    fields = coerce_numeric_fields({"credit": "1000", "mdays": "15", "description": None})

    assert fields == {"credit": Decimal("1000.00"), "mdays": 15, "description": ""}
    assert "debit" not in fields


def test_normalize_payment_fields_clears_details_for_other_types():
    fields = normalize_payment_fields({
        "payment_type": "CASH",
        "bank_name": "State Bank",
        "cheque_no": "000123",
        "cheque_date": date(2024, 1, 5),
    })

    assert fields["payment_type"] == PaymentType.CASH
    assert fields["bank_name"] == ""
    assert fields["cheque_no"] == ""
    assert fields["cheque_date"] is None


def test_normalize_payment_fields_keeps_matching_details():
    bank = normalize_payment_fields({"payment_type": "BANK", "bank_name": "State Bank"})
    cheque = normalize_payment_fields({
        "payment_type": "CHEQUE", "cheque_no": "000123", "cheque_date": date(2024, 1, 5)
    })

    assert bank["bank_name"] == "State Bank"
    assert cheque["cheque_no"] == "000123"
    assert cheque["cheque_date"] == date(2024, 1, 5)
    assert cheque["bank_name"] == ""


def test_normalize_payment_fields_defaults_blank_type_to_cash():
    assert normalize_payment_fields({"payment_type": None})["payment_type"] == PaymentType.CASH


def test_normalize_payment_fields_ignores_records_without_payment_type():
    fields = {"bank_name": "State Bank"}
    assert normalize_payment_fields(fields) == fields
