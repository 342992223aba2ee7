"""
Per-book rules: which entry kinds a book accepts and how an entry moves
the running balance.

Client and company-balance books run ``credit - debit``. The supplier book
tracks what is owed: opening balances and purchases raise it, payments
lower it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, FrozenSet, Tuple

from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind
from bookkeeper.app.domain.ledger.fields import ZERO, coerce_amount


def credit_minus_debit(entry) -> Decimal:
    return coerce_amount(entry.credit) - coerce_amount(entry.debit)


_PAYABLE_SIGNS = {
    EntryKind.OPENING: 1,
    EntryKind.PURCHASE: 1,
    EntryKind.PAYMENT: -1,
}


def payable_by_kind(entry) -> Decimal:
    sign = _PAYABLE_SIGNS.get(entry.entry_kind)
    if sign is None:
        return ZERO
    return coerce_amount(entry.amount) * sign


@dataclass(frozen=True)
class BookRules:
    """Validation and sign convention for one ledger book."""
    book: LedgerBook
    allowed_kinds: FrozenSet[EntryKind]
    default_kind: EntryKind
    required_fields: Tuple[str, ...]
    delta: Callable[[object], Decimal]


BOOK_RULES = {
    LedgerBook.CLIENT: BookRules(
        book=LedgerBook.CLIENT,
        allowed_kinds=frozenset(EntryKind),
        default_kind=EntryKind.SALE,
        required_fields=("account_id", "entry_date"),
        delta=credit_minus_debit,
    ),
    LedgerBook.COMPANY_BALANCE: BookRules(
        book=LedgerBook.COMPANY_BALANCE,
        allowed_kinds=frozenset({EntryKind.OPENING, EntryKind.ADJUSTMENT}),
        default_kind=EntryKind.ADJUSTMENT,
        required_fields=("account_id", "entry_date"),
        delta=credit_minus_debit,
    ),
    LedgerBook.SUPPLIER: BookRules(
        book=LedgerBook.SUPPLIER,
        allowed_kinds=frozenset({EntryKind.OPENING, EntryKind.PURCHASE, EntryKind.PAYMENT}),
        default_kind=EntryKind.PAYMENT,
        required_fields=("account_id", "entry_date", "amount"),
        delta=payable_by_kind,
    ),
}


def rules_for(book: LedgerBook) -> BookRules:
    return BOOK_RULES[LedgerBook(book)]
