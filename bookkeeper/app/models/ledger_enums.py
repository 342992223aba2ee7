"""
Ledger enumerations.

Books partition the ledger table; entry kinds decide the sign of an
entry's balance effect within a book.
"""

import enum


class LedgerBook(str, enum.Enum):
    """
    Ledger book enumeration.
    
    Books:
        CLIENT: Per-client sales/receipts ledger (debit/credit)
        COMPANY_BALANCE: Per-person company balance sheet (debit/credit)
        SUPPLIER: Per-supplier payable ledger (opening/purchase/payment amounts)
    """
    CLIENT = "CLIENT"
    COMPANY_BALANCE = "COMPANY_BALANCE"
    SUPPLIER = "SUPPLIER"


class EntryKind(str, enum.Enum):
    """Semantic category of a ledger row."""
    OPENING = "OPENING"
    PURCHASE = "PURCHASE"
    PAYMENT = "PAYMENT"
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"


class PaymentType(str, enum.Enum):
    """How money moved for an entry."""
    CASH = "CASH"
    BANK = "BANK"
    CHEQUE = "CHEQUE"
    ONLINE = "ONLINE"


class EntryOrder(str, enum.Enum):
    """Sort orders supported by ledger listings."""
    CHRONOLOGICAL = "chronological"  # (date, sequence) ascending
    BY_ACCOUNT = "by_account"  # account, then chronological
    RECENT_FIRST = "recent"  # creation time descending, display only
