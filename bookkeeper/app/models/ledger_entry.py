"""
Ledger Entry database model.

One dated financial movement for one account of one book. The
closing balance is derived and rewritten by every recompute.
"""

from sqlalchemy import (
    Column, Integer, BigInteger, String, Numeric, Date, DateTime, Enum, ForeignKey, Index
)
from sqlalchemy.sql import func
from bookkeeper.app.db.session import Base
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind, PaymentType

MONEY = Numeric(18, 2)
QUANTITY = Numeric(18, 3)


class LedgerEntry(Base):
    """
    Ledger Entry model.
    
    Ordering key within an account is (entry_date, sequence_hint).
    sequence_hint is assigned once at insertion and never changes,
    so entries sharing a date always replay in insertion order.
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_account_order", "book", "account_id", "entry_date", "sequence_hint"),
    )
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Ownership
    book = Column(Enum(LedgerBook), nullable=False)
    account_id = Column(String(200), nullable=False, index=True)
    entry_kind = Column(Enum(EntryKind), nullable=False)
    
    # Ordering
    entry_date = Column(Date, nullable=False)
    sequence_hint = Column(BigInteger, nullable=False)
    
    # Financials
    debit = Column(MONEY, default=0, nullable=False)
    credit = Column(MONEY, default=0, nullable=False)
    amount = Column(MONEY, default=0, nullable=False)
    closing_balance = Column(MONEY, default=0, nullable=False)
    
    # Trade details (client book)
    description = Column(String(500), default="", nullable=False)
    product_type = Column(String(100), default="", nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    rate = Column(MONEY, default=0, nullable=False)
    loading = Column(MONEY, default=0, nullable=False)
    mdays = Column(Integer, default=0, nullable=False)
    due_date = Column(Date, nullable=True)
    lifting_date = Column(Date, nullable=True)
    
    # Payment details
    payment_type = Column(Enum(PaymentType), default=PaymentType.CASH, nullable=False)
    bank_name = Column(String(200), default="", nullable=False)
    cheque_no = Column(String(100), default="", nullable=False)
    cheque_date = Column(Date, nullable=True)
    transaction_reference = Column(String(200), default="", nullable=False)
    invoice_number = Column(String(100), default="", nullable=False)
    invoice_date = Column(Date, nullable=True)
    
    # Extra expense booked against the entry
    other_expense_name = Column(String(200), default="", nullable=False)
    other_expense_amount = Column(MONEY, default=0, nullable=False)
    
    # Supplier purchase generated by a stock entry
    stock_entry_id = Column(Integer, ForeignKey('stock_entries.id', ondelete="SET NULL"), nullable=True, index=True)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return (
            f"<LedgerEntry(id={self.id}, book='{self.book.value}', account='{self.account_id}', "
            f"date={self.entry_date}, closing={self.closing_balance})>"
        )
