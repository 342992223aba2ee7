"""
Ledger Pydantic schemas.

Request models are permissive on purpose: numeric fields take numbers
or strings, and required fields are checked by the ledger store so that
a missing account or date is reported as a 400 with the field names.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List, Union
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind, PaymentType


# Numbers or numeric strings; anything unusable is stored as 0
NumericInput = Union[int, float, str, None]


class LedgerEntryCreate(BaseModel):
    """Schema for creating a ledger entry in any book."""
    account_id: Optional[str] = Field(None, max_length=200, description="Client, person or supplier name")
    entry_kind: Optional[str] = Field(None, description="Defaults per book when omitted")
    entry_date: Optional[date] = None
    debit: NumericInput = None
    credit: NumericInput = None
    amount: NumericInput = None
    description: Optional[str] = Field(None, max_length=500)
    product_type: Optional[str] = Field(None, max_length=100)
    quantity: NumericInput = None
    rate: NumericInput = None
    loading: NumericInput = None
    mdays: NumericInput = None
    due_date: Optional[date] = None
    lifting_date: Optional[date] = None
    payment_type: Optional[str] = None
    bank_name: Optional[str] = Field(None, max_length=200)
    cheque_no: Optional[str] = Field(None, max_length=100)
    cheque_date: Optional[date] = None
    transaction_reference: Optional[str] = Field(None, max_length=200)
    invoice_number: Optional[str] = Field(None, max_length=100)
    invoice_date: Optional[date] = None
    other_expense_name: Optional[str] = Field(None, max_length=200)
    other_expense_amount: NumericInput = None


class LedgerEntryUpdate(LedgerEntryCreate):
    """Schema for a partial update; only the fields sent are applied."""


class ExpenseUpdate(BaseModel):
    """Schema for setting the extra expense booked against an entry."""
    other_expense_name: Optional[str] = Field(None, max_length=200)
    other_expense_amount: NumericInput = None


class LedgerEntryResponse(BaseModel):
    """Schema for ledger entry response."""
    id: int
    book: LedgerBook
    account_id: str
    entry_kind: EntryKind
    entry_date: date
    sequence_hint: int
    debit: float
    credit: float
    amount: float
    closing_balance: float
    description: str
    product_type: str
    quantity: float
    rate: float
    loading: float
    mdays: int
    due_date: Optional[date]
    lifting_date: Optional[date]
    payment_type: PaymentType
    bank_name: str
    cheque_no: str
    cheque_date: Optional[date]
    transaction_reference: str
    invoice_number: str
    invoice_date: Optional[date]
    other_expense_name: str
    other_expense_amount: float
    stock_entry_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RecomputeResponse(BaseModel):
    """Schema for an explicit account recompute."""
    book: LedgerBook
    account_id: str
    entries_written: int
    closing_balance: float


class DeleteResponse(BaseModel):
    """Schema for a delete acknowledgement."""
    message: str
    id: int


class SupplierOpeningRequest(BaseModel):
    """Schema for replacing a supplier's opening balance."""
    account_id: Optional[str] = Field(None, max_length=200, description="Supplier name")
    amount: NumericInput = None
    note: Optional[str] = Field(None, max_length=500)


class SupplierStatementResponse(BaseModel):
    """Supplier statement: running balance per entry plus totals."""
    account_id: str
    entries: List[LedgerEntryResponse]
    closing_balance: float
    total_purchases: float
    total_payments: float


class SupplierSummaryItem(BaseModel):
    """Per-supplier totals."""
    account_id: str
    opening_balance: float
    total_purchases: float
    total_payments: float
    outstanding: float
    transaction_count: int
