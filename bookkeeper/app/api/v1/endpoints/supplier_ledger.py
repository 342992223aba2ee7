"""
Supplier Ledger API Endpoints.

What the business owes each supplier: opening balances and purchases
raise it, payments lower it. Purchases created by stock entries stay
linked to them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.db.session import get_db
from bookkeeper.app.domain.ledger.service import LedgerService
from bookkeeper.app.domain.stock.stock_service import StockService
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind, EntryOrder
from bookkeeper.app.schemas.ledger import (
    LedgerEntryCreate, LedgerEntryUpdate, LedgerEntryResponse,
    RecomputeResponse, DeleteResponse,
    SupplierOpeningRequest, SupplierStatementResponse, SupplierSummaryItem
)
from bookkeeper.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/supplier-ledger", tags=["Supplier Ledger"])

BOOK = LedgerBook.SUPPLIER


@router.get("", response_model=List[LedgerEntryResponse])
async def list_supplier_entries(
    account_id: Optional[str] = Query(None, description="Supplier name"),
    entry_kind: Optional[EntryKind] = Query(None, description="OPENING, PURCHASE or PAYMENT"),
    sort: EntryOrder = Query(EntryOrder.CHRONOLOGICAL),
    db: AsyncSession = Depends(get_db)
):
    entries = await LedgerService(db, BOOK).list_entries(
        account_id=account_id,
        entry_kind=entry_kind,
        order=sort
    )
    return [LedgerEntryResponse.model_validate(entry) for entry in entries]


@router.get("/summary", response_model=List[SupplierSummaryItem])
async def supplier_summary(db: AsyncSession = Depends(get_db)):
    """
    Totals per supplier.

    Opening balances count towards total purchases;
    outstanding = total purchases - total payments.
    """
    return await LedgerService(db, BOOK).supplier_summary()


@router.get("/statement/{account_id}", response_model=SupplierStatementResponse)
async def supplier_statement(account_id: str, db: AsyncSession = Depends(get_db)):
    """One supplier's entries with running balance, plus totals."""
    statement = await LedgerService(db, BOOK).statement(account_id)
    return SupplierStatementResponse(
        account_id=statement["account_id"],
        entries=[LedgerEntryResponse.model_validate(entry) for entry in statement["entries"]],
        closing_balance=statement["closing_balance"],
        total_purchases=statement["total_purchases"],
        total_payments=statement["total_payments"]
    )


@router.post("", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier_entry(
    entry_data: LedgerEntryCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Add a supplier entry.

    account_id, entry_date and amount are required; kind defaults to PAYMENT.
    """
    entry = await LedgerService(db, BOOK).create_entry(entry_data.model_dump(exclude_unset=True))

    await log_event(
        db=db,
        action=AuditAction.LEDGER_ENTRY_CREATED,
        resource=BOOK.value,
        resource_id=entry.id,
        metadata={
            "account_id": entry.account_id,
            "entry_kind": entry.entry_kind.value,
            "amount": str(entry.amount)
        }
    )

    return LedgerEntryResponse.model_validate(entry)


@router.post("/opening", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def set_supplier_opening(
    opening_data: SupplierOpeningRequest,
    db: AsyncSession = Depends(get_db)
):
    """Replace a supplier's opening balance with a single entry dated today."""
    entry = await LedgerService(db, BOOK).set_opening(
        opening_data.account_id,
        opening_data.amount,
        opening_data.note
    )

    await log_event(
        db=db,
        action=AuditAction.SUPPLIER_OPENING_SET,
        resource=BOOK.value,
        resource_id=entry.account_id,
        metadata={"entry_id": entry.id, "amount": str(entry.amount)}
    )

    return LedgerEntryResponse.model_validate(entry)


@router.put("/{entry_id}", response_model=LedgerEntryResponse)
async def update_supplier_entry(
    entry_id: int,
    entry_data: LedgerEntryUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update a supplier entry.

    A purchase backing a stock entry keeps its kind and supplier (409 otherwise).
    """
    update_data = entry_data.model_dump(exclude_unset=True)
    service = LedgerService(db, BOOK)
    await StockService.ensure_purchase_link_kept(db, await service.get_entry(entry_id), update_data)

    entry = await service.update_entry(entry_id, update_data)

    await log_event(
        db=db,
        action=AuditAction.LEDGER_ENTRY_UPDATED,
        resource=BOOK.value,
        resource_id=entry.id,
        metadata={
            "account_id": entry.account_id,
            "updated_fields": list(update_data.keys())
        }
    )

    return LedgerEntryResponse.model_validate(entry)


@router.delete("/{entry_id}", response_model=DeleteResponse)
async def delete_supplier_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    """
    Delete a supplier entry.

    Purchases generated by a stock entry can only go away with that
    stock entry (409 otherwise).
    """
    service = LedgerService(db, BOOK)
    entry = await service.get_entry(entry_id)
    await StockService.ensure_purchase_unlinked(db, entry)

    account_id = await service.delete_entry(entry_id)

    await log_event(
        db=db,
        action=AuditAction.LEDGER_ENTRY_DELETED,
        resource=BOOK.value,
        resource_id=entry_id,
        metadata={"account_id": account_id}
    )

    return DeleteResponse(message="Entry deleted", id=entry_id)


@router.post("/accounts/{account_id}/recompute", response_model=RecomputeResponse)
async def recompute_supplier_account(account_id: str, db: AsyncSession = Depends(get_db)):
    """Rebuild one supplier's balance chain."""
    result = await LedgerService(db, BOOK).recompute(account_id)

    await log_event(
        db=db,
        action=AuditAction.ACCOUNT_RECOMPUTED,
        resource=BOOK.value,
        resource_id=account_id,
        metadata={"entries_written": result.entries_written}
    )

    return RecomputeResponse(
        book=result.book,
        account_id=result.account_id,
        entries_written=result.entries_written,
        closing_balance=result.closing_balance
    )
