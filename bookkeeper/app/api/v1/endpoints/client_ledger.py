"""
Client Ledger API Endpoints.

Sales and receipts per client. Every mutation rebuilds the client's
running balance before responding, whatever the entry's date.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.db.session import get_db
from bookkeeper.app.domain.ledger.service import LedgerService
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryOrder
from bookkeeper.app.schemas.ledger import (
    LedgerEntryCreate, LedgerEntryUpdate, ExpenseUpdate,
    LedgerEntryResponse, RecomputeResponse, DeleteResponse
)
from bookkeeper.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/ledger", tags=["Client Ledger"])

BOOK = LedgerBook.CLIENT


@router.get("", response_model=List[LedgerEntryResponse])
async def list_client_entries(
    account_id: Optional[str] = Query(None, description="Client name"),
    date_from: Optional[date] = Query(None, description="Inclusive lower date bound"),
    date_to: Optional[date] = Query(None, description="Inclusive upper date bound"),
    sort: EntryOrder = Query(EntryOrder.CHRONOLOGICAL, description="chronological or recent"),
    db: AsyncSession = Depends(get_db)
):
    """
    List client ledger entries.

    Chronological order is the order balances are computed in;
    ``recent`` shows the newest entries first.
    """
    service = LedgerService(db, BOOK)
    entries = await service.list_entries(
        account_id=account_id,
        date_from=date_from,
        date_to=date_to,
        order=sort
    )
    return [LedgerEntryResponse.model_validate(entry) for entry in entries]


@router.get("/{entry_id}", response_model=LedgerEntryResponse)
async def get_client_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    entry = await LedgerService(db, BOOK).get_entry(entry_id)
    return LedgerEntryResponse.model_validate(entry)


@router.post("", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_client_entry(
    entry_data: LedgerEntryCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Add an entry to a client's ledger.

    account_id and entry_date are required. Payment type defaults to CASH.
    """
    service = LedgerService(db, BOOK)
    entry = await service.create_entry(entry_data.model_dump(exclude_unset=True))

    await log_event(
        db=db,
        action=AuditAction.LEDGER_ENTRY_CREATED,
        resource=BOOK.value,
        resource_id=entry.id,
        metadata={
            "account_id": entry.account_id,
            "entry_date": entry.entry_date.isoformat(),
            "debit": str(entry.debit),
            "credit": str(entry.credit)
        }
    )

    return LedgerEntryResponse.model_validate(entry)


@router.put("/{entry_id}", response_model=LedgerEntryResponse)
async def update_client_entry(
    entry_id: int,
    entry_data: LedgerEntryUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Update an entry; only the fields sent are changed.

    Moving the entry to another client recomputes both clients.
    """
    update_data = entry_data.model_dump(exclude_unset=True)
    service = LedgerService(db, BOOK)
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


@router.patch("/{entry_id}/expense", response_model=LedgerEntryResponse)
async def update_client_entry_expense(
    entry_id: int,
    expense_data: ExpenseUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Set the extra expense name and amount booked against an entry."""
    update_data = expense_data.model_dump()
    service = LedgerService(db, BOOK)
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
async def delete_client_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an entry and recompute the client's remaining entries."""
    service = LedgerService(db, BOOK)
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
async def recompute_client_account(account_id: str, db: AsyncSession = Depends(get_db)):
    """
    Rebuild one client's balance chain.

    Safe to call any number of times; used to retry after a partial
    recompute failure.
    """
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
