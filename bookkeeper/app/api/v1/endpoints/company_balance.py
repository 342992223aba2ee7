"""
Company Balance API Endpoints.

Per-person debit/credit book of the company's own balances.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.db.session import get_db
from bookkeeper.app.domain.ledger.service import LedgerService
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryOrder
from bookkeeper.app.schemas.ledger import (
    LedgerEntryCreate, LedgerEntryUpdate, LedgerEntryResponse, RecomputeResponse, DeleteResponse
)
from bookkeeper.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/company-balance", tags=["Company Balance"])

BOOK = LedgerBook.COMPANY_BALANCE


@router.get("", response_model=List[LedgerEntryResponse])
async def list_company_balance_entries(
    account_id: Optional[str] = Query(None, description="Person name"),
    db: AsyncSession = Depends(get_db)
):
    """List entries grouped by person, each person's entries in date order."""
    entries = await LedgerService(db, BOOK).list_entries(
        account_id=account_id,
        order=EntryOrder.BY_ACCOUNT
    )
    return [LedgerEntryResponse.model_validate(entry) for entry in entries]


@router.post("", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_company_balance_entry(
    entry_data: LedgerEntryCreate,
    db: AsyncSession = Depends(get_db)
):
    """Add an entry for a person; account_id and entry_date are required."""
    entry = await LedgerService(db, BOOK).create_entry(entry_data.model_dump(exclude_unset=True))

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
async def update_company_balance_entry(
    entry_id: int,
    entry_data: LedgerEntryUpdate,
    db: AsyncSession = Depends(get_db)
):
    update_data = entry_data.model_dump(exclude_unset=True)
    entry = await LedgerService(db, BOOK).update_entry(entry_id, update_data)

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
async def delete_company_balance_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    account_id = await LedgerService(db, BOOK).delete_entry(entry_id)

    await log_event(
        db=db,
        action=AuditAction.LEDGER_ENTRY_DELETED,
        resource=BOOK.value,
        resource_id=entry_id,
        metadata={"account_id": account_id}
    )

    return DeleteResponse(message="Entry deleted", id=entry_id)


@router.post("/accounts/{account_id}/recompute", response_model=RecomputeResponse)
async def recompute_company_balance_account(account_id: str, db: AsyncSession = Depends(get_db)):
    """Rebuild one person's balance chain."""
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
