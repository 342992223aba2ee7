"""
Ledger Service (Domain Logic).

Couples every entry mutation with a full recompute of the affected
account(s), so a call either returns with consistent balances or
raises naming where the recompute stopped.
"""

import logging
from collections import OrderedDict
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.core.exceptions import ValidationError
from bookkeeper.app.domain.ledger.fields import ZERO, coerce_amount
from bookkeeper.app.domain.ledger.recomputer import BalanceRecomputer, RecomputeResult
from bookkeeper.app.domain.ledger.store import LedgerEntryStore
from bookkeeper.app.models.ledger_entry import LedgerEntry
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind, EntryOrder
from bookkeeper.app.services.account_lock import account_lock

logger = logging.getLogger("bookkeeper.ledger.service")


class LedgerService:
    """
    Mutation + recompute orchestration for one ledger book.

    Args:
        db: Database session
        book: Ledger book to operate on
    """

    def __init__(self, db: AsyncSession, book: LedgerBook):
        self.db = db
        self.book = LedgerBook(book)
        self.store = LedgerEntryStore(db, self.book)
        self.recomputer = BalanceRecomputer(self.store)

    @asynccontextmanager
    async def account_locks(self, *account_ids: Optional[str]):
        """
        Hold the recompute locks of several accounts at once.

        Locks are taken in sorted order so two callers touching the same
        pair of accounts cannot deadlock. Blank ids are skipped.
        """
        keys = sorted({_account_key(account_id) for account_id in account_ids} - {""})
        async with AsyncExitStack() as stack:
            for account_id in keys:
                await stack.enter_async_context(account_lock(self.book, account_id))
            yield

    async def replay(self, account_id: str) -> RecomputeResult:
        """Full replay of one account. The caller must hold its lock."""
        return await self.recomputer.recompute(account_id)

    async def recompute(self, account_id: str) -> RecomputeResult:
        """Full replay of one account under its recompute lock."""
        async with account_lock(self.book, account_id):
            return await self.replay(account_id)

    async def create_entry(self, fields: Dict[str, Any]) -> LedgerEntry:
        """
        Insert an entry and rebuild its account.

        The account lock is taken before the insert, so a busy account
        rejects the call without saving anything.
        """
        async with self.account_locks(fields.get("account_id")):
            entry = await self.store.create(fields)
            await self.replay(entry.account_id)
        return await self.store.get(entry.id)

    async def update_entry(self, entry_id: int, fields: Dict[str, Any]) -> LedgerEntry:
        """
        Partially update an entry.

        If the entry moves to another account, both the old and the new
        account are locked and recomputed.
        """
        previous_account = (await self.store.get(entry_id)).account_id
        target_account = fields.get("account_id") or previous_account

        async with self.account_locks(previous_account, target_account):
            entry = await self.store.update(entry_id, fields)
            for account_id in OrderedDict.fromkeys([previous_account, entry.account_id]):
                await self.replay(account_id)
        return await self.store.get(entry_id)

    async def delete_entry(self, entry_id: int) -> str:
        """Delete an entry and recompute the account it belonged to."""
        account_id = (await self.store.get(entry_id)).account_id
        async with self.account_locks(account_id):
            await self.store.delete(entry_id)
            await self.replay(account_id)
        return account_id

    async def get_entry(self, entry_id: int) -> LedgerEntry:
        return await self.store.get(entry_id)

    async def list_entries(
        self,
        account_id: Optional[str] = None,
        entry_kind: Optional[EntryKind] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        order: EntryOrder = EntryOrder.CHRONOLOGICAL
    ) -> List[LedgerEntry]:
        return await self.store.list_all(
            account_id=account_id,
            entry_kind=entry_kind,
            date_from=date_from,
            date_to=date_to,
            order=order
        )

    async def set_opening(self, account_id: str, amount: Any, note: Optional[str] = None) -> LedgerEntry:
        """
        Replace a supplier's opening balance.

        Existing OPENING entries for the account are removed and a single
        new one, dated today, takes their place.
        """
        if self.book != LedgerBook.SUPPLIER:
            raise ValidationError("Opening balances are set through the supplier book", fields=["book"])
        account_id = (account_id or "").strip()
        if not account_id:
            raise ValidationError("account_id required for opening", fields=["account_id"])

        async with self.account_locks(account_id):
            removed = await self.store.delete_by_kind(account_id, EntryKind.OPENING)
            if removed:
                logger.info("Replacing %d opening entries for supplier '%s'", removed, account_id)

            entry = await self.store.create({
                "account_id": account_id,
                "entry_kind": EntryKind.OPENING,
                "entry_date": date.today(),
                "amount": coerce_amount(amount),
                "description": note or "Opening balance set",
            })
            await self.replay(account_id)
        return await self.store.get(entry.id)

    async def statement(self, account_id: str) -> Dict[str, Any]:
        """
        Account statement: entries in replay order with their closing
        balances, plus purchase/payment totals.
        """
        entries = await self.store.list_by_account(account_id)
        totals = _sum_by_side(entries)
        return {
            "account_id": account_id,
            "entries": entries,
            "closing_balance": entries[-1].closing_balance if entries else ZERO,
            "total_purchases": totals["purchases"],
            "total_payments": totals["payments"],
        }

    async def supplier_summary(self) -> List[Dict[str, Any]]:
        """Per-supplier totals and outstanding amount, ordered by supplier."""
        entries = await self.store.list_all(order=EntryOrder.BY_ACCOUNT)

        grouped: Dict[str, List[LedgerEntry]] = OrderedDict()
        for entry in entries:
            grouped.setdefault(entry.account_id, []).append(entry)

        summary = []
        for account_id, account_entries in grouped.items():
            totals = _sum_by_side(account_entries)
            summary.append({
                "account_id": account_id,
                "opening_balance": totals["opening"],
                "total_purchases": totals["purchases"],
                "total_payments": totals["payments"],
                "outstanding": totals["purchases"] - totals["payments"],
                "transaction_count": len(account_entries),
            })
        return summary


def _sum_by_side(entries: List[LedgerEntry]) -> Dict[str, Decimal]:
    """Opening/purchase/payment totals; opening counts as a purchase."""
    totals = {"opening": ZERO, "purchases": ZERO, "payments": ZERO}
    for entry in entries:
        amount = coerce_amount(entry.amount)
        if entry.entry_kind == EntryKind.OPENING:
            totals["opening"] += amount
            totals["purchases"] += amount
        elif entry.entry_kind == EntryKind.PURCHASE:
            totals["purchases"] += amount
        elif entry.entry_kind == EntryKind.PAYMENT:
            totals["payments"] += amount
    return totals


def _account_key(account_id: Any) -> str:
    """Account ids are stored stripped; lock on the same form."""
    return str(account_id).strip() if account_id is not None else ""
