"""
Ledger Entry Store.

Durable storage and retrieval of ledger entries for one book, with
lookup by account and by primary key. Every mutation is committed
before the method returns.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, desc
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.core.exceptions import ResourceNotFoundError, StoreUnavailable, ValidationError
from bookkeeper.app.domain.ledger.books import rules_for
from bookkeeper.app.domain.ledger.fields import (
    ZERO, coerce_numeric_fields, normalize_payment_fields
)
from bookkeeper.app.models.ledger_entry import LedgerEntry
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind, EntryOrder, PaymentType

logger = logging.getLogger("bookkeeper.ledger.store")

# Fields callers may never set directly
PROTECTED_FIELDS = ("id", "book", "sequence_hint", "closing_balance", "created_at", "updated_at")

_last_sequence_hint = 0


def next_sequence_hint() -> int:
    """
    Strictly increasing insertion stamp (nanoseconds since epoch).

    Used only to break ties between entries sharing a date, so it must
    preserve insertion order and never repeat within a process.
    """
    global _last_sequence_hint
    _last_sequence_hint = max(time.time_ns(), _last_sequence_hint + 1)
    return _last_sequence_hint


class LedgerEntryStore:
    """
    Persistence for one ledger book.

    Args:
        db: Database session
        book: Book every query and insert is scoped to
    """

    def __init__(self, db: AsyncSession, book: LedgerBook):
        self.db = db
        self.book = LedgerBook(book)
        self.rules = rules_for(self.book)

    @asynccontextmanager
    async def _guard(self, operation: str):
        """
        Roll back on any database error so the session stays usable.

        Connection-level failures become StoreUnavailable; other errors
        (integrity, data) propagate unchanged.
        """
        try:
            yield
        except (OperationalError, InterfaceError) as exc:
            await self.db.rollback()
            logger.error("Store failure during %s: %s", operation, exc)
            raise StoreUnavailable(operation, str(exc.orig or exc)) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Store rejected %s: %s", operation, exc)
            raise

    # --- Validation ---------------------------------------------------------

    def _check_kind(self, kind: Any) -> EntryKind:
        try:
            kind = EntryKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown entry kind '{kind}'", fields=["entry_kind"])
        if kind not in self.rules.allowed_kinds:
            raise ValidationError(
                f"Entry kind {kind.value} is not allowed in the {self.book.value} book",
                fields=["entry_kind"]
            )
        return kind

    def _prepare(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        prepared = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        if "account_id" in prepared and prepared["account_id"] is not None:
            prepared["account_id"] = str(prepared["account_id"]).strip()
        if "entry_kind" in prepared:
            prepared["entry_kind"] = self._check_kind(prepared["entry_kind"] or self.rules.default_kind)
        prepared = coerce_numeric_fields(prepared)
        try:
            return normalize_payment_fields(prepared)
        except ValueError:
            raise ValidationError(
                f"Unknown payment type '{prepared['payment_type']}'", fields=["payment_type"]
            )

    def _missing_required(self, fields: Dict[str, Any], partial: bool) -> List[str]:
        missing = []
        for name in self.rules.required_fields:
            if partial and name not in fields:
                continue
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    # --- Mutations ----------------------------------------------------------

    async def create(self, fields: Dict[str, Any]) -> LedgerEntry:
        """
        Insert a new entry with a zero closing balance.

        Raises:
            ValidationError: account_id or entry_date absent (or amount, for suppliers)
        """
        missing = self._missing_required(fields, partial=False)
        if missing:
            raise ValidationError(f"{' and '.join(missing)} required", fields=missing)

        values = dict(fields)
        values.setdefault("entry_kind", self.rules.default_kind)
        if self.book == LedgerBook.CLIENT:
            values["payment_type"] = values.get("payment_type") or PaymentType.CASH
        values = self._prepare(values)

        entry = LedgerEntry(
            book=self.book,
            sequence_hint=next_sequence_hint(),
            closing_balance=ZERO,
            **values
        )
        async with self._guard("create"):
            self.db.add(entry)
            await self.db.commit()
            await self.db.refresh(entry)

        logger.debug("Created %s entry %s for '%s'", self.book.value, entry.id, entry.account_id)
        return entry

    async def update(self, entry_id: int, fields: Dict[str, Any]) -> LedgerEntry:
        """
        Apply only the fields present in ``fields``; absent fields are untouched.

        Raises:
            ResourceNotFoundError: no such entry in this book
            ValidationError: a required field is being cleared
        """
        entry = await self.get(entry_id)

        if "entry_kind" in fields and fields["entry_kind"] is None:
            raise ValidationError("entry_kind cannot be empty", fields=["entry_kind"])
        missing = self._missing_required(fields, partial=True)
        if missing:
            raise ValidationError(f"{' and '.join(missing)} cannot be empty", fields=missing)

        for name, value in self._prepare(fields).items():
            setattr(entry, name, value)

        async with self._guard("update"):
            await self.db.commit()
            await self.db.refresh(entry)
        return entry

    async def delete(self, entry_id: int) -> str:
        """
        Delete an entry.

        Returns:
            The account id the entry belonged to, captured before deletion

        Raises:
            ResourceNotFoundError: no such entry in this book
        """
        entry = await self.get(entry_id)
        account_id = entry.account_id
        async with self._guard("delete"):
            await self.db.delete(entry)
            await self.db.commit()
        return account_id

    async def delete_by_kind(self, account_id: str, kind: EntryKind) -> int:
        """Delete every entry of one kind for an account. Returns the row count."""
        async with self._guard("delete_by_kind"):
            result = await self.db.execute(
                delete(LedgerEntry).where(
                    LedgerEntry.book == self.book,
                    LedgerEntry.account_id == account_id,
                    LedgerEntry.entry_kind == EntryKind(kind)
                )
            )
            await self.db.commit()
        return result.rowcount or 0

    async def write_closing_balance(self, entry: LedgerEntry, balance: Decimal) -> None:
        """Persist one entry's recomputed closing balance."""
        entry.closing_balance = balance
        await self.db.commit()

    # --- Queries ------------------------------------------------------------

    async def get(self, entry_id: int) -> LedgerEntry:
        async with self._guard("get"):
            result = await self.db.execute(
                select(LedgerEntry)
                .where(LedgerEntry.id == entry_id, LedgerEntry.book == self.book)
                .execution_options(populate_existing=True)
            )
            entry = result.scalar_one_or_none()
        if not entry:
            raise ResourceNotFoundError("Ledger entry", entry_id)
        return entry

    async def list_by_account(self, account_id: str) -> List[LedgerEntry]:
        """All entries of one account in replay order (date, then insertion)."""
        async with self._guard("list_by_account"):
            result = await self.db.execute(
                select(LedgerEntry)
                .where(LedgerEntry.book == self.book, LedgerEntry.account_id == account_id)
                .order_by(LedgerEntry.entry_date.asc(), LedgerEntry.sequence_hint.asc())
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def list_all(
        self,
        account_id: Optional[str] = None,
        entry_kind: Optional[EntryKind] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        order: EntryOrder = EntryOrder.CHRONOLOGICAL
    ) -> List[LedgerEntry]:
        """
        Filtered listing for reports and feeds.

        Date bounds are inclusive. RECENT_FIRST is a display order only and
        plays no part in balance computation.
        """
        query = select(LedgerEntry).where(LedgerEntry.book == self.book)

        if account_id:
            query = query.where(LedgerEntry.account_id == account_id)
        if entry_kind:
            query = query.where(LedgerEntry.entry_kind == EntryKind(entry_kind))
        if date_from:
            query = query.where(LedgerEntry.entry_date >= date_from)
        if date_to:
            query = query.where(LedgerEntry.entry_date <= date_to)

        order = EntryOrder(order)
        if order == EntryOrder.RECENT_FIRST:
            query = query.order_by(desc(LedgerEntry.created_at), desc(LedgerEntry.sequence_hint))
        elif order == EntryOrder.BY_ACCOUNT:
            query = query.order_by(
                LedgerEntry.account_id.asc(),
                LedgerEntry.entry_date.asc(),
                LedgerEntry.sequence_hint.asc()
            )
        else:
            query = query.order_by(LedgerEntry.entry_date.asc(), LedgerEntry.sequence_hint.asc())

        async with self._guard("list_all"):
            result = await self.db.execute(query.execution_options(populate_existing=True))
            return list(result.scalars().all())
