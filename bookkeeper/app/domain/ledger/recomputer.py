"""
Balance Recomputer (Domain Logic).

Restores the running-balance invariant for exactly one account:
replaying its entries in (entry_date, sequence_hint) order from zero
must reproduce every stored closing balance.

Recompute is a full replay, never an incremental patch. Any edit,
wherever it lands in the date order, rewrites the whole chain.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from bookkeeper.app.core.exceptions import PartialRecomputeFailure
from bookkeeper.app.domain.ledger.fields import ZERO
from bookkeeper.app.domain.ledger.store import LedgerEntryStore
from bookkeeper.app.models.ledger_enums import LedgerBook

logger = logging.getLogger("bookkeeper.ledger.recompute")


@dataclass
class RecomputeResult:
    """Outcome of one successful replay."""
    book: LedgerBook
    account_id: str
    entries_written: int
    closing_balance: Decimal


class BalanceRecomputer:
    """
    Replays one account's entries and persists each closing balance.

    Callers must hold the account's recompute lock (see
    ``services.account_lock``) for the duration of ``recompute``.
    """

    def __init__(self, store: LedgerEntryStore):
        self.store = store

    async def recompute(self, account_id: str) -> RecomputeResult:
        """
        Rebuild the closing-balance chain of ``account_id``.

        Flow:
        1. Fetch every entry of the account in replay order
        2. Start the running balance at 0
        3. Add each entry's book-specific delta
        4. Persist each closing balance, one entry at a time, in order

        A write failure leaves earlier entries correct (they never depend on
        later ones) and is reported with the last good entry so the caller
        can retry the whole recompute.

        Raises:
            StoreUnavailable: the entries could not be fetched
            PartialRecomputeFailure: a write failed part-way through
        """
        book = self.store.book
        delta = self.store.rules.delta

        entries = await self.store.list_by_account(account_id)

        balance = ZERO
        last_good_entry_id: Optional[int] = None
        for entry in entries:
            entry_id = entry.id
            balance += delta(entry)
            try:
                await self.store.write_closing_balance(entry, balance)
            except SQLAlchemyError as exc:
                await self.store.db.rollback()
                logger.error(
                    "Recompute of %s '%s' failed at entry %s (last good: %s): %s",
                    book.value, account_id, entry_id, last_good_entry_id, exc
                )
                raise PartialRecomputeFailure(
                    book=book.value,
                    account_id=account_id,
                    last_good_entry_id=last_good_entry_id,
                    failed_entry_id=entry_id,
                    reason=str(exc)
                ) from exc
            last_good_entry_id = entry_id

        logger.info(
            "Recomputed %s '%s': %d entries, closing balance %s",
            book.value, account_id, len(entries), balance
        )
        return RecomputeResult(
            book=book,
            account_id=account_id,
            entries_written=len(entries),
            closing_balance=balance
        )
