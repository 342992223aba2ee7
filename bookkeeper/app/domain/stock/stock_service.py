"""
Stock Service (Domain Logic).

Stock purchases from a named supplier are mirrored as PURCHASE entries
in that supplier's ledger, so creating or deleting stock also
recomputes the supplier's balance chain.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from bookkeeper.app.domain.ledger.fields import ZERO, coerce_amount, coerce_quantity
from bookkeeper.app.domain.ledger.service import LedgerService
from bookkeeper.app.models.ledger_entry import LedgerEntry
from bookkeeper.app.models.ledger_enums import LedgerBook, EntryKind
from bookkeeper.app.models.stock_entry import StockEntry
from bookkeeper.app.models.stock_enums import StockStatus
from bookkeeper.app.models.stock_settings import StockSettings

logger = logging.getLogger("bookkeeper.stock")

CHARGE_FIELDS = ("loading_charges", "unloading_charges", "transport_charges", "other_charges")


def additional_costs(stock: StockEntry) -> Decimal:
    return sum((coerce_amount(getattr(stock, name)) for name in CHARGE_FIELDS), ZERO)


def total_cost(stock: StockEntry) -> Decimal:
    """Purchase value of the whole lot: quantity x rate plus every charge."""
    base = coerce_amount(coerce_quantity(stock.quantity) * coerce_amount(stock.purchase_rate))
    return base + additional_costs(stock)


def effective_rate(stock: StockEntry) -> Decimal:
    quantity = coerce_quantity(stock.quantity)
    if quantity > 0:
        return total_cost(stock) / quantity
    return coerce_amount(stock.purchase_rate)


class StockService:

    @staticmethod
    async def get(db: AsyncSession, stock_id: int) -> StockEntry:
        result = await db.execute(
            select(StockEntry)
            .where(StockEntry.id == stock_id)
            .execution_options(populate_existing=True)
        )
        stock = result.scalar_one_or_none()
        if not stock:
            raise ResourceNotFoundError("Stock entry", stock_id)
        return stock

    @staticmethod
    async def list_stock(
        db: AsyncSession,
        status: Optional[StockStatus] = None,
        product_type: Optional[str] = None,
        supplier_name: Optional[str] = None
    ) -> List[StockEntry]:
        """Stock entries, newest first."""
        query = select(StockEntry)
        if status:
            query = query.where(StockEntry.status == StockStatus(status))
        if product_type:
            query = query.where(StockEntry.product_type == product_type)
        if supplier_name:
            query = query.where(StockEntry.supplier_name == supplier_name)
        query = query.order_by(desc(StockEntry.created_at), desc(StockEntry.id))

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def create(db: AsyncSession, fields: Dict[str, Any]) -> StockEntry:
        """
        Create a stock entry.

        Flow:
        1. Validate product type, purchase date, quantity and rate
        2. Create the stock entry (remaining quantity = quantity)
        3. If bought from a named supplier, add a linked PURCHASE entry
           to the supplier ledger in the same commit
        4. Recompute the supplier's account

        Steps 2-4 run under the supplier's recompute lock, so a busy
        supplier account rejects the call before anything is saved.
        """
        missing = []
        if not (fields.get("product_type") or "").strip():
            missing.append("product_type")
        if not fields.get("purchase_date"):
            missing.append("purchase_date")
        quantity = coerce_quantity(fields.get("quantity"))
        if not quantity:
            missing.append("quantity")
        rate = coerce_amount(fields.get("purchase_rate"))
        if not rate:
            missing.append("purchase_rate")
        if missing:
            raise ValidationError(f"{' and '.join(missing)} required", fields=missing)

        values = dict(fields)
        values["product_type"] = values["product_type"].strip()
        values["quantity"] = quantity
        values["remaining_quantity"] = quantity
        values["purchase_rate"] = rate
        values["status"] = StockStatus(values.get("status") or StockStatus.BOOKED)
        for name in CHARGE_FIELDS:
            values[name] = coerce_amount(values.get(name))
        supplier_name = (values.get("supplier_name") or "").strip() or None
        values["supplier_name"] = supplier_name

        ledger = LedgerService(db, LedgerBook.SUPPLIER)
        async with ledger.account_locks(supplier_name):
            stock = StockEntry(**values)
            db.add(stock)
            await db.flush()

            if supplier_name:
                purchase = await ledger.store.create({
                    "account_id": supplier_name,
                    "entry_kind": EntryKind.PURCHASE,
                    "entry_date": stock.purchase_date,
                    "amount": total_cost(stock),
                    "invoice_number": stock.supplier_invoice_no or "",
                    "invoice_date": stock.purchase_date,
                    "description": (
                        f"Stock purchase: {stock.product_type} - "
                        f"{stock.quantity} units @ {stock.purchase_rate}"
                    ),
                    "stock_entry_id": stock.id,
                })
                stock.supplier_entry_id = purchase.id
                await db.commit()
                await ledger.replay(supplier_name)
            else:
                await db.commit()

        logger.info("Created stock entry %s (%s)", stock.id, stock.product_type)
        return await StockService.get(db, stock.id)

    @staticmethod
    async def update(db: AsyncSession, stock_id: int, fields: Dict[str, Any]) -> StockEntry:
        """Apply only the provided fields to a stock entry."""
        stock = await StockService.get(db, stock_id)

        cleared = []
        if "product_type" in fields and not (fields["product_type"] or "").strip():
            cleared.append("product_type")
        if "purchase_date" in fields and not fields["purchase_date"]:
            cleared.append("purchase_date")
        if cleared:
            raise ValidationError(f"{' and '.join(cleared)} cannot be empty", fields=cleared)

        for name, value in fields.items():
            if name in CHARGE_FIELDS or name == "purchase_rate":
                value = coerce_amount(value)
            elif name in ("quantity", "remaining_quantity"):
                value = coerce_quantity(value)
            elif name == "status":
                value = StockStatus(value or StockStatus.BOOKED)
            setattr(stock, name, value)

        await db.commit()
        return await StockService.get(db, stock_id)

    @staticmethod
    async def update_status(db: AsyncSession, stock_id: int, status: StockStatus) -> StockEntry:
        stock = await StockService.get(db, stock_id)
        stock.status = StockStatus(status)
        await db.commit()
        return await StockService.get(db, stock_id)

    @staticmethod
    async def delete(db: AsyncSession, stock_id: int) -> None:
        """
        Delete a stock entry and its supplier purchase.

        The stock row and its purchase are removed in one commit under the
        supplier's recompute lock.

        Raises:
            ConflictError: part of the lot has already been sold
        """
        stock = await StockService.get(db, stock_id)

        quantity = coerce_quantity(stock.quantity)
        remaining = coerce_quantity(stock.remaining_quantity)
        if remaining < quantity:
            raise ConflictError(
                "Cannot delete stock entry with sales. Please adjust sales first.",
                details={"stock_id": stock_id, "quantity": str(quantity), "remaining": str(remaining)}
            )

        ledger = LedgerService(db, LedgerBook.SUPPLIER)
        purchase = None
        if stock.supplier_entry_id:
            try:
                purchase = await ledger.get_entry(stock.supplier_entry_id)
            except ResourceNotFoundError:
                logger.warning(
                    "Supplier purchase %s for stock %s already removed", stock.supplier_entry_id, stock_id
                )

        if purchase is None:
            await db.delete(stock)
            await db.commit()
            return

        supplier = purchase.account_id
        async with ledger.account_locks(supplier):
            await db.delete(stock)
            await ledger.store.delete(purchase.id)
            await ledger.replay(supplier)

    @staticmethod
    async def _linked_stock_id(db: AsyncSession, entry: LedgerEntry) -> Optional[int]:
        if not entry.stock_entry_id:
            return None
        result = await db.execute(select(StockEntry.id).where(StockEntry.id == entry.stock_entry_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def ensure_purchase_unlinked(db: AsyncSession, entry: LedgerEntry) -> None:
        """
        Refuse to delete a supplier entry that still backs a stock entry.

        Raises:
            ConflictError: the entry is linked to an existing stock entry
        """
        stock_id = await StockService._linked_stock_id(db, entry)
        if stock_id:
            raise ConflictError(
                "Cannot delete purchase linked to stock entry. Delete the stock entry first.",
                details={"entry_id": entry.id, "stock_entry_id": stock_id}
            )

    @staticmethod
    async def ensure_purchase_link_kept(db: AsyncSession, entry: LedgerEntry, fields: Dict[str, Any]) -> None:
        """
        Refuse to re-kind or move a purchase that backs a stock entry.

        Amount, dates and descriptive fields stay editable.

        Raises:
            ConflictError: the update changes entry_kind or account_id of a linked purchase
        """
        changed = []
        if fields.get("entry_kind") is not None and fields["entry_kind"] != entry.entry_kind:
            changed.append("entry_kind")
        if fields.get("account_id") is not None and str(fields["account_id"]).strip() != entry.account_id:
            changed.append("account_id")
        if not changed:
            return

        stock_id = await StockService._linked_stock_id(db, entry)
        if stock_id:
            raise ConflictError(
                "Cannot change the kind or supplier of a purchase linked to a stock entry.",
                details={"entry_id": entry.id, "stock_entry_id": stock_id, "fields": changed}
            )

    @staticmethod
    async def set_manual_paid(db: AsyncSession, total_paid: Any) -> Decimal:
        result = await db.execute(select(StockSettings).order_by(StockSettings.id).limit(1))
        stock_settings = result.scalar_one_or_none()
        if not stock_settings:
            stock_settings = StockSettings()
            db.add(stock_settings)
        stock_settings.manual_paid = coerce_amount(total_paid)
        await db.commit()
        return stock_settings.manual_paid

    @staticmethod
    async def summary(db: AsyncSession) -> Dict[str, Any]:
        """
        Quantity and value per status and per product.

        Value uses the effective rate (purchase value incl. charges divided
        by quantity) applied to the remaining quantity.
        """
        result = await db.execute(select(StockEntry))
        stocks = result.scalars().all()

        by_status = {status: {"qty": ZERO, "value": ZERO} for status in StockStatus if status != StockStatus.SOLD}
        by_product: Dict[str, Dict[str, Decimal]] = {}

        for stock in stocks:
            quantity = coerce_quantity(stock.quantity)
            remaining = coerce_quantity(stock.remaining_quantity)
            cost = total_cost(stock)
            value = coerce_amount(remaining * effective_rate(stock))

            if stock.status in by_status:
                by_status[stock.status]["qty"] += remaining
                by_status[stock.status]["value"] += value

            product = by_product.setdefault(stock.product_type or "Unknown", {
                "total_purchased": ZERO,
                "remaining": ZERO,
                "sold": ZERO,
                "purchase_value": ZERO,
                "remaining_value": ZERO,
            })
            product["total_purchased"] += quantity
            product["remaining"] += remaining
            product["sold"] += quantity - remaining
            product["purchase_value"] += cost
            product["remaining_value"] += value

        settings_result = await db.execute(select(StockSettings).order_by(StockSettings.id).limit(1))
        stock_settings = settings_result.scalar_one_or_none()

        return {
            "booked_qty": by_status[StockStatus.BOOKED]["qty"],
            "booked_value": by_status[StockStatus.BOOKED]["value"],
            "on_way_qty": by_status[StockStatus.ON_WAY]["qty"],
            "on_way_value": by_status[StockStatus.ON_WAY]["value"],
            "unloaded_qty": by_status[StockStatus.UNLOADED]["qty"],
            "unloaded_value": by_status[StockStatus.UNLOADED]["value"],
            "available_qty": by_status[StockStatus.AVAILABLE]["qty"],
            "available_value": by_status[StockStatus.AVAILABLE]["value"],
            "total_qty": sum((v["qty"] for v in by_status.values()), ZERO),
            "total_value": sum((v["value"] for v in by_status.values()), ZERO),
            "manual_paid": stock_settings.manual_paid if stock_settings else ZERO,
            "by_product": by_product,
        }
