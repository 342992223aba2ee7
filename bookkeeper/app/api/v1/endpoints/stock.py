"""
Stock API Endpoints.

Lots bought from a supplier appear in that supplier's ledger as a
linked PURCHASE entry.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.db.session import get_db
from bookkeeper.app.domain.stock.stock_service import StockService
from bookkeeper.app.models.stock_enums import StockStatus
from bookkeeper.app.schemas.ledger import DeleteResponse
from bookkeeper.app.schemas.stock import (
    StockCreate, StockUpdate, StockStatusUpdate, StockResponse,
    StockSummaryResponse, ManualPaidRequest, ManualPaidResponse
)
from bookkeeper.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/stock", tags=["Stock"])


@router.get("", response_model=List[StockResponse])
async def list_stock(
    status_filter: Optional[StockStatus] = Query(None, alias="status"),
    product_type: Optional[str] = Query(None),
    supplier_name: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    stocks = await StockService.list_stock(
        db,
        status=status_filter,
        product_type=product_type,
        supplier_name=supplier_name
    )
    return [StockResponse.model_validate(stock) for stock in stocks]


@router.get("/summary", response_model=StockSummaryResponse)
async def stock_summary(db: AsyncSession = Depends(get_db)):
    """
    Stock position.

    Quantities are remaining quantities; values use the effective rate,
    which spreads loading, unloading, transport and other charges over
    the purchased quantity.
    """
    return await StockService.summary(db)


@router.post("", response_model=StockResponse, status_code=status.HTTP_201_CREATED)
async def create_stock(stock_data: StockCreate, db: AsyncSession = Depends(get_db)):
    """
    Book a stock lot.

    product_type, purchase_date, quantity and purchase_rate are required.
    With a supplier_name, a PURCHASE of quantity x rate + charges is added
    to that supplier's ledger.
    """
    stock = await StockService.create(db, stock_data.model_dump(exclude_unset=True))

    await log_event(
        db=db,
        action=AuditAction.STOCK_CREATED,
        resource="STOCK",
        resource_id=stock.id,
        metadata={
            "product_type": stock.product_type,
            "quantity": str(stock.quantity),
            "supplier_name": stock.supplier_name,
            "supplier_entry_id": stock.supplier_entry_id
        }
    )

    return StockResponse.model_validate(stock)


@router.post("/manual-paid", response_model=ManualPaidResponse)
async def set_manual_paid(paid_data: ManualPaidRequest, db: AsyncSession = Depends(get_db)):
    manual_paid = await StockService.set_manual_paid(db, paid_data.total_paid)

    await log_event(
        db=db,
        action=AuditAction.MANUAL_PAID_SET,
        resource="STOCK",
        metadata={"manual_paid": str(manual_paid)}
    )

    return ManualPaidResponse(manual_paid=manual_paid)


@router.put("/{stock_id}", response_model=StockResponse)
async def update_stock(stock_id: int, stock_data: StockUpdate, db: AsyncSession = Depends(get_db)):
    """Update a lot; the linked supplier purchase keeps its amount."""
    update_data = stock_data.model_dump(exclude_unset=True)
    stock = await StockService.update(db, stock_id, update_data)

    await log_event(
        db=db,
        action=AuditAction.STOCK_UPDATED,
        resource="STOCK",
        resource_id=stock.id,
        metadata={"updated_fields": list(update_data.keys())}
    )

    return StockResponse.model_validate(stock)


@router.post("/{stock_id}/update-status", response_model=StockResponse)
async def update_stock_status(
    stock_id: int,
    status_data: StockStatusUpdate,
    db: AsyncSession = Depends(get_db)
):
    stock = await StockService.update_status(db, stock_id, status_data.status)

    await log_event(
        db=db,
        action=AuditAction.STOCK_STATUS_CHANGED,
        resource="STOCK",
        resource_id=stock.id,
        metadata={"status": stock.status.value}
    )

    return StockResponse.model_validate(stock)


@router.delete("/{stock_id}", response_model=DeleteResponse)
async def delete_stock(stock_id: int, db: AsyncSession = Depends(get_db)):
    """
    Delete a lot and its supplier purchase.

    Refused with 409 once any of the lot has been sold.
    """
    await StockService.delete(db, stock_id)

    await log_event(
        db=db,
        action=AuditAction.STOCK_DELETED,
        resource="STOCK",
        resource_id=stock_id
    )

    return DeleteResponse(message="Stock entry deleted", id=stock_id)
