"""
Stock schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, Dict
from bookkeeper.app.models.stock_enums import StockStatus
from bookkeeper.app.schemas.ledger import NumericInput


class StockCreate(BaseModel):
    """Schema for booking a new stock lot."""
    product_type: Optional[str] = Field(None, max_length=100)
    status: Optional[StockStatus] = None
    purchase_date: Optional[date] = None
    quantity: NumericInput = None
    purchase_rate: NumericInput = None
    supplier_name: Optional[str] = Field(None, max_length=200)
    supplier_invoice_no: Optional[str] = Field(None, max_length=100)
    transport_company: Optional[str] = Field(None, max_length=200)
    vehicle_number: Optional[str] = Field(None, max_length=50)
    warehouse_location: Optional[str] = Field(None, max_length=200)
    loading_charges: NumericInput = None
    unloading_charges: NumericInput = None
    transport_charges: NumericInput = None
    other_charges: NumericInput = None
    other_charges_description: Optional[str] = Field(None, max_length=500)
    expected_arrival_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=1000)


class StockUpdate(StockCreate):
    """Schema for a partial stock update."""
    remaining_quantity: NumericInput = None


class StockStatusUpdate(BaseModel):
    """Schema for moving a lot to another status."""
    status: StockStatus


class ManualPaidRequest(BaseModel):
    """Schema for the manually tracked total paid."""
    total_paid: NumericInput = None


class ManualPaidResponse(BaseModel):
    manual_paid: float


class StockResponse(BaseModel):
    """Schema for stock entry response."""
    id: int
    product_type: str
    status: StockStatus
    purchase_date: date
    quantity: float
    remaining_quantity: float
    purchase_rate: float
    supplier_name: Optional[str]
    supplier_invoice_no: Optional[str]
    supplier_entry_id: Optional[int]
    transport_company: Optional[str]
    vehicle_number: Optional[str]
    warehouse_location: Optional[str]
    loading_charges: float
    unloading_charges: float
    transport_charges: float
    other_charges: float
    other_charges_description: Optional[str]
    expected_arrival_date: Optional[date]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    total_purchased: float
    remaining: float
    sold: float
    purchase_value: float
    remaining_value: float


class StockSummaryResponse(BaseModel):
    """Stock quantity and value per status and per product."""
    booked_qty: float
    booked_value: float
    on_way_qty: float
    on_way_value: float
    unloaded_qty: float
    unloaded_value: float
    available_qty: float
    available_value: float
    total_qty: float
    total_value: float
    manual_paid: float
    by_product: Dict[str, ProductSummary]
