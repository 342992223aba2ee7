"""
Stock Entry database model.

A purchased lot of a product moving through BOOKED -> ON_WAY ->
UNLOADED -> AVAILABLE -> SOLD.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Enum
from sqlalchemy.sql import func
from bookkeeper.app.db.session import Base
from bookkeeper.app.models.stock_enums import StockStatus


class StockEntry(Base):
    """
    Stock Entry model.
    
    When bought from a named supplier, a PURCHASE entry is written to
    that supplier's ledger and linked through ``supplier_entry_id``.
    """
    __tablename__ = "stock_entries"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    product_type = Column(String(100), nullable=False, index=True)
    status = Column(Enum(StockStatus), default=StockStatus.BOOKED, nullable=False, index=True)
    purchase_date = Column(Date, nullable=False)
    
    # Quantities
    quantity = Column(Numeric(18, 3), nullable=False)
    remaining_quantity = Column(Numeric(18, 3), nullable=False)
    purchase_rate = Column(Numeric(18, 2), nullable=False)
    
    # Supplier
    supplier_name = Column(String(200), nullable=True, index=True)
    supplier_invoice_no = Column(String(100), nullable=True)
    supplier_entry_id = Column(Integer, nullable=True)
    
    # Transportation
    transport_company = Column(String(200), nullable=True)
    vehicle_number = Column(String(50), nullable=True)
    warehouse_location = Column(String(200), nullable=True)
    
    # Additional costs
    loading_charges = Column(Numeric(18, 2), default=0, nullable=False)
    unloading_charges = Column(Numeric(18, 2), default=0, nullable=False)
    transport_charges = Column(Numeric(18, 2), default=0, nullable=False)
    other_charges = Column(Numeric(18, 2), default=0, nullable=False)
    other_charges_description = Column(String(500), nullable=True)
    
    expected_arrival_date = Column(Date, nullable=True)
    notes = Column(String(1000), nullable=True)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<StockEntry(id={self.id}, product='{self.product_type}', status='{self.status.value}')>"
