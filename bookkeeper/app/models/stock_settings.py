"""
Stock settings model (single row).
"""

from sqlalchemy import Column, Integer, Numeric, DateTime
from sqlalchemy.sql import func
from bookkeeper.app.db.session import Base


class StockSettings(Base):
    """Holds the manually entered total paid against stock purchases."""
    __tablename__ = "stock_settings"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    manual_paid = Column(Numeric(18, 2), default=0, nullable=False)
    
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
