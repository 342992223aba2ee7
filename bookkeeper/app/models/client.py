"""
Client directory model.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from bookkeeper.app.db.session import Base


class Client(Base):
    """
    Client model.
    
    ``name`` is the account id used by the client ledger book.
    ``name_lower`` is derived from ``name`` and used for sorting.
    """
    __tablename__ = "clients"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    name = Column(String(200), unique=True, nullable=False)
    name_lower = Column(String(200), nullable=False, index=True)
    phone = Column(String(50), default="", nullable=False)
    address = Column(String(500), default="", nullable=False)
    opening_balance = Column(Numeric(18, 2), default=0, nullable=False)
    remarks = Column(String(500), default="", nullable=False)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
