"""
Audit Log Database Model.

Tracks every ledger, client and stock mutation for later review.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from bookkeeper.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.
    
    Events logged:
    - LEDGER_ENTRY_CREATED / UPDATED / DELETED
    - ACCOUNT_RECOMPUTED
    - SUPPLIER_OPENING_SET
    - CLIENT_* and STOCK_* changes
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # What action was performed
    action = Column(String(100), nullable=False, index=True)
    
    # Which record/account it touched
    resource = Column(String(100), nullable=True, index=True)
    resource_id = Column(String(200), nullable=True)
    
    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)
    
    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', resource={self.resource}:{self.resource_id})>"
