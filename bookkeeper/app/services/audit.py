"""
Audit logging service for tracking ledger, client and stock changes.

Provides centralized logging so every balance-affecting action can be traced.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from bookkeeper.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Ledger books
    LEDGER_ENTRY_CREATED = "LEDGER_ENTRY_CREATED"
    LEDGER_ENTRY_UPDATED = "LEDGER_ENTRY_UPDATED"
    LEDGER_ENTRY_DELETED = "LEDGER_ENTRY_DELETED"
    ACCOUNT_RECOMPUTED = "ACCOUNT_RECOMPUTED"
    SUPPLIER_OPENING_SET = "SUPPLIER_OPENING_SET"

    # Client directory
    CLIENT_CREATED = "CLIENT_CREATED"
    CLIENT_UPDATED = "CLIENT_UPDATED"
    CLIENT_DELETED = "CLIENT_DELETED"

    # Stock
    STOCK_CREATED = "STOCK_CREATED"
    STOCK_UPDATED = "STOCK_UPDATED"
    STOCK_STATUS_CHANGED = "STOCK_STATUS_CHANGED"
    STOCK_DELETED = "STOCK_DELETED"
    MANUAL_PAID_SET = "MANUAL_PAID_SET"


async def log_event(
    db: AsyncSession,
    action: str,
    resource: Optional[str] = None,
    resource_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log a change to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        resource: Kind of record touched (e.g. the ledger book)
        resource_id: Entry id or account id touched
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        action=action,
        resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    resource: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Args:
        db: Database session
        resource: Filter by resource kind
        action: Filter by action type
        limit: Maximum number of records to return

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if resource:
        query = query.where(AuditLog.resource == resource)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
