"""
Audit Trail API Endpoint.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.db.session import get_db
from bookkeeper.app.schemas.audit import AuditLogResponse, AuditTrailResponse
from bookkeeper.app.services.audit import get_audit_trail

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditTrailResponse)
async def get_audit_logs(
    resource: str = Query(None, description="Filter by resource, e.g. CLIENT or STOCK"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db)
):
    """Most recent audit records first."""
    logs = await get_audit_trail(
        db=db,
        resource=resource,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
