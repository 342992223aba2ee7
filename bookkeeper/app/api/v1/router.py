"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bookkeeper.app.api.v1.endpoints import (
    client_ledger, company_balance, supplier_ledger,
    clients, stock, audit_logs
)

router = APIRouter()

# Ledger books
router.include_router(client_ledger.router)
router.include_router(company_balance.router)
router.include_router(supplier_ledger.router)

# Client directory
router.include_router(clients.router)

# Stock and its supplier purchases
router.include_router(stock.router)

# Audit trail
router.include_router(audit_logs.router)
