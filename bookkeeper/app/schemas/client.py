"""
Client directory schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from bookkeeper.app.schemas.ledger import NumericInput


class ClientCreate(BaseModel):
    """Schema for creating a client."""
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    opening_balance: NumericInput = None
    remarks: Optional[str] = Field(None, max_length=500)


class ClientUpdate(ClientCreate):
    """Schema for updating a client; only the fields sent are applied."""


class ClientResponse(BaseModel):
    """Schema for client response."""
    id: int
    name: str
    phone: str
    address: str
    opening_balance: float
    remarks: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
