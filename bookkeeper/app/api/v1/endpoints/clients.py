"""
Client Directory API Endpoints.

Client names double as account ids in the client ledger.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from bookkeeper.app.db.session import get_db
from bookkeeper.app.domain.ledger.fields import coerce_amount
from bookkeeper.app.models.client import Client
from bookkeeper.app.schemas.client import ClientCreate, ClientUpdate, ClientResponse
from bookkeeper.app.schemas.ledger import DeleteResponse
from bookkeeper.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/clients", tags=["Clients"])

TEXT_FIELDS = ("phone", "address", "remarks")


async def _get_client(db: AsyncSession, client_id: int) -> Client:
    result = await db.execute(select(Client).where(Client.id == client_id))
    client = result.scalar_one_or_none()
    if not client:
        raise ResourceNotFoundError("Client", client_id)
    return client


async def _ensure_name_free(db: AsyncSession, name: str, client_id: int = None) -> None:
    query = select(Client).where(Client.name == name)
    if client_id is not None:
        query = query.where(Client.id != client_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise ConflictError(f"Client '{name}' already exists", details={"name": name})


@router.get("", response_model=List[ClientResponse])
async def list_clients(db: AsyncSession = Depends(get_db)):
    """All clients, sorted by name regardless of case."""
    result = await db.execute(select(Client).order_by(Client.name_lower.asc(), Client.id.asc()))
    return [ClientResponse.model_validate(client) for client in result.scalars().all()]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    return ClientResponse.model_validate(await _get_client(db, client_id))


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(client_data: ClientCreate, db: AsyncSession = Depends(get_db)):
    """Create a client; the name is required and must be unique."""
    name = (client_data.name or "").strip()
    if not name:
        raise ValidationError("name required", fields=["name"])
    await _ensure_name_free(db, name)

    new_client = Client(
        name=name,
        name_lower=name.lower(),
        phone=client_data.phone or "",
        address=client_data.address or "",
        opening_balance=coerce_amount(client_data.opening_balance),
        remarks=client_data.remarks or ""
    )

    db.add(new_client)
    await db.commit()
    await db.refresh(new_client)

    await log_event(
        db=db,
        action=AuditAction.CLIENT_CREATED,
        resource="CLIENT_DIRECTORY",
        resource_id=new_client.id,
        metadata={"name": new_client.name}
    )

    return ClientResponse.model_validate(new_client)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(client_id: int, client_data: ClientUpdate, db: AsyncSession = Depends(get_db)):
    """Update a client; only the fields sent are changed."""
    client = await _get_client(db, client_id)
    update_data = client_data.model_dump(exclude_unset=True)

    if "name" in update_data:
        name = (update_data["name"] or "").strip()
        if not name:
            raise ValidationError("name cannot be empty", fields=["name"])
        await _ensure_name_free(db, name, client_id)
        client.name = name
        client.name_lower = name.lower()
    if "opening_balance" in update_data:
        client.opening_balance = coerce_amount(update_data["opening_balance"])
    for field in TEXT_FIELDS:
        if field in update_data:
            setattr(client, field, update_data[field] or "")

    await db.commit()
    await db.refresh(client)

    await log_event(
        db=db,
        action=AuditAction.CLIENT_UPDATED,
        resource="CLIENT_DIRECTORY",
        resource_id=client.id,
        metadata={"updated_fields": list(update_data.keys())}
    )

    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", response_model=DeleteResponse)
async def delete_client(client_id: int, db: AsyncSession = Depends(get_db)):
    """Remove a client from the directory; ledger entries are kept."""
    client = await _get_client(db, client_id)
    name = client.name

    await db.delete(client)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.CLIENT_DELETED,
        resource="CLIENT_DIRECTORY",
        resource_id=client_id,
        metadata={"name": name}
    )

    return DeleteResponse(message="Client deleted", id=client_id)
