"""
Concurrency Tests.

Validates that recomputes of one account never interleave, while
different accounts proceed independently.
"""

import asyncio

import pytest
from datetime import date
from decimal import Decimal
from redis.exceptions import ConnectionError as RedisConnectionError

from bookkeeper.app.core.config import settings
from bookkeeper.app.core.exceptions import AccountBusyError, StoreUnavailable
from bookkeeper.app.domain.ledger.service import LedgerService
from bookkeeper.app.models.ledger_enums import LedgerBook
from bookkeeper.app.services.account_lock import account_lock, lock_key


def test_lock_key_is_per_book_and_account():
    assert lock_key(LedgerBook.SUPPLIER, "Steel Co") == "ledger:recompute:SUPPLIER:Steel Co"
    assert lock_key(LedgerBook.CLIENT, "Steel Co") != lock_key(LedgerBook.SUPPLIER, "Steel Co")


@pytest.mark.asyncio
async def test_same_account_recomputes_are_serialized():
    events = []

    async def replay(name):
        async with account_lock(LedgerBook.CLIENT, "ABC"):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(replay("first"), replay("second"))

    assert events in (
        ["first:start", "first:end", "second:start", "second:end"],
        ["second:start", "second:end", "first:start", "first:end"],
    )


@pytest.mark.asyncio
async def test_different_accounts_do_not_contend():
    inside = set()
    overlapped = asyncio.Event()

    async def replay(account_id):
        async with account_lock(LedgerBook.CLIENT, account_id):
            inside.add(account_id)
            if len(inside) == 2:
                overlapped.set()
            await asyncio.wait_for(overlapped.wait(), timeout=1)

    await asyncio.gather(replay("ABC"), replay("XYZ"))

    assert overlapped.is_set()


@pytest.mark.asyncio
async def test_busy_account_raises_after_wait(mocker):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    release = asyncio.Event()
    held = asyncio.Event()

    async def long_replay():
        async with account_lock(LedgerBook.SUPPLIER, "Steel Co"):
            held.set()
            await release.wait()

    holder = asyncio.create_task(long_replay())
    await held.wait()

    with pytest.raises(AccountBusyError) as exc_info:
        async with account_lock(LedgerBook.SUPPLIER, "Steel Co"):
            pass

    release.set()
    await holder

    assert exc_info.value.status_code == 409
    assert exc_info.value.error_code == "ERR_LOCK_001"
    assert exc_info.value.details == {"book": "SUPPLIER", "account_id": "Steel Co"}


@pytest.mark.asyncio
async def test_lock_released_when_recompute_fails():
    with pytest.raises(RuntimeError):
        async with account_lock(LedgerBook.CLIENT, "ABC"):
            raise RuntimeError("boom")

    async with account_lock(LedgerBook.CLIENT, "ABC"):
        pass


@pytest.mark.asyncio
async def test_unreachable_lock_store_raises_store_unavailable(mocker, redis_client_session):
    lock = mocker.MagicMock()
    lock.acquire = mocker.AsyncMock(side_effect=RedisConnectionError("refused"))
    mocker.patch.object(redis_client_session, "lock", return_value=lock)

    with pytest.raises(StoreUnavailable) as exc_info:
        async with account_lock(LedgerBook.CLIENT, "ABC"):
            pass

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_recompute_runs_under_account_lock(db_session, redis_client_session):
    service = LedgerService(db_session, LedgerBook.CLIENT)
    await service.create_entry({"account_id": "ABC", "entry_date": date(2024, 1, 1), "credit": 10})

    result = await service.recompute("ABC")

    assert result.closing_balance == Decimal("10")
    assert redis_client_session.acquired.count("ledger:recompute:CLIENT:ABC") == 2


@pytest.mark.asyncio
async def test_busy_account_surfaces_as_409(client, mocker, redis_client_session):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-01", "credit": 10})

    async with account_lock(LedgerBook.CLIENT, "ABC"):
        response = await client.post("/v1/ledger/accounts/ABC/recompute")

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_LOCK_001"


async def client_rows(client, account_id="ABC"):
    response = await client.get("/v1/ledger", params={"account_id": account_id})
    return [(row["entry_date"], row["credit"], row["closing_balance"]) for row in response.json()]


@pytest.mark.asyncio
async def test_busy_account_rejects_create_without_saving(client, mocker):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-01", "credit": 1000})
    backdated = {"account_id": "ABC", "entry_date": "2023-12-01", "credit": 50}

    async with account_lock(LedgerBook.CLIENT, "ABC"):
        response = await client.post("/v1/ledger", json=backdated)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_LOCK_001"
    assert await client_rows(client) == [("2024-01-01", 1000.0, 1000.0)]

    retry = await client.post("/v1/ledger", json=backdated)
    assert retry.status_code == 201
    assert await client_rows(client) == [
        ("2023-12-01", 50.0, 50.0),
        ("2024-01-01", 1000.0, 1050.0),
    ]


@pytest.mark.asyncio
async def test_busy_account_rejects_update_without_saving(client, mocker):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-01", "credit": 1000})
    created = await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-05", "credit": 200})
    entry_id = created.json()["id"]

    async with account_lock(LedgerBook.CLIENT, "ABC"):
        response = await client.put(f"/v1/ledger/{entry_id}", json={"entry_date": "2023-12-01"})

    assert response.status_code == 409
    assert await client_rows(client) == [
        ("2024-01-01", 1000.0, 1000.0),
        ("2024-01-05", 200.0, 1200.0),
    ]


@pytest.mark.asyncio
async def test_busy_target_account_blocks_move(client, mocker):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    created = await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-01", "credit": 300})
    entry_id = created.json()["id"]

    async with account_lock(LedgerBook.CLIENT, "XYZ"):
        response = await client.put(f"/v1/ledger/{entry_id}", json={"account_id": "XYZ"})

    assert response.status_code == 409
    assert response.json()["details"]["account_id"] == "XYZ"
    assert await client_rows(client, "ABC") == [("2024-01-01", 300.0, 300.0)]
    assert await client_rows(client, "XYZ") == []


@pytest.mark.asyncio
async def test_busy_account_rejects_delete_without_removing(client, mocker):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    created = await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-01", "credit": 1000})
    await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-05", "credit": 200})

    async with account_lock(LedgerBook.CLIENT, "ABC"):
        response = await client.delete(f"/v1/ledger/{created.json()['id']}")

    assert response.status_code == 409
    assert await client_rows(client) == [
        ("2024-01-01", 1000.0, 1000.0),
        ("2024-01-05", 200.0, 1200.0),
    ]


@pytest.mark.asyncio
async def test_move_between_accounts_holds_both_locks(db_session, redis_client_session):
    service = LedgerService(db_session, LedgerBook.CLIENT)
    entry = await service.create_entry({"account_id": "XYZ", "entry_date": date(2024, 1, 1), "credit": 10})
    redis_client_session.acquired.clear()

    await service.update_entry(entry.id, {"account_id": "ABC"})

    assert redis_client_session.acquired == [
        "ledger:recompute:CLIENT:ABC",
        "ledger:recompute:CLIENT:XYZ",
    ]


@pytest.mark.asyncio
async def test_busy_supplier_rejects_stock_create_without_saving(client, mocker):
    mocker.patch.object(settings, "recompute_lock_wait_seconds", 0.05)
    lot = {"product_type": "TMT Bar", "purchase_date": "2024-01-10", "quantity": 10,
           "purchase_rate": 500, "supplier_name": "Steel Co"}

    async with account_lock(LedgerBook.SUPPLIER, "Steel Co"):
        response = await client.post("/v1/stock", json=lot)

    assert response.status_code == 409
    assert (await client.get("/v1/stock")).json() == []
    assert (await client.get("/v1/supplier-ledger", params={"account_id": "Steel Co"})).json() == []
