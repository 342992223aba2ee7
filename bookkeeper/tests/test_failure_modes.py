"""
Failure Injection Tests.

Validates that store failures surface with the right status and never
as a silent success.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from bookkeeper.app.domain.ledger.service import LedgerService
from bookkeeper.app.domain.ledger.store import LedgerEntryStore
from bookkeeper.app.main import app


@pytest.mark.asyncio
async def test_partial_recompute_is_reported_not_masked(client, mocker):
    for day in ("01", "02", "03"):
        response = await client.post(
            "/v1/ledger", json={"account_id": "ABC", "entry_date": f"2024-01-{day}", "credit": 100}
        )
        assert response.status_code == 201
    ids = [row["id"] for row in (await client.get("/v1/ledger", params={"account_id": "ABC"})).json()]

    original_write = LedgerEntryStore.write_closing_balance
    calls = {"count": 0}

    async def failing_write(self, entry, balance):
        calls["count"] += 1
        if calls["count"] == 2:
            raise SQLAlchemyError("write rejected")
        await original_write(self, entry, balance)

    mocker.patch.object(LedgerEntryStore, "write_closing_balance", failing_write)

    response = await client.put(f"/v1/ledger/{ids[0]}", json={"credit": 500})

    assert response.status_code == 500
    data = response.json()
    assert data["error_code"] == "ERR_RECOMPUTE_001"
    assert data["details"]["book"] == "CLIENT"
    assert data["details"]["account_id"] == "ABC"
    assert data["details"]["last_good_entry_id"] == ids[0]
    assert data["details"]["failed_entry_id"] == ids[1]

    # Retrying the recompute repairs the chain
    mocker.stopall()
    retry = await client.post("/v1/ledger/accounts/ABC/recompute")
    assert retry.status_code == 200
    rows = (await client.get("/v1/ledger", params={"account_id": "ABC"})).json()
    assert [row["closing_balance"] for row in rows] == [500.0, 600.0, 700.0]


@pytest.mark.asyncio
async def test_store_outage_is_503(client, mocker):
    mocker.patch(
        "sqlalchemy.ext.asyncio.AsyncSession.execute",
        side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
    )

    response = await client.get("/v1/ledger")

    assert response.status_code == 503
    data = response.json()
    assert data["error_code"] == "ERR_STORE_001"
    assert data["details"]["operation"] == "list_all"


@pytest.mark.asyncio
async def test_unexpected_error_is_500(mocker):
    mocker.patch.object(LedgerService, "list_entries", side_effect=RuntimeError("boom"))

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/v1/ledger")

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_INTERNAL_SERVER"


@pytest.mark.asyncio
async def test_responses_carry_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers
    assert response.json()["redis"] == "up"


@pytest.mark.asyncio
async def test_health_reports_lock_store_down(client, redis_client_session, mocker):
    mocker.patch.object(redis_client_session, "ping", side_effect=RedisError("connection refused"))

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["redis"] == "down"


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"
