"""
Supplier ledger API tests.
"""

from datetime import date

import pytest


async def post_supplier_entry(client, **fields):
    response = await client.post("/v1/supplier-ledger", json=fields)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_opening_purchase_payment_running_balance(client):
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-01", amount=5000, entry_kind="OPENING")
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-02", amount=2000, entry_kind="PURCHASE")
    payment = await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-03", amount="3000")

    assert payment["entry_kind"] == "PAYMENT"
    assert payment["closing_balance"] == 4000.0

    rows = (await client.get("/v1/supplier-ledger", params={"account_id": "Steel Co"})).json()
    assert [row["closing_balance"] for row in rows] == [5000.0, 7000.0, 4000.0]


@pytest.mark.asyncio
async def test_amount_is_required(client):
    response = await client.post("/v1/supplier-ledger", json={"account_id": "Steel Co", "entry_date": "2024-01-01"})

    assert response.status_code == 400
    assert response.json()["details"]["fields"] == ["amount"]


@pytest.mark.asyncio
async def test_client_only_kinds_are_rejected(client):
    response = await client.post(
        "/v1/supplier-ledger",
        json={"account_id": "Steel Co", "entry_date": "2024-01-01", "amount": 1, "entry_kind": "SALE"}
    )

    assert response.status_code == 400
    assert response.json()["details"]["fields"] == ["entry_kind"]


@pytest.mark.asyncio
async def test_set_opening_replaces_previous_opening(client):
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-01", amount=5000, entry_kind="OPENING")
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-02", amount=1000, entry_kind="PURCHASE")

    response = await client.post("/v1/supplier-ledger/opening", json={"account_id": "Steel Co", "amount": "750"})

    assert response.status_code == 201
    opening = response.json()
    assert opening["entry_kind"] == "OPENING"
    assert opening["amount"] == 750.0
    assert opening["entry_date"] == date.today().isoformat()
    assert opening["description"] == "Opening balance set"

    openings = (await client.get(
        "/v1/supplier-ledger", params={"account_id": "Steel Co", "entry_kind": "OPENING"}
    )).json()
    assert [row["id"] for row in openings] == [opening["id"]]

    statement = (await client.get("/v1/supplier-ledger/statement/Steel Co")).json()
    assert statement["closing_balance"] == 1750.0


@pytest.mark.asyncio
async def test_set_opening_requires_supplier(client):
    response = await client.post("/v1/supplier-ledger/opening", json={"amount": 10})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_statement_totals(client):
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-01", amount=5000, entry_kind="OPENING")
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-02", amount=2000, entry_kind="PURCHASE")
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-03", amount=3000)

    response = await client.get("/v1/supplier-ledger/statement/Steel Co")

    assert response.status_code == 200
    data = response.json()
    assert data["account_id"] == "Steel Co"
    assert [row["closing_balance"] for row in data["entries"]] == [5000.0, 7000.0, 4000.0]
    assert data["closing_balance"] == 4000.0
    assert data["total_purchases"] == 7000.0
    assert data["total_payments"] == 3000.0


@pytest.mark.asyncio
async def test_statement_for_unknown_supplier_is_empty(client):
    data = (await client.get("/v1/supplier-ledger/statement/Nobody")).json()

    assert data["entries"] == []
    assert data["closing_balance"] == 0.0


@pytest.mark.asyncio
async def test_summary_per_supplier(client):
    await post_supplier_entry(client, account_id="Beta", entry_date="2024-01-01", amount=100, entry_kind="PURCHASE")
    await post_supplier_entry(client, account_id="Alpha", entry_date="2024-01-01", amount=500, entry_kind="OPENING")
    await post_supplier_entry(client, account_id="Alpha", entry_date="2024-01-02", amount=200, entry_kind="PURCHASE")
    await post_supplier_entry(client, account_id="Alpha", entry_date="2024-01-03", amount=300)

    response = await client.get("/v1/supplier-ledger/summary")

    assert response.status_code == 200
    assert response.json() == [
        {
            "account_id": "Alpha",
            "opening_balance": 500.0,
            "total_purchases": 700.0,
            "total_payments": 300.0,
            "outstanding": 400.0,
            "transaction_count": 3,
        },
        {
            "account_id": "Beta",
            "opening_balance": 0.0,
            "total_purchases": 100.0,
            "total_payments": 0.0,
            "outstanding": 100.0,
            "transaction_count": 1,
        },
    ]


@pytest.mark.asyncio
async def test_update_and_delete_recompute(client):
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-01", amount=1000, entry_kind="PURCHASE")
    payment = await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-02", amount=400)

    updated = await client.put(f"/v1/supplier-ledger/{payment['id']}", json={"amount": 250})
    assert updated.json()["closing_balance"] == 750.0

    deleted = await client.delete(f"/v1/supplier-ledger/{payment['id']}")
    assert deleted.status_code == 200

    rows = (await client.get("/v1/supplier-ledger", params={"account_id": "Steel Co"})).json()
    assert [row["closing_balance"] for row in rows] == [1000.0]


@pytest.mark.asyncio
async def test_client_entry_ids_are_not_visible_here(client):
    response = await client.post("/v1/ledger", json={"account_id": "ABC", "entry_date": "2024-01-01", "credit": 1})

    delete = await client.delete(f"/v1/supplier-ledger/{response.json()['id']}")

    assert delete.status_code == 404


@pytest.mark.asyncio
async def test_explicit_recompute(client):
    await post_supplier_entry(client, account_id="Steel Co", entry_date="2024-01-01", amount=1000, entry_kind="PURCHASE")

    response = await client.post("/v1/supplier-ledger/accounts/Steel Co/recompute")

    assert response.status_code == 200
    assert response.json()["book"] == "SUPPLIER"
    assert response.json()["closing_balance"] == 1000.0
