"""
Integration tests for accounts and categories.
"""

from decimal import Decimal


async def test_account_crud_and_archive(client, auth_headers):
    created = await client.post("/v1/accounts", headers=auth_headers, json={
        "name": "Checking", "kind": "ASSET", "opening_balance": "250.00",
    })
    assert created.status_code == 201
    account = created.json()
    assert account["currency"] == "USD"
    assert Decimal(account["opening_balance"]) == Decimal("250.00")

    patched = await client.patch(f"/v1/accounts/{account['id']}", headers=auth_headers, json={"name": "Main"})
    assert patched.status_code == 200
    assert patched.json()["name"] == "Main"

    archived = await client.delete(f"/v1/accounts/{account['id']}", headers=auth_headers)
    assert archived.status_code == 200
    assert archived.json()["archived"] is True

    active = await client.get("/v1/accounts", headers=auth_headers)
    assert active.json()["total"] == 0

    everything = await client.get("/v1/accounts", headers=auth_headers, params={"include_archived": True})
    assert everything.json()["total"] == 1

    # Archived accounts still answer point lookups
    fetched = await client.get(f"/v1/accounts/{account['id']}", headers=auth_headers)
    assert fetched.status_code == 200


async def test_foreign_account_is_not_found(client, auth_headers, other_headers):
    created = await client.post("/v1/accounts", headers=auth_headers, json={"name": "Mine", "kind": "ASSET"})
    account_id = created.json()["id"]

    response = await client.get(f"/v1/accounts/{account_id}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    response = await client.get(f"/v1/accounts/{account_id}/balance", headers=other_headers)
    assert response.status_code == 404


async def test_null_name_rejected(client, auth_headers):
    created = await client.post("/v1/accounts", headers=auth_headers, json={"name": "Card", "kind": "DEBT"})
    response = await client.patch(f"/v1/accounts/{created.json()['id']}", headers=auth_headers, json={"name": None})
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


async def test_categories_seed_once(client, auth_headers):
    first = await client.get("/v1/categories", headers=auth_headers)
    assert first.status_code == 200
    names = {c["name"] for c in first.json()["categories"]}
    assert {"Groceries", "Salary", "Interest"} <= names
    count = len(first.json()["categories"])

    created = await client.post("/v1/categories", headers=auth_headers, json={"name": "Pets", "kind": "EXPENSE"})
    assert created.status_code == 201

    second = await client.get("/v1/categories", headers=auth_headers)
    assert len(second.json()["categories"]) == count + 1

    deleted = await client.delete(f"/v1/categories/{created.json()['id']}", headers=auth_headers)
    assert deleted.status_code == 204


async def test_category_update(client, auth_headers, other_headers):
    created = await client.post("/v1/categories", headers=auth_headers, json={"name": "Pets", "kind": "EXPENSE"})
    url = f"/v1/categories/{created.json()['id']}"

    patched = await client.patch(url, headers=auth_headers, json={"name": "Pet Care"})
    assert patched.status_code == 200
    assert patched.json() == {"id": created.json()["id"], "name": "Pet Care", "kind": "EXPENSE"}

    patched = await client.patch(url, headers=auth_headers, json={"kind": "INCOME"})
    assert patched.json()["kind"] == "INCOME"

    response = await client.patch(url, headers=auth_headers, json={"name": None})
    assert response.status_code == 400

    response = await client.patch(url, headers=other_headers, json={"name": "Mine now"})
    assert response.status_code == 404
