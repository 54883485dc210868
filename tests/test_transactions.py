# tests/test_transactions.py
from decimal import Decimal


def add_transaction(client, headers, **overrides):
    payload = {
        "type": "expense",
        "category": "Food",
        "amount": "12.50",
        "transaction_date": "2025-03-01",
        "description": "Lunch",
    }
    payload.update(overrides)
    r = client.post("/dashboard/transactions", headers=headers, json=payload)
    assert r.status_code == 200, r.text
    return r.json()["transaction"]


def test_transactions_require_auth(client):
    assert client.get("/dashboard/transactions").status_code == 401


def test_create_transaction(client, auth_headers):
    r = client.post(
        "/dashboard/transactions",
        headers=auth_headers,
        json={"type": "Income", "category": " Salary ", "amount": 1500, "transaction_date": "2025-03-15"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Transaction added successfully"
    tx = body["transaction"]
    assert tx["type"] == "income"
    assert tx["category"] == "Salary"
    assert Decimal(tx["amount"]) == Decimal("1500")
    assert tx["description"] == ""
    assert tx["budget_id"] is None


def test_create_transaction_validation(client, auth_headers):
    r = client.post(
        "/dashboard/transactions",
        headers=auth_headers,
        json={"type": "transfer", "category": "", "amount": -5, "transaction_date": "not-a-date"},
    )
    assert r.status_code == 400
    errors = r.json()["errors"]
    for field in ("type", "category", "amount", "transaction_date"):
        assert field in errors


def test_list_transactions_newest_first(client, auth_headers, other_headers):
    add_transaction(client, auth_headers, transaction_date="2025-01-10", description="old")
    add_transaction(client, auth_headers, transaction_date="2025-03-10", description="new")
    add_transaction(client, auth_headers, transaction_date="2025-02-10", description="middle")
    add_transaction(client, other_headers, description="not mine")

    r = client.get("/dashboard/transactions", headers=auth_headers)
    assert r.status_code == 200
    assert [t["description"] for t in r.json()] == ["new", "middle", "old"]

    r = client.get("/dashboard/transactions", headers=auth_headers, params={"skip": 1, "limit": 1})
    assert [t["description"] for t in r.json()] == ["middle"]


def test_update_transaction_partial(client, auth_headers):
    tx = add_transaction(client, auth_headers)

    r = client.put(
        f"/dashboard/transactions/{tx['transaction_id']}",
        headers=auth_headers,
        json={"amount": "20", "type": "INCOME"},
    )
    assert r.status_code == 200
    updated = r.json()["transaction"]
    assert r.json()["message"] == "Transaction updated successfully"
    assert Decimal(updated["amount"]) == Decimal("20")
    assert updated["type"] == "income"
    assert updated["category"] == "Food"
    assert updated["description"] == "Lunch"


def test_update_transaction_of_another_user(client, auth_headers, other_headers):
    tx = add_transaction(client, other_headers)

    r = client.put(f"/dashboard/transactions/{tx['transaction_id']}", headers=auth_headers, json={"amount": "1"})
    assert r.status_code == 404


def test_delete_transaction(client, auth_headers):
    tx = add_transaction(client, auth_headers)

    r = client.delete(f"/dashboard/transactions/{tx['transaction_id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Transaction deleted successfully"}

    r = client.delete(f"/dashboard/transactions/{tx['transaction_id']}", headers=auth_headers)
    assert r.status_code == 404


def test_transaction_budget_must_belong_to_user(client, auth_headers, other_headers):
    r = client.post(
        "/dashboard/budgets",
        headers=other_headers,
        json={"category": "Food", "amount": 100, "start_date": "2025-03-01", "end_date": "2025-03-31"},
    )
    budget_id = r.json()["budget"]["budget_id"]

    r = client.post(
        "/dashboard/transactions",
        headers=auth_headers,
        json={
            "type": "expense",
            "category": "Food",
            "amount": 5,
            "transaction_date": "2025-03-02",
            "budget_id": budget_id,
        },
    )
    assert r.status_code == 404
