# tests/test_budgets.py
from datetime import date
from decimal import Decimal

from money_tracker.db.core import TransactionDB


def add_budget(client, headers, **overrides):
    payload = {
        "category": "Food",
        "amount": 500,
        "start_date": "2025-03-01",
        "end_date": "2025-03-31",
    }
    payload.update(overrides)
    r = client.post("/dashboard/budgets", headers=headers, json=payload)
    assert r.status_code == 200, r.text
    return r.json()["budget"]


def test_create_budget(client, auth_headers):
    budget = add_budget(client, auth_headers, description="Groceries and eating out")

    assert budget["category"] == "Food"
    assert Decimal(budget["amount"]) == Decimal("500")
    assert Decimal(budget["spent"]) == Decimal("0")
    assert Decimal(budget["remaining"]) == Decimal("500")


def test_budget_end_before_start(client, auth_headers):
    r = client.post(
        "/dashboard/budgets",
        headers=auth_headers,
        json={"category": "Food", "amount": 500, "start_date": "2025-03-31", "end_date": "2025-03-01"},
    )
    assert r.status_code == 400


def test_add_expense_to_budget(client, auth_headers):
    budget = add_budget(client, auth_headers)

    r = client.post(
        f"/dashboard/budgets/{budget['budget_id']}/add-expense",
        headers=auth_headers,
        json={"amount": 50},
    )
    assert r.status_code == 200
    assert r.json()["message"] == "Expense added to budget successfully"
    tx = r.json()["transaction"]
    assert tx["type"] == "expense"
    assert tx["category"] == "Food"
    assert tx["budget_id"] == budget["budget_id"]
    assert Decimal(tx["amount"]) == Decimal("50")
    assert tx["transaction_date"] == date.today().isoformat()

    r = client.get("/dashboard/budgets", headers=auth_headers)
    listed = r.json()[0]
    assert Decimal(listed["spent"]) == Decimal("50")
    assert Decimal(listed["remaining"]) == Decimal("450")


def test_add_expense_to_missing_budget(client, auth_headers):
    r = client.post("/dashboard/budgets/999/add-expense", headers=auth_headers, json={"amount": 50})
    assert r.status_code == 404


def test_budget_transactions_by_category(client, auth_headers):
    budget = add_budget(client, auth_headers)
    client.post(
        f"/dashboard/budgets/{budget['budget_id']}/add-expense",
        headers=auth_headers,
        json={"amount": 20, "transaction_date": "2025-03-05"},
    )
    for category, day in [("Food", "2025-03-20"), ("Rent", "2025-03-02")]:
        client.post(
            "/dashboard/transactions",
            headers=auth_headers,
            json={"type": "expense", "category": category, "amount": 10, "transaction_date": day},
        )

    r = client.get(f"/dashboard/budgets/{budget['budget_id']}/transactions", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["budget"]["budget_id"] == budget["budget_id"]
    assert [t["transaction_date"] for t in body["transactions"]] == ["2025-03-20", "2025-03-05"]


def test_update_budget_partial(client, auth_headers):
    budget = add_budget(client, auth_headers)

    r = client.put(f"/dashboard/budgets/{budget['budget_id']}", headers=auth_headers, json={"amount": 750})
    assert r.status_code == 200
    assert r.json()["message"] == "Budget updated successfully"
    assert Decimal(r.json()["budget"]["amount"]) == Decimal("750")
    assert r.json()["budget"]["category"] == "Food"


def test_update_budget_checks_range_against_stored_dates(client, auth_headers):
    budget = add_budget(client, auth_headers)

    r = client.put(
        f"/dashboard/budgets/{budget['budget_id']}",
        headers=auth_headers,
        json={"end_date": "2025-02-01"},
    )
    assert r.status_code == 400


def test_delete_budget_unlinks_transactions(client, auth_headers, db_session):
    budget = add_budget(client, auth_headers)
    tx = client.post(
        f"/dashboard/budgets/{budget['budget_id']}/add-expense",
        headers=auth_headers,
        json={"amount": 50},
    ).json()["transaction"]

    r = client.delete(f"/dashboard/budgets/{budget['budget_id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Budget deleted successfully"}

    remaining = db_session.get(TransactionDB, tx["transaction_id"])
    assert remaining is not None
    assert remaining.budget_id is None
    assert client.get("/dashboard/budgets", headers=auth_headers).json() == []


def test_budgets_are_private(client, auth_headers, other_headers):
    budget = add_budget(client, other_headers)

    assert client.get("/dashboard/budgets", headers=auth_headers).json() == []
    assert client.delete(f"/dashboard/budgets/{budget['budget_id']}", headers=auth_headers).status_code == 404
