# tests/test_reports.py
from decimal import Decimal


def post_tx(client, headers, type_, amount, day):
    r = client.post(
        "/dashboard/transactions",
        headers=headers,
        json={"type": type_, "category": "General", "amount": amount, "transaction_date": day},
    )
    assert r.status_code == 200, r.text


def test_empty_report(client, auth_headers):
    r = client.get("/dashboard/reports", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["report_type"] == "summary"
    assert Decimal(body["totalIncome"]) == 0
    assert Decimal(body["totalExpenses"]) == 0
    assert Decimal(body["balance"]) == 0
    assert body["savingsProgress"] == 0


def test_report_totals(client, auth_headers, other_headers):
    post_tx(client, auth_headers, "income", 3000, "2025-03-01")
    post_tx(client, auth_headers, "expense", 1200.50, "2025-03-02")
    post_tx(client, auth_headers, "expense", 300, "2025-03-03")
    post_tx(client, other_headers, "income", 99999, "2025-03-01")

    goal = client.post(
        "/dashboard/savings-goals", headers=auth_headers, json={"title": "Car", "target_amount": 3000}
    ).json()["goal"]
    client.post(f"/dashboard/goals/{goal['goal_id']}/add-contribution", headers=auth_headers, json={"amount": 1000})

    body = client.get("/dashboard/reports", headers=auth_headers).json()
    assert Decimal(body["totalIncome"]) == Decimal("3000")
    assert Decimal(body["totalExpenses"]) == Decimal("1500.50")
    assert Decimal(body["balance"]) == Decimal("1499.50")
    assert Decimal(body["totalSaved"]) == Decimal("1000")
    assert Decimal(body["totalTarget"]) == Decimal("3000")
    # 33.33% rounds to 33
    assert body["savingsProgress"] == 33


def test_report_date_range(client, auth_headers):
    post_tx(client, auth_headers, "income", 100, "2025-01-15")
    post_tx(client, auth_headers, "income", 200, "2025-02-15")
    post_tx(client, auth_headers, "expense", 50, "2025-02-20")

    r = client.get(
        "/dashboard/reports",
        headers=auth_headers,
        params={"start_date": "2025-02-01", "end_date": "2025-02-28"},
    )
    body = r.json()
    assert body["start_date"] == "2025-02-01"
    assert Decimal(body["totalIncome"]) == Decimal("200")
    assert Decimal(body["balance"]) == Decimal("150")


def test_report_rejects_inverted_range(client, auth_headers):
    r = client.get(
        "/dashboard/reports",
        headers=auth_headers,
        params={"start_date": "2025-03-01", "end_date": "2025-02-01"},
    )
    assert r.status_code == 400
