import subprocess
import time
import os
import signal
import random
import sys
from pathlib import Path
from decimal import Decimal
from datetime import date, timedelta
from faker import Faker

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from money_tracker.client import MoneyTrackerClient, ApiError

# --- Configuration ---
BASE_URL = "http://127.0.0.1:8000"
UVICORN_COMMAND = ["uvicorn", "money_tracker.main:app"]
DEMO_EMAIL = os.environ.get("SEED_EMAIL", "testuser@example.com")
DEMO_PASSWORD = os.environ.get("SEED_PASSWORD", "aStrongPassword123")

fake = Faker()

EXPENSE_CATEGORIES = ["Food", "Housing", "Transportation", "Utilities", "Entertainment", "Shopping", "Health"]
INCOME_CATEGORIES = ["Salary", "Freelance", "Bonus"]


def money(low: float, high: float) -> Decimal:
    return Decimal(random.uniform(low, high)).quantize(Decimal('0.01'))


def ensure_user(client: MoneyTrackerClient) -> dict:
    print("--- Ensuring User Exists ---")
    try:
        return client.login(DEMO_EMAIL, DEMO_PASSWORD)["user"]
    except ApiError as e:
        if e.status_code != 401:
            raise
    return client.register(fake.name(), DEMO_EMAIL, DEMO_PASSWORD)["user"]


def seed_budgets(client: MoneyTrackerClient) -> list:
    print("--- Seeding Budgets ---")
    budgets = []
    month_start = date.today().replace(day=1)
    for category in random.sample(EXPENSE_CATEGORIES, k=4):
        result = client.add_budget(
            category=category,
            amount=money(200, 1500),
            start_date=month_start.isoformat(),
            end_date=(month_start + timedelta(days=30)).isoformat(),
            description=fake.sentence(nb_words=6),
        )
        budgets.append(result["budget"])
    return budgets


def seed_transactions(client: MoneyTrackerClient, budgets: list, count: int = 60):
    print("--- Seeding Transactions ---")
    for _ in range(count):
        if random.random() < 0.25:
            client.add_transaction(
                type="income",
                category=random.choice(INCOME_CATEGORIES),
                amount=money(500, 5000),
                transaction_date=fake.date_between(start_date="-90d", end_date="today").isoformat(),
                description=fake.company(),
            )
        else:
            client.add_transaction(
                type="expense",
                category=random.choice(EXPENSE_CATEGORIES),
                amount=money(5, 300),
                transaction_date=fake.date_between(start_date="-90d", end_date="today").isoformat(),
                description=fake.bs(),
            )

    # Some spending logged straight against budgets
    for budget in budgets:
        for _ in range(random.randint(1, 4)):
            client.add_expense(budget["budget_id"], amount=money(5, 120), description=fake.bs())


def seed_goals(client: MoneyTrackerClient):
    print("--- Seeding Savings Goals ---")
    for title in ["Emergency Fund", "Vacation", "New Laptop"]:
        goal = client.add_goal(
            title=title,
            target_amount=money(1000, 10000),
            deadline=fake.date_between(start_date="+30d", end_date="+2y").isoformat(),
            description=fake.sentence(nb_words=8),
        )["goal"]
        for _ in range(random.randint(1, 5)):
            client.add_contribution(
                goal["goal_id"],
                money(50, 500),
                fake.date_between(start_date="-90d", end_date="today").isoformat(),
            )


def main():
    """Starts the server, seeds a demo account through the API, and shuts down the server."""

    server_process = subprocess.Popen(UVICORN_COMMAND)
    time.sleep(5)
    print(f"Server started with PID: {server_process.pid}")

    try:
        client = MoneyTrackerClient(BASE_URL)
        user = ensure_user(client)
        print(f"Seeding data for {user['email']}")

        budgets = seed_budgets(client)
        seed_transactions(client, budgets)
        seed_goals(client)

        report = client.report()
        print(f"Income {report['totalIncome']}, expenses {report['totalExpenses']}, "
              f"savings progress {report['savingsProgress']}%")
        print("\n--- Seeding Complete ---")

    finally:
        if server_process:
            print("\n--- Shutting down server ---")
            os.kill(server_process.pid, signal.SIGTERM)
            server_process.wait()
            print("Server shut down.")


if __name__ == "__main__":
    main()
