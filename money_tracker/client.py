"""
HTTP client for the Money Tracker API.

Wraps a requests.Session, keeps the bearer token from register/login, and
caches GET responses for a short freshness window. Mutations drop the cached
reads they can affect, e.g. adding a contribution forgets cached goals and
reports.
"""
import json
import time
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import requests

from money_tracker.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_TTL = 300  # seconds

# Cached GET paths (by prefix) each kind of mutation can make stale
INVALIDATES = {
    "transactions": ("/dashboard/transactions", "/dashboard/budgets", "/dashboard/reports"),
    "budgets": ("/dashboard/budgets", "/dashboard/transactions", "/dashboard/reports"),
    "goals": ("/dashboard/savings-goals", "/dashboard/reports"),
    "user": ("/profile",),
}


class ApiError(Exception):
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        message = payload.get("message") if isinstance(payload, dict) else payload
        super().__init__(f"HTTP {status_code}: {message}")


class MoneyTrackerClient:
    def __init__(self, base_url: str = "http://127.0.0.1:8000", token: Optional[str] = None,
                 cache_ttl: float = DEFAULT_CACHE_TTL, session: Optional[requests.Session] = None,
                 timeout: float = 10, clock: Callable[[], float] = time.monotonic):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.cache_ttl = cache_ttl
        self.session = session or requests.Session()
        self.timeout = timeout
        self._clock = clock
        self._cache: Dict[Tuple[str, Tuple], Tuple[float, Any]] = {}

    # ===== TRANSPORT =====

    def _headers(self, has_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, data: Optional[dict] = None, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        # requests' encoder cannot handle Decimal or date
        body = json.dumps(data, default=str) if data is not None else None
        response = self.session.request(
            method, url, data=body, params=params,
            headers=self._headers(body is not None), timeout=self.timeout,
        )

        if response.status_code == 401:
            # Token expired, revoked or never valid
            self.token = None
            self.clear_cache()

        try:
            payload = response.json() if response.text else None
        except ValueError:
            payload = response.text

        if response.status_code >= 400:
            logger.debug(f"{method} {path} failed with {response.status_code}")
            raise ApiError(response.status_code, payload)
        return payload

    def get(self, path: str, params: Optional[dict] = None, use_cache: bool = True) -> Any:
        key = (path, tuple(sorted((params or {}).items())))
        if use_cache:
            cached = self._cache.get(key)
            if cached and self._clock() - cached[0] < self.cache_ttl:
                return cached[1]

        payload = self.request("GET", path, params=params)
        self._cache[key] = (self._clock(), payload)
        return payload

    def mutate(self, method: str, path: str, data: Optional[dict] = None, invalidates: Iterable[str] = ()) -> Any:
        try:
            return self.request(method, path, data=data)
        finally:
            for kind in invalidates:
                self.invalidate(*INVALIDATES[kind])

    def invalidate(self, *prefixes: str) -> None:
        for key in [k for k in self._cache if k[0].startswith(prefixes)]:
            del self._cache[key]

    def clear_cache(self) -> None:
        self._cache.clear()

    # ===== AUTH =====

    def _store_token(self, payload: dict) -> dict:
        self.token = payload["access_token"]
        self.clear_cache()
        return payload

    def register(self, name: str, email: str, password: str) -> dict:
        return self._store_token(self.request("POST", "/register", {
            "name": name, "email": email,
            "password": password, "password_confirmation": password,
        }))

    def login(self, email: str, password: str) -> dict:
        return self._store_token(self.request("POST", "/login", {"email": email, "password": password}))

    def logout(self) -> dict:
        try:
            return self.request("POST", "/logout")
        finally:
            self.token = None
            self.clear_cache()

    def forgot_password(self, email: str) -> dict:
        return self.request("POST", "/forgot-password", {"email": email})

    def reset_password(self, email: str, token: str, password: str) -> dict:
        return self.request("POST", "/reset-password", {
            "email": email, "token": token,
            "password": password, "password_confirmation": password,
        })

    # ===== USER =====

    def profile(self) -> dict:
        return self.get("/profile")

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self.request("POST", "/user/change-password", {
            "current_password": current_password,
            "new_password": new_password,
            "new_password_confirmation": new_password,
        })

    def update_profile(self, user_id: int, full_name: str, email: str) -> dict:
        return self.mutate("PUT", f"/user/{user_id}", {"fullName": full_name, "email": email}, invalidates=["user"])

    def update_currency(self, currency_symbol: str) -> dict:
        return self.mutate("PUT", "/dashboard/user/currency", {"currency_symbol": currency_symbol},
                           invalidates=["user"])

    # ===== TRANSACTIONS =====

    def transactions(self, skip: int = 0, limit: int = 100) -> list:
        return self.get("/dashboard/transactions", params={"skip": skip, "limit": limit})

    def add_transaction(self, **fields) -> dict:
        return self.mutate("POST", "/dashboard/transactions", fields, invalidates=["transactions"])

    def update_transaction(self, transaction_id: int, **fields) -> dict:
        return self.mutate("PUT", f"/dashboard/transactions/{transaction_id}", fields, invalidates=["transactions"])

    def delete_transaction(self, transaction_id: int) -> dict:
        return self.mutate("DELETE", f"/dashboard/transactions/{transaction_id}", invalidates=["transactions"])

    # ===== BUDGETS =====

    def budgets(self) -> list:
        return self.get("/dashboard/budgets")

    def add_budget(self, **fields) -> dict:
        return self.mutate("POST", "/dashboard/budgets", fields, invalidates=["budgets"])

    def update_budget(self, budget_id: int, **fields) -> dict:
        return self.mutate("PUT", f"/dashboard/budgets/{budget_id}", fields, invalidates=["budgets"])

    def delete_budget(self, budget_id: int) -> dict:
        return self.mutate("DELETE", f"/dashboard/budgets/{budget_id}", invalidates=["budgets"])

    def budget_transactions(self, budget_id: int) -> dict:
        return self.get(f"/dashboard/budgets/{budget_id}/transactions")

    def add_expense(self, budget_id: int, **fields) -> dict:
        return self.mutate("POST", f"/dashboard/budgets/{budget_id}/add-expense", fields, invalidates=["budgets"])

    # ===== SAVINGS GOALS =====

    def goals(self) -> list:
        return self.get("/dashboard/savings-goals")

    def add_goal(self, **fields) -> dict:
        return self.mutate("POST", "/dashboard/savings-goals", fields, invalidates=["goals"])

    def update_goal(self, goal_id: int, **fields) -> dict:
        return self.mutate("PUT", f"/dashboard/savings-goals/{goal_id}", fields, invalidates=["goals"])

    def delete_goal(self, goal_id: int) -> dict:
        return self.mutate("DELETE", f"/dashboard/savings-goals/{goal_id}", invalidates=["goals"])

    def add_contribution(self, goal_id: int, amount, contribution_date=None) -> dict:
        data = {"amount": amount}
        if contribution_date is not None:
            data["date"] = contribution_date
        return self.mutate("POST", f"/dashboard/goals/{goal_id}/add-contribution", data, invalidates=["goals"])

    def delete_contribution(self, contribution_id: int) -> dict:
        return self.mutate("DELETE", f"/dashboard/contributions/{contribution_id}", invalidates=["goals"])

    # ===== REPORTS =====

    def report(self, start_date=None, end_date=None, report_type: str = "summary") -> dict:
        params = {"report_type": report_type}
        if start_date is not None:
            params["start_date"] = str(start_date)
        if end_date is not None:
            params["end_date"] = str(end_date)
        return self.get("/dashboard/reports", params=params)
