# Overview: httpx wrapper exposing the persistence and authentication services of the HTTP API.

"""
Persistence and Authentication client.

Persistence:     list / insert / update / delete per collection
                 (products, debtors, profiles) plus the transfer and
                 toggle-paid actions.
Authentication:  sign_in / emergency_sign_in / sign_up / current_session /
                 sign_out.

Every call is a blocking request/response. Non-2xx responses and transport
failures both raise ApiError; nothing is retried here.
"""
from __future__ import annotations

from typing import Any

import httpx


COLLECTION_PATHS = {
    "products": "/api/products",
    "debtors": "/api/debtors",
    "profiles": "/api/users",
}


class ApiError(Exception):
    """
    Raised for any failed remote call.

    status is None when the request never got a response (connection
    refused, timeout).
    """

    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        self.status = status
        self.code = code
        super().__init__(message)


class InventoryApi:
    """HTTP client wrapper with bearer-token handling."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self.token: str | None = None

    def close(self) -> None:
        self.client.close()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = body.get("message") or body.get("error") or f"HTTP {response.status_code}"
            raise ApiError(message, status=response.status_code, code=body.get("code"))

        return body

    @staticmethod
    def _collection_path(collection: str) -> str:
        try:
            return COLLECTION_PATHS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    # Authentication

    def sign_in(self, email: str, password: str) -> dict:
        body = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = body["token"]
        return body["user"]

    def emergency_sign_in(self, email: str, password: str) -> dict:
        body = self._request("POST", "/api/auth/emergency", json={"email": email, "password": password})
        self.token = body["token"]
        return body["user"]

    def sign_up(self, email: str, password: str, display_name: str | None = None) -> dict:
        body = self._request(
            "POST",
            "/api/auth/signup",
            json={"email": email, "password": password, "name": display_name},
        )
        return body["user"]

    def current_session(self) -> dict | None:
        """Profile of the current token, or None if there is no valid session."""
        if not self.token:
            return None
        try:
            body = self._request("GET", "/api/auth/session")
        except ApiError as e:
            if e.status == 401:
                self.token = None
                return None
            raise
        return body["user"]

    def sign_out(self) -> None:
        if not self.token:
            return
        try:
            self._request("POST", "/api/auth/logout")
        finally:
            self.token = None

    # Persistence

    def list(self, collection: str) -> list[dict]:
        return self._request("GET", self._collection_path(collection))["items"]

    def insert(self, collection: str, record: dict) -> dict:
        return self._request("POST", self._collection_path(collection), json=record)

    def update(self, collection: str, record_id: int, patch: dict) -> dict:
        if collection == "profiles":
            raise ValueError("Profiles are updated through update_role")
        return self._request("PUT", f"{self._collection_path(collection)}/{record_id}", json=patch)

    def delete(self, collection: str, record_id: int) -> None:
        self._request("DELETE", f"{self._collection_path(collection)}/{record_id}")

    def transfer(self, product_id: int, from_location: str, to_location: str, amount: int) -> dict:
        return self._request(
            "POST",
            f"/api/products/{product_id}/transfer",
            json={"from": from_location, "to": to_location, "amount": amount},
        )

    def toggle_paid(self, debtor_id: int) -> dict:
        return self._request("POST", f"/api/debtors/{debtor_id}/toggle-paid")

    def update_role(self, profile_id: int, role: str) -> dict:
        return self._request("PUT", f"/api/users/{profile_id}/role", json={"role": role})

    def list_activity(self, limit: int | None = None) -> list[dict]:
        params = {"limit": limit} if limit else None
        return self._request("GET", "/api/activity", params=params)["items"]
