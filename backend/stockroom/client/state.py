# Overview: Explicit application-state object holding the client's cache and the operation set.

"""
Client Application State

InventoryState is the single object presentation code talks to. It holds the
signed-in user and a cached copy of products, debtors, profiles and the
activity log, and exposes them read-only. All changes go through the
operations below.

CACHE CONTRACT:
- The remote store is the source of truth; the cache is best-effort.
- The cache is updated only after the remote write succeeds. A failed
  remote write leaves it untouched; there is no retry and no compensation.
- refresh() replaces the cache wholesale.
- Concurrent edits from other sessions are not reconciled (last write wins
  on the server).

RESULTS:
Mutating operations return an OperationResult instead of raising. The role
check runs before any request (PERMISSION_DENIED), local validation before
any write (INSUFFICIENT_STOCK, VALIDATION, NOT_FOUND), and remote failures
come back as REMOTE (or the kind matching the server's status).
"""
from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field, asdict, replace
from decimal import Decimal
from typing import Any

import bcrypt

from ..models.auth import ROLE_MANAGER
from ..services import stock_service
from ..services.stock_service import StockError, InsufficientStockError
from ..time_utils import utcnow, to_utc_z
from .api import ApiError, InventoryApi
from .store import LocalStore

logger = logging.getLogger(__name__)


TOKEN_KEY = "stockroom_session_token"
PREFERENCES_KEY = "stockroom_prefs"
FALLBACK_SESSION_KEY = "stockroom_fallback_session"

DEFAULT_PREFERENCES = {"currency": "GHS", "default_view": "Show All"}

CURRENCY_SYMBOLS = {
    "GHS": "GH₵",
    "GBP": "£",
    "USD": "US$",
    "EUR": "€",
}

ACCESS_DENIED_MESSAGE = "Access Denied: Only Managers can perform this action."


class ErrorKind:
    PERMISSION_DENIED = "PERMISSION_DENIED"
    VALIDATION = "VALIDATION"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    REMOTE = "REMOTE"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_EMAIL_NOT_VERIFIED = "AUTH_EMAIL_NOT_VERIFIED"


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    value: Any = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, message: str) -> "OperationResult":
        return cls(ok=False, error=error, message=message)


@dataclass
class ClientConfig:
    base_url: str = "http://127.0.0.1:5000"
    timeout: float = 30.0
    store_path: str | None = None

    # Sign-in failures with invalid credentials for these emails try a
    # sign-up followed by one more sign-in.
    provisioning_emails: tuple[str, ...] = ()
    provisioning_display_name: str = "Manager"

    # Emergency MANAGER sign-in when the remote sign-in fails for this pair.
    # Goes through the server's emergency endpoint; local-only if that is
    # refused. The password is only ever configured as a bcrypt hash.
    emergency_email: str | None = None
    emergency_password_hash: str | None = None


@dataclass(frozen=True)
class CurrentUser:
    id: Any
    email: str
    name: str
    role: str
    is_fallback: bool = False

    @property
    def is_manager(self) -> bool:
        return self.role == ROLE_MANAGER

    @classmethod
    def from_profile(cls, profile: dict) -> "CurrentUser":
        email = profile.get("email") or ""
        return cls(
            id=profile.get("id"),
            email=email,
            name=profile.get("name") or email.split("@")[0] or "Staff",
            role=profile.get("role") or "STAFF",
        )


@dataclass
class Notification:
    type: str
    title: str
    message: str
    read: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    date: str = field(default_factory=lambda: to_utc_z(utcnow()))


def _failure_from_api(err: ApiError) -> OperationResult:
    if err.status == 403:
        return OperationResult.failure(ErrorKind.PERMISSION_DENIED, str(err))
    if err.status == 404:
        return OperationResult.failure(ErrorKind.NOT_FOUND, str(err))
    if err.status == 409:
        return OperationResult.failure(ErrorKind.CONFLICT, str(err))
    if err.status == 400:
        if err.code == "insufficient_stock":
            return OperationResult.failure(ErrorKind.INSUFFICIENT_STOCK, str(err))
        return OperationResult.failure(ErrorKind.VALIDATION, str(err))
    return OperationResult.failure(ErrorKind.REMOTE, str(err))


class InventoryState:
    def __init__(
        self,
        config: ClientConfig | None = None,
        api: InventoryApi | None = None,
        store: LocalStore | None = None,
    ):
        self.config = config or ClientConfig()
        self.api = api or InventoryApi(self.config.base_url, timeout=self.config.timeout)
        self.store = store or LocalStore(self.config.store_path)

        self._user: CurrentUser | None = None
        self._products: list[dict] = []
        self._debtors: list[dict] = []
        self._profiles: list[dict] = []
        self._logs: list[dict] = []
        self._notifications: list[Notification] = []
        self._preferences: dict = {**DEFAULT_PREFERENCES, **(self.store.get(PREFERENCES_KEY) or {})}

    # Read-only views

    @property
    def user(self) -> CurrentUser | None:
        return self._user

    @property
    def products(self) -> list[dict]:
        return copy.deepcopy(self._products)

    @property
    def debtors(self) -> list[dict]:
        return copy.deepcopy(self._debtors)

    @property
    def profiles(self) -> list[dict]:
        return copy.deepcopy(self._profiles)

    @property
    def logs(self) -> list[dict]:
        return copy.deepcopy(self._logs)

    @property
    def notifications(self) -> list[Notification]:
        return copy.deepcopy(self._notifications)

    @property
    def preferences(self) -> dict:
        return dict(self._preferences)

    @property
    def stats(self) -> dict:
        return stock_service.inventory_stats(self._products, self._debtors)

    def filtered_products(self, search: str | None = None, category: str | None = None) -> list[dict]:
        return copy.deepcopy(stock_service.filter_products(self._products, search=search, category=category))

    def available(self, product_id: Any, location: str = stock_service.LOCATION_ALL) -> int | None:
        product = self._find(self._products, product_id)
        return None if product is None else stock_service.available(product, location)

    # Helpers

    @staticmethod
    def _find(records: list[dict], record_id: Any) -> dict | None:
        return next((r for r in records if r.get("id") == record_id), None)

    @staticmethod
    def _replace(records: list[dict], record: dict) -> None:
        for i, existing in enumerate(records):
            if existing.get("id") == record.get("id"):
                records[i] = record
                return

    def _require_manager(self) -> OperationResult | None:
        if self._user is None or not self._user.is_manager:
            return OperationResult.failure(ErrorKind.PERMISSION_DENIED, ACCESS_DENIED_MESSAGE)
        return None

    def _add_log(self, action: str, description: str) -> None:
        self._logs.insert(0, {
            "id": uuid.uuid4().hex,
            "action": action,
            "description": description,
            "user": self._user.name if self._user else "System",
            "timestamp": to_utc_z(utcnow()),
        })

    def _add_notification(self, type_: str, title: str, message: str) -> None:
        if any(n.title == title and not n.read for n in self._notifications):
            return
        self._notifications.insert(0, Notification(type=type_, title=title, message=message))

    def _check_alerts(self) -> None:
        for p in self._products:
            if stock_service.is_low_stock(p):
                total_available = stock_service.available(p)
                self._add_notification(
                    "DANGER",
                    f"Low Stock: {p.get('name')}",
                    f"Total available stock ({total_available}) is below reorder level ({p.get('reorder_level')}).",
                )

    def _set_products(self, products: list[dict]) -> None:
        self._products = products
        self._check_alerts()

    # Session

    def restore_session(self) -> OperationResult:
        """
        Resume a remote session from the stored token, else a stored fallback session.

        Returns success with the current user, or success(None) when nobody is
        signed in. The stored token is dropped only when the server rejects
        it; if the server cannot be reached the token is kept and REMOTE is
        returned.
        """
        token = self.store.get(TOKEN_KEY)
        if token:
            self.api.token = token
            try:
                profile = self.api.current_session()
            except ApiError as e:
                logger.error("Session check failed: %s", e)
                return OperationResult.failure(ErrorKind.REMOTE, f"Could not verify session: {e}")
            if profile:
                self._user = CurrentUser.from_profile(profile)
                fallback = self.store.get(FALLBACK_SESSION_KEY) or {}
                if fallback.get("email") == self._user.email:
                    self._user = replace(self._user, is_fallback=True)
                self.refresh()
                return OperationResult.success(self._user)
            self.store.remove(TOKEN_KEY)

        fallback = self.store.get(FALLBACK_SESSION_KEY)
        if fallback:
            try:
                self._user = CurrentUser(**fallback)
            except TypeError:
                logger.error("Failed to parse fallback session")
                self.store.remove(FALLBACK_SESSION_KEY)
            else:
                self.refresh()
                return OperationResult.success(self._user)

        return OperationResult.success(None)

    def _matches_emergency(self, email: str, password: str) -> bool:
        cfg = self.config
        if not cfg.emergency_email or not cfg.emergency_password_hash:
            return False
        if email.lower() != cfg.emergency_email.strip().lower():
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), cfg.emergency_password_hash.encode("utf-8"))
        except ValueError:
            return False

    def _start_fallback_session(self, email: str, password: str) -> OperationResult:
        """
        Emergency MANAGER session.

        The server's emergency sign-in issues a real bearer session, so the
        cache loads and writes go through as usual. If the server refuses or
        cannot be reached, the session is local only: the user is a MANAGER
        on this client, but every remote call fails with REMOTE until a
        normal sign-in succeeds.
        """
        logger.warning("Remote sign-in failed, using emergency fallback session for %s", email)
        try:
            profile = self.api.emergency_sign_in(email, password)
        except ApiError as e:
            logger.warning("Emergency sign-in not accepted by the server, continuing offline: %s", e)
            self.api.token = None
            self.store.remove(TOKEN_KEY)
            self._user = CurrentUser(
                id="fallback",
                email=email,
                name="Manager (Local)",
                role=ROLE_MANAGER,
                is_fallback=True,
            )
            self.store.set(FALLBACK_SESSION_KEY, asdict(self._user))
            self.refresh()
            self._add_log("LOGIN", "Manager logged in via Fallback")
            return OperationResult.success(self._user)

        self.store.set(TOKEN_KEY, self.api.token)
        self._user = replace(CurrentUser.from_profile(profile), is_fallback=True)
        self.store.set(FALLBACK_SESSION_KEY, asdict(self._user))
        self.refresh()
        return OperationResult.success(self._user)

    @staticmethod
    def _auth_failure(err: ApiError) -> OperationResult:
        if err.code == "email_not_verified":
            return OperationResult.failure(
                ErrorKind.AUTH_EMAIL_NOT_VERIFIED,
                "Please verify your email address before logging in.",
            )
        if err.code == "invalid_credentials":
            return OperationResult.failure(ErrorKind.AUTH_INVALID_CREDENTIALS, "Invalid login credentials")
        return OperationResult.failure(ErrorKind.REMOTE, str(err) or "Authentication failed.")

    def _try_provisioning(self, email: str, password: str, original: ApiError) -> OperationResult:
        try:
            self.api.sign_up(email, password, self.config.provisioning_display_name)
        except ApiError as e:
            logger.info("Auto-provisioning for %s declined: %s", email, e)
            return self._auth_failure(original)

        try:
            profile = self.api.sign_in(email, password)
        except ApiError as e:
            return self._auth_failure(e)
        return self._finish_login(profile)

    def _finish_login(self, profile: dict) -> OperationResult:
        self.store.set(TOKEN_KEY, self.api.token)
        self.store.remove(FALLBACK_SESSION_KEY)
        self._user = CurrentUser.from_profile(profile)
        self.refresh()
        return OperationResult.success(self._user)

    def login(self, email: str, password: str) -> OperationResult:
        email = (email or "").strip()
        password = (password or "").strip()

        try:
            profile = self.api.sign_in(email, password)
        except ApiError as err:
            if self._matches_emergency(email, password):
                return self._start_fallback_session(email, password)

            provisioning = {e.strip().lower() for e in self.config.provisioning_emails}
            if err.code == "invalid_credentials" and email.lower() in provisioning:
                return self._try_provisioning(email, password, err)

            logger.error("Login failed for %s: %s", email, err)
            return self._auth_failure(err)

        return self._finish_login(profile)

    def signup(self, email: str, password: str, name: str) -> OperationResult:
        try:
            profile = self.api.sign_up((email or "").strip(), (password or "").strip(), (name or "").strip())
        except ApiError as e:
            logger.error("Sign-up failed: %s", e)
            if e.status == 400:
                return OperationResult.failure(ErrorKind.VALIDATION, str(e))
            return OperationResult.failure(ErrorKind.REMOTE, str(e))
        return OperationResult.success(profile)

    def logout(self) -> OperationResult:
        try:
            self.api.sign_out()
        except ApiError as e:
            logger.warning("Sign-out request failed: %s", e)

        self.store.remove(TOKEN_KEY)
        self.store.remove(FALLBACK_SESSION_KEY)
        self._user = None
        self._products = []
        self._debtors = []
        self._profiles = []
        self._logs = []
        self._notifications = []
        return OperationResult.success()

    # Loading

    def refresh(self) -> OperationResult:
        """Reload every collection; a failed collection keeps its previous cache."""
        failures = []

        try:
            self._set_products(self.api.list("products"))
        except ApiError as e:
            logger.error("Error fetching products: %s", e)
            failures.append("products")

        try:
            self._debtors = self.api.list("debtors")
        except ApiError as e:
            logger.error("Error fetching debtors: %s", e)
            failures.append("debtors")

        if not self.refresh_users().ok:
            failures.append("profiles")

        try:
            self._logs = self.api.list_activity()
        except ApiError as e:
            logger.error("Error fetching activity: %s", e)
            failures.append("activity")

        if failures:
            return OperationResult.failure(ErrorKind.REMOTE, f"Could not load: {', '.join(failures)}")
        return OperationResult.success()

    def refresh_users(self) -> OperationResult:
        try:
            self._profiles = self.api.list("profiles")
        except ApiError as e:
            logger.warning("Could not fetch users list: %s", e)
            return OperationResult.failure(ErrorKind.REMOTE, str(e))
        return OperationResult.success()

    # Products

    def add_product(self, data: dict) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            inserted = self.api.insert("products", data)
        except ApiError as e:
            logger.error("Error adding product: %s", e)
            return _failure_from_api(e)

        self._products.append(inserted)
        self._check_alerts()
        self._add_log("ADD", f"Added new item: {inserted.get('name')}")
        return OperationResult.success(copy.deepcopy(inserted))

    def update_product(self, product_id: Any, updates: dict) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            updated = self.api.update("products", product_id, updates)
        except ApiError as e:
            logger.error("Error updating product: %s", e)
            return _failure_from_api(e)

        self._replace(self._products, updated)
        self._check_alerts()
        self._add_log("UPDATE", f"Updated details for {updated.get('name')}")
        return OperationResult.success(copy.deepcopy(updated))

    def delete_product(self, product_id: Any) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            self.api.delete("products", product_id)
        except ApiError as e:
            logger.error("Error deleting product: %s", e)
            return _failure_from_api(e)

        existing = self._find(self._products, product_id)
        self._products = [p for p in self._products if p.get("id") != product_id]
        self._add_log("DELETE", f"Deleted product: {existing.get('name') if existing else product_id}")
        return OperationResult.success()

    def transfer_stock(self, product_id: Any, from_location: str, to_location: str, amount: int) -> OperationResult:
        """
        Move unsold stock between warehouses.

        Validated locally on a scratch copy first; the cache only changes
        once the server has applied the same transfer.
        """
        denied = self._require_manager()
        if denied:
            return denied

        if from_location == to_location:
            return OperationResult.success(None)

        product = self._find(self._products, product_id)
        if product is None:
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"Product {product_id} not found")

        try:
            stock_service.transfer_stock(dict(product), from_location, to_location, amount)
        except InsufficientStockError:
            return OperationResult.failure(
                ErrorKind.INSUFFICIENT_STOCK,
                f"Insufficient available stock in {from_location}",
            )
        except StockError as e:
            return OperationResult.failure(ErrorKind.VALIDATION, str(e))

        try:
            body = self.api.transfer(product_id, from_location, to_location, amount)
        except ApiError as e:
            logger.error("Error transferring stock: %s", e)
            return _failure_from_api(e)

        updated = body["product"]
        self._replace(self._products, updated)
        self._check_alerts()
        self._add_log(
            "TRANSFER",
            f"Transferred {amount} units of {updated.get('name')} from {from_location} to {to_location}",
        )
        return OperationResult.success(copy.deepcopy(updated))

    # Debtors

    def add_debtor(self, name: str, amount_cents: int, notes: str | None = None) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            inserted = self.api.insert("debtors", {"name": name, "amount_cents": amount_cents, "notes": notes})
        except ApiError as e:
            logger.error("Error adding debtor: %s", e)
            return _failure_from_api(e)

        self._debtors.insert(0, inserted)
        self._add_log("DEBTOR", f"Added new debtor: {inserted.get('name')}")
        return OperationResult.success(copy.deepcopy(inserted))

    def update_debtor(self, debtor_id: Any, updates: dict) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            updated = self.api.update("debtors", debtor_id, updates)
        except ApiError as e:
            logger.error("Error updating debtor: %s", e)
            return _failure_from_api(e)

        self._replace(self._debtors, updated)
        self._add_log("DEBTOR", f"Updated info for debtor: {updated.get('name')}")
        return OperationResult.success(copy.deepcopy(updated))

    def toggle_debtor_status(self, debtor_id: Any) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        if self._find(self._debtors, debtor_id) is None:
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"Debtor {debtor_id} not found")

        try:
            updated = self.api.toggle_paid(debtor_id)
        except ApiError as e:
            logger.error("Error toggling debtor status: %s", e)
            return _failure_from_api(e)

        self._replace(self._debtors, updated)
        status = "Paid" if updated.get("is_paid") else "Unpaid"
        self._add_log("DEBTOR", f"Marked {updated.get('name')} as {status}")
        return OperationResult.success(copy.deepcopy(updated))

    def delete_debtor(self, debtor_id: Any) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            self.api.delete("debtors", debtor_id)
        except ApiError as e:
            logger.error("Error deleting debtor: %s", e)
            return _failure_from_api(e)

        self._debtors = [d for d in self._debtors if d.get("id") != debtor_id]
        self._add_log("DEBTOR", "Deleted debtor record")
        return OperationResult.success()

    # Users

    def update_user_role(self, profile_id: Any, role: str) -> OperationResult:
        denied = self._require_manager()
        if denied:
            return denied

        try:
            updated = self.api.update_role(profile_id, role)
        except ApiError as e:
            logger.error("Error updating role: %s", e)
            return _failure_from_api(e)

        self._replace(self._profiles, updated)
        self._add_log("USER_MGMT", f"Changed role for {updated.get('name') or updated.get('email')} to {role}")
        return OperationResult.success(copy.deepcopy(updated))

    # Notifications and preferences

    def mark_notification_read(self, notification_id: str) -> OperationResult:
        for n in self._notifications:
            if n.id == notification_id:
                n.read = True
                return OperationResult.success()
        return OperationResult.failure(ErrorKind.NOT_FOUND, f"Notification {notification_id} not found")

    def update_preferences(self, **prefs) -> OperationResult:
        unknown = set(prefs) - set(DEFAULT_PREFERENCES)
        if unknown:
            return OperationResult.failure(ErrorKind.VALIDATION, f"Unknown preference: {', '.join(sorted(unknown))}")

        currency = prefs.get("currency")
        if currency is not None and (not isinstance(currency, str) or len(currency) != 3 or not currency.isalpha()):
            return OperationResult.failure(ErrorKind.VALIDATION, "currency must be a 3-letter code")

        self._preferences.update(prefs)
        if currency is not None:
            self._preferences["currency"] = currency.upper()
        self.store.set(PREFERENCES_KEY, self._preferences)
        return OperationResult.success(self.preferences)

    def format_currency(self, amount_cents: int) -> str:
        code = self._preferences.get("currency", DEFAULT_PREFERENCES["currency"])
        symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
        sign = "-" if amount_cents < 0 else ""
        return f"{sign}{symbol}{Decimal(abs(amount_cents)) / 100:,.2f}"
