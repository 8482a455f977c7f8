# Overview: Client-side application state over the HTTP API.

from .api import InventoryApi, ApiError
from .store import LocalStore
from .state import (
    ClientConfig,
    CurrentUser,
    ErrorKind,
    InventoryState,
    Notification,
    OperationResult,
)

__all__ = [
    "InventoryApi",
    "ApiError",
    "LocalStore",
    "ClientConfig",
    "CurrentUser",
    "ErrorKind",
    "InventoryState",
    "Notification",
    "OperationResult",
]
