"""Hazmat KB Storage - SQLite persistence for documents and settings.

Provides:
- Connection management (aiosqlite)
- DocumentStore: local reference documents
- SettingsStore: credential, models, knowledge servers, check toggles, defaults
"""

from hazmat_storage.connection import (
    DatabaseConfig,
    check_connection_health,
    close_connection,
    get_connection,
)
from hazmat_storage.document_store import DocumentStore
from hazmat_storage.settings_store import (
    SHIPMENT_DEFAULT_KEYS,
    ModelTask,
    SettingsStore,
    default_model,
)

__version__ = "1.0.0"

__all__ = [
    "DatabaseConfig",
    "check_connection_health",
    "close_connection",
    "get_connection",
    "DocumentStore",
    "SHIPMENT_DEFAULT_KEYS",
    "ModelTask",
    "SettingsStore",
    "default_model",
]
