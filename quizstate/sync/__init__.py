"""
State synchronization.

Components:
- AuthObserver: identity broadcast shared by all stores
- SyncedStore: dual-source (local/remote) reactive value
- PersistedStore: local-only reactive value
- MemoryLocalStorage / SqliteLocalStorage: device persistence
- MemoryDocumentStore / HttpDocumentStore: remote document stores
"""

from .auth import AuthObserver, AuthProvider
from .contracts import AuthState, DocumentStore, LocalStorage, Origin, StoreRegistration
from .local_storage import MemoryLocalStorage, SqliteLocalStorage
from .reactive import Writable
from .remote_store import HttpDocumentStore, MemoryDocumentStore
from .synced_store import PersistedStore, SyncedStore, create_synced, persisted

__all__ = [
    # Identity
    "AuthObserver",
    "AuthProvider",
    "AuthState",
    # Stores
    "SyncedStore",
    "PersistedStore",
    "Writable",
    "create_synced",
    "persisted",
    "Origin",
    "StoreRegistration",
    # Storage
    "LocalStorage",
    "DocumentStore",
    "MemoryLocalStorage",
    "SqliteLocalStorage",
    "MemoryDocumentStore",
    "HttpDocumentStore",
]
