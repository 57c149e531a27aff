"""
Contracts between the synchronized store and its collaborators.

The store never talks to a concrete backend. It sees:
- an identity source (AuthObserver) that broadcasts AuthState
- a LocalStorage (synchronous key/value strings)
- a DocumentStore (asynchronous get/set plus push subscriptions)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class Origin(Enum):
    """Where a published value came from."""

    LOCAL = "local"  # set()/update() on the store; must be written to the sink
    RECEIVED = "received"  # read from the authoritative source; never written back


@dataclass(frozen=True)
class AuthState:
    """Identity snapshot broadcast by the auth observer."""

    identity: str | None = None
    loading: bool = False
    error: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.identity is None


@dataclass(frozen=True)
class StoreRegistration(Generic[T]):
    """(storage_key, remote_id, default) triple owned by one store."""

    storage_key: str
    remote_id: str
    default: T


class LocalStorage(Protocol):
    """Synchronous string key/value persistence on this device."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class DocumentStore(Protocol):
    """Remote per-user document service."""

    async def get(self, user_id: str, remote_id: str) -> dict[str, Any] | None: ...

    async def set(
        self,
        user_id: str,
        remote_id: str,
        data: dict[str, Any],
        merge: bool = True,
    ) -> None: ...

    def subscribe(
        self,
        user_id: str,
        remote_id: str,
        on_change: Callable[[dict[str, Any] | None], None],
        on_error: Callable[[Exception], None],
    ) -> Unsubscribe: ...
