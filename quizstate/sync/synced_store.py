"""
Dual-Source Synchronized Store.

One SyncedStore holds one piece of learner state (history, notes, config...)
and presents it as a single reactive value whose source depends on identity:

- anonymous: the value lives in LocalStorage under storage_key
- signed in: the value lives in the remote document users/{uid}/synced_data/{remote_id}

Every published value carries an Origin. LOCAL values (from set/update) are
routed to whichever sink is authoritative right now; RECEIVED values (read
from that source) are only published, never written back, so a value can not
echo between the store and its source.
"""

from __future__ import annotations

import asyncio
import copy
import json
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from loguru import logger

from .auth import AuthObserver
from .contracts import (
    AuthState,
    DocumentStore,
    LocalStorage,
    Origin,
    StoreRegistration,
    Unsubscribe,
)
from .reactive import Writable

T = TypeVar("T")

_UNSET = object()


def read_local_json(local: LocalStorage | None, key: str, default: T) -> T:
    """
    Read and parse a locally persisted value.

    Missing keys and malformed JSON both yield a copy of default.
    """
    if local is None:
        return copy.deepcopy(default)
    raw = local.get_item(key)
    if raw is None:
        return copy.deepcopy(default)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse local {key!r}, using default: {e}")
        return copy.deepcopy(default)


def write_local_json(local: LocalStorage, key: str, value: Any) -> None:
    local.set_item(key, json.dumps(value, ensure_ascii=False))


class SyncedStore(Generic[T]):
    """
    Reactive value synchronized with LocalStorage (guest) or a DocumentStore (user).

    Switching identity never merges the two sources: whichever source is
    authoritative after the switch replaces the visible value.
    """

    def __init__(
        self,
        registration: StoreRegistration[T],
        auth: AuthObserver,
        local: LocalStorage | None = None,
        remote: DocumentStore | None = None,
    ):
        """
        Initialize the store and attach it to the auth observer.

        Args:
            registration: storage key, remote document id and default value
            auth: Shared identity broadcast
            local: Device persistence (None = in-memory only)
            remote: Remote document store (None = always local)
        """
        self.registration = registration
        self._local = local
        self._remote = remote

        self._identity: Any = _UNSET
        self._remote_unsubscribe: Unsubscribe | None = None
        self._pending: set[asyncio.Task] = set()

        # Seed synchronously so the first read is never empty
        self._value: Writable[T] = Writable(self._read_local())

        self._auth_unsubscribe: Unsubscribe | None = auth.subscribe(self._on_auth)

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def key(self) -> str:
        return self.registration.storage_key

    @property
    def identity(self) -> str | None:
        """Identity the store is currently bound to (None = local source)."""
        return None if self._identity is _UNSET else self._identity

    def get(self) -> T:
        return self._value.get()

    def set(self, value: T) -> None:
        """Replace the value and persist it to the authoritative sink."""
        self._publish(value, Origin.LOCAL)

    def update(self, fn: Callable[[T], T]) -> None:
        self._publish(fn(self._value.get()), Origin.LOCAL)

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Deliver the current value now and every change after."""
        return self._value.subscribe(callback)

    async def refresh(self) -> None:
        """Re-read the authoritative source now instead of waiting for a push."""
        identity = self.identity
        if identity is None:
            self._publish(self._read_local(), Origin.RECEIVED)
            return
        try:
            snapshot = await self._remote.get(identity, self.registration.remote_id)
        except Exception as e:
            self._on_remote_error(e)
            return
        self._on_remote(identity, snapshot)

    async def flush(self) -> None:
        """Wait for in-flight remote writes (failures are already logged)."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def close(self) -> None:
        """Detach from the auth observer and any remote subscription."""
        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None
        self._detach_remote()

    # =========================================================================
    # Source switching
    # =========================================================================

    def _on_auth(self, state: AuthState) -> None:
        identity = state.identity if self._remote is not None else None
        if identity == self._identity:
            return
        self._identity = identity
        self._detach_remote()

        if identity is None:
            logger.info(f"[{self.key}] source -> local")
            self._publish(self._read_local(), Origin.RECEIVED)
        else:
            logger.info(f"[{self.key}] source -> remote ({identity})")
            self._attach_remote(identity)

    def _attach_remote(self, identity: str) -> None:
        remote_id = self.registration.remote_id
        try:
            self._remote_unsubscribe = self._remote.subscribe(
                identity,
                remote_id,
                lambda snapshot: self._on_remote(identity, snapshot),
                self._on_remote_error,
            )
        except Exception as e:
            # Keep serving the last value; the next identity change retries.
            logger.error(f"[{self.key}] could not subscribe to {remote_id}: {e}")

    def _detach_remote(self) -> None:
        if self._remote_unsubscribe is not None:
            self._remote_unsubscribe()
            self._remote_unsubscribe = None

    def _on_remote(self, identity: str, snapshot: dict[str, Any] | None) -> None:
        if identity != self._identity:
            return  # push from a subscription that was already detached
        if snapshot is None or "value" not in snapshot:
            value = copy.deepcopy(self.registration.default)
        else:
            value = snapshot["value"]
        self._publish(value, Origin.RECEIVED)

    def _on_remote_error(self, error: Exception) -> None:
        logger.error(f"[{self.key}] remote sync error, serving last known value: {error}")

    # =========================================================================
    # Publishing and write routing
    # =========================================================================

    def _publish(self, value: T, origin: Origin) -> None:
        if self._value.set(value) and origin is Origin.LOCAL:
            self._route_write(value)

    def _route_write(self, value: T) -> None:
        identity = self.identity
        if identity is None:
            if self._local is not None:
                write_local_json(self._local, self.key, value)
            return

        remote_id = self.registration.remote_id
        logger.debug(f"[{self.key}] writing to remote {remote_id} for {identity}")
        self._spawn(self._remote.set(identity, remote_id, {"value": value}, merge=True))

    def _spawn(self, write: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (plain synchronous caller): run the write inline.
            asyncio.run(self._guarded(write))
            return
        task = loop.create_task(self._guarded(write))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _guarded(self, write: Awaitable[None]) -> None:
        try:
            await write
        except Exception as e:
            logger.error(f"[{self.key}] remote save failed (not retried): {e}")

    def _read_local(self) -> T:
        return read_local_json(self._local, self.key, self.registration.default)


class PersistedStore(Generic[T]):
    """Local-only reactive value (never synced), e.g. the active quiz session."""

    def __init__(self, key: str, default: T, local: LocalStorage | None = None):
        self.key = key
        self._local = local
        self._value: Writable[T] = Writable(read_local_json(local, key, default))

    def get(self) -> T:
        return self._value.get()

    def set(self, value: T) -> None:
        if self._value.set(value) and self._local is not None:
            write_local_json(self._local, self.key, value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value.get()))

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        return self._value.subscribe(callback)


def create_synced(
    storage_key: str,
    remote_id: str,
    default: T,
    *,
    auth: AuthObserver,
    local: LocalStorage | None = None,
    remote: DocumentStore | None = None,
) -> SyncedStore[T]:
    """Create a synchronized store for one piece of state."""
    return SyncedStore(
        StoreRegistration(storage_key, remote_id, default),
        auth=auth,
        local=local,
        remote=remote,
    )


def persisted(key: str, default: T, local: LocalStorage | None = None) -> PersistedStore[T]:
    """Create a local-only persisted store."""
    return PersistedStore(key, default, local)
