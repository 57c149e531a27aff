"""
Remote document stores.

Documents live at users/{user_id}/synced_data/{remote_id} and hold a JSON
object. Two implementations of the DocumentStore contract:

- MemoryDocumentStore: in-process, pushes every write to subscribers
  (tests, demos, single-process multi-"device" simulations)
- HttpDocumentStore: httpx client for a document service; subscriptions
  poll the document and push only when it changed
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable
from typing import Any

import httpx

from quizstate.errors import RemoteStoreError

from .contracts import Unsubscribe

OnChange = Callable[[dict[str, Any] | None], None]
OnError = Callable[[Exception], None]


def document_path(user_id: str, remote_id: str) -> str:
    return f"users/{user_id}/synced_data/{remote_id}"


# =============================================================================
# In-memory store
# =============================================================================


class MemoryDocumentStore:
    """
    In-process document store with synchronous push delivery.

    subscribe() delivers the current snapshot immediately, then every
    subsequent write to the same document. Failures can be injected with
    fail_writes / emit_error.
    """

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        self._listeners: dict[str, list[tuple[OnChange, OnError]]] = {}
        self.fail_writes: Exception | None = None
        self.write_count = 0

    async def get(self, user_id: str, remote_id: str) -> dict[str, Any] | None:
        doc = self._docs.get(document_path(user_id, remote_id))
        return copy.deepcopy(doc) if doc is not None else None

    async def set(
        self,
        user_id: str,
        remote_id: str,
        data: dict[str, Any],
        merge: bool = True,
    ) -> None:
        if self.fail_writes is not None:
            raise self.fail_writes
        self.write_count += 1
        self.put_document(user_id, remote_id, data, merge=merge)

    def put_document(
        self,
        user_id: str,
        remote_id: str,
        data: dict[str, Any],
        merge: bool = True,
    ) -> None:
        """Write a document directly, as another device would."""
        path = document_path(user_id, remote_id)
        existing = self._docs.get(path)
        if merge and existing is not None:
            doc = {**existing, **copy.deepcopy(data)}
        else:
            doc = copy.deepcopy(data)
        self._docs[path] = doc
        self._notify(path)

    def delete_document(self, user_id: str, remote_id: str) -> None:
        path = document_path(user_id, remote_id)
        self._docs.pop(path, None)
        self._notify(path)

    def emit_error(self, user_id: str, remote_id: str, error: Exception) -> None:
        """Deliver a subscription error to every listener of a document."""
        for _, on_error in list(self._listeners.get(document_path(user_id, remote_id), [])):
            on_error(error)

    def subscribe(
        self,
        user_id: str,
        remote_id: str,
        on_change: OnChange,
        on_error: OnError,
    ) -> Unsubscribe:
        path = document_path(user_id, remote_id)
        entry = (on_change, on_error)
        self._listeners.setdefault(path, []).append(entry)
        on_change(self._snapshot(path))

        def unsubscribe() -> None:
            listeners = self._listeners.get(path, [])
            if entry in listeners:
                listeners.remove(entry)

        return unsubscribe

    def listener_count(self, user_id: str, remote_id: str) -> int:
        return len(self._listeners.get(document_path(user_id, remote_id), []))

    def _snapshot(self, path: str) -> dict[str, Any] | None:
        doc = self._docs.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    def _notify(self, path: str) -> None:
        for on_change, _ in list(self._listeners.get(path, [])):
            on_change(self._snapshot(path))


# =============================================================================
# HTTP store
# =============================================================================


class HttpDocumentStore:
    """
    HTTP client for a per-user document service.

    Endpoints (relative to base_url):
        GET   /users/{uid}/synced_data/{id}   -> 200 JSON object | 404
        PATCH /users/{uid}/synced_data/{id}   merge write
        PUT   /users/{uid}/synced_data/{id}   replace write
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        poll_interval_seconds: float = 5.0,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key

        self.base_url = base_url.rstrip("/")
        self.poll_interval_seconds = poll_interval_seconds
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )
        self._pollers: set[asyncio.Task] = set()

    async def __aenter__(self) -> HttpDocumentStore:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Cancel subscriptions and close the HTTP client."""
        for task in list(self._pollers):
            task.cancel()
        self._pollers.clear()
        await self.client.aclose()

    async def get(self, user_id: str, remote_id: str) -> dict[str, Any] | None:
        path = "/" + document_path(user_id, remote_id)
        try:
            response = await self.client.get(path)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(
                f"GET {path} failed: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise RemoteStoreError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise RemoteStoreError(f"GET {path} returned a non-JSON body") from e

    async def set(
        self,
        user_id: str,
        remote_id: str,
        data: dict[str, Any],
        merge: bool = True,
    ) -> None:
        path = "/" + document_path(user_id, remote_id)
        method = "PATCH" if merge else "PUT"
        try:
            response = await self.client.request(method, path, json=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(
                f"{method} {path} failed: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise RemoteStoreError(f"{method} {path} failed: {e}") from e

    def subscribe(
        self,
        user_id: str,
        remote_id: str,
        on_change: OnChange,
        on_error: OnError,
    ) -> Unsubscribe:
        """
        Poll the document and push snapshots that differ from the last one.

        Must be called with a running event loop. The first successful poll
        always pushes, including a missing document (None).
        Failures, including ones raised by on_change, go to on_error and
        polling carries on.
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._poll(user_id, remote_id, on_change, on_error))
        self._pollers.add(task)
        task.add_done_callback(self._pollers.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _poll(
        self,
        user_id: str,
        remote_id: str,
        on_change: OnChange,
        on_error: OnError,
    ) -> None:
        sentinel = object()
        last: Any = sentinel
        while True:
            try:
                snapshot = await self.get(user_id, remote_id)
                if last is sentinel or snapshot != last:
                    last = snapshot
                    on_change(copy.deepcopy(snapshot))
            except Exception as e:
                on_error(e)
            await asyncio.sleep(self.poll_interval_seconds)
