"""
Auth Observer.

Broadcasts the current identity to every synchronized store. The sign-in
protocol itself lives in an external AuthProvider; the observer only records
what the provider reports.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from loguru import logger

from .contracts import AuthState, Unsubscribe
from .reactive import Writable


class AuthProvider(Protocol):
    """External sign-in capability."""

    async def sign_in(self) -> str: ...

    async def sign_out(self) -> None: ...


class AuthObserver:
    """
    Shared, read-only (to stores) identity broadcast.

    Subscribers receive the current AuthState immediately and on every change.
    """

    def __init__(self, provider: AuthProvider | None = None, identity: str | None = None):
        self._provider = provider
        self._state: Writable[AuthState] = Writable(AuthState(identity=identity))

    @property
    def state(self) -> AuthState:
        return self._state.get()

    @property
    def identity(self) -> str | None:
        return self._state.get().identity

    def subscribe(self, callback: Callable[[AuthState], None]) -> Unsubscribe:
        return self._state.subscribe(callback)

    def set_identity(self, identity: str | None) -> None:
        """Record an identity change reported by the provider."""
        logger.info(f"Auth identity -> {identity or 'anonymous'}")
        self._state.set(replace(self._state.get(), identity=identity, loading=False))

    async def login(self) -> None:
        if self._provider is None:
            raise RuntimeError("No auth provider configured")
        self._state.set(replace(self._state.get(), loading=True, error=None))
        try:
            identity = await self._provider.sign_in()
        except Exception as e:
            logger.error(f"Sign-in failed: {e}")
            self._state.set(replace(self._state.get(), loading=False, error=str(e)))
            return
        self.set_identity(identity)

    async def logout(self) -> None:
        if self._provider is None:
            self.set_identity(None)
            return
        self._state.set(replace(self._state.get(), loading=True, error=None))
        try:
            await self._provider.sign_out()
        except Exception as e:
            logger.error(f"Sign-out failed: {e}")
            self._state.set(replace(self._state.get(), loading=False, error=str(e)))
            return
        self.set_identity(None)
