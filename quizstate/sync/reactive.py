"""
Minimal reactive value.

A Writable holds one value and pushes it to subscribers: once immediately on
subscribe, then after every accepted change, in the order changes were applied.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from .contracts import Unsubscribe

T = TypeVar("T")

_PRIMITIVES = (str, int, float, bool, bytes, type(None))


def _safe_not_equal(a: object, b: object) -> bool:
    # Containers are always treated as changed so in-place edits still notify.
    if isinstance(a, _PRIMITIVES) and isinstance(b, _PRIMITIVES):
        return a != b or type(a) is not type(b)
    return True


class Writable(Generic[T]):
    """Observable value with get/set/update/subscribe."""

    def __init__(self, value: T):
        self._value = value
        self._subscribers: list[Callable[[T], None]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Replace the value. Returns False if nothing changed."""
        if not _safe_not_equal(self._value, value):
            return False
        self._value = value
        for callback in list(self._subscribers):
            callback(value)
        return True

    def update(self, fn: Callable[[T], T]) -> bool:
        return self.set(fn(self._value))

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        self._subscribers.append(callback)
        callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
