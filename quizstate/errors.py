"""Exception types raised by quizstate."""

from __future__ import annotations


class QuizStateError(Exception):
    """Base class for quizstate errors."""


class InvalidCodeError(QuizStateError, ValueError):
    """A classification code failed validation at the input boundary."""

    def __init__(self, code: str, reason: str):
        super().__init__(f"Invalid classification code {code!r}: {reason}")
        self.code = code
        self.reason = reason


class UnknownCategoryError(QuizStateError, ValueError):
    """A category name is not one of the known exam categories."""

    def __init__(self, name: str):
        super().__init__(f"Unknown category: {name!r}")
        self.name = name


class RemoteStoreError(QuizStateError):
    """Transport failure talking to the remote document store."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
