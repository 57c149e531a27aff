"""
Hierarchical Code Matcher.

Classification codes are underscore-joined segments, each narrowing the
previous one:

    CIV            subject root
    CIV_01         depth 1
    CIV_01_02      depth 2
    CIV_01_02_03   depth 3

X is an ancestor of Y iff Y == X or Y starts with X + "_".
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, NewType

from quizstate.errors import InvalidCodeError

ClassificationCode = NewType("ClassificationCode", str)

SEPARATOR = "_"
_SEGMENT = re.compile(r"^[A-Za-z0-9]+$")


def validate_code(code: str) -> ClassificationCode:
    """
    Validate a code string at the input boundary.

    Raises:
        InvalidCodeError: empty code, empty segment, or non-alphanumeric segment
    """
    code = code.strip()
    if not code:
        raise InvalidCodeError(code, "empty")
    for segment in code.split(SEPARATOR):
        if not segment:
            raise InvalidCodeError(code, "empty segment")
        if not _SEGMENT.match(segment):
            raise InvalidCodeError(code, f"bad segment {segment!r}")
    return ClassificationCode(code)


def ancestors_of(code: str) -> list[str]:
    """
    Every underscore-delimited prefix of code, shortest first, code included.

    CIV_01_02_03 -> [CIV, CIV_01, CIV_01_02, CIV_01_02_03]
    """
    parts = code.split(SEPARATOR)
    return [SEPARATOR.join(parts[:i]) for i in range(1, len(parts) + 1)]


def is_ancestor(ancestor: str, code: str) -> bool:
    return code == ancestor or code.startswith(ancestor + SEPARATOR)


def matches(item_tags: Iterable[str], selected_codes: Iterable[str]) -> bool:
    """
    Check whether an item's tags are covered by the selected filter codes.

    No selection matches everything. Otherwise a tag T matches a selected S
    when S is one of T's ancestors (a broad category covers the item), or when
    T is a plain string prefix of S (a narrow selection still covers an item
    tagged only with a broader code).
    """
    selected = set(selected_codes)
    if not selected:
        return True

    for tag in set(item_tags):
        ancestors = set(ancestors_of(tag))
        for code in selected:
            if code in ancestors or code.startswith(tag):
                return True
    return False


class CodeMatcher:
    """Code expansion over a fixed universe of known codes."""

    def __init__(self, universe: Mapping[str, Any] | Iterable[str]):
        self._codes: frozenset[str] = frozenset(universe)

    def __contains__(self, code: str) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)

    def expand(self, code: str) -> set[str]:
        """
        The code plus every known descendant.

        The code itself is always included, even if it is not a known code
        (a parent category used only as a filter).
        """
        result = {known for known in self._codes if is_ancestor(code, known)}
        result.add(code)
        return result

    def expand_all(self, codes: Iterable[str]) -> set[str]:
        result: set[str] = set()
        for code in codes:
            result |= self.expand(code)
        return result

    matches = staticmethod(matches)
    ancestors_of = staticmethod(ancestors_of)
