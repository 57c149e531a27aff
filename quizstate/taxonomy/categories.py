"""Exam categories, their subjects, and subject code prefixes."""

from __future__ import annotations

from enum import Enum

from quizstate.errors import UnknownCategoryError


class Category(str, Enum):
    """The three exam categories. Values match the content files."""

    PUBLIC_LAW = "공법"
    CIVIL_LAW = "민사법"
    CRIMINAL_LAW = "형사법"

    @property
    def subjects(self) -> list[str]:
        return list(CATEGORY_SUBJECTS[self])


CATEGORY_SUBJECTS: dict[Category, tuple[str, ...]] = {
    Category.PUBLIC_LAW: ("헌법", "행정법"),
    Category.CIVIL_LAW: ("민법", "민사소송법", "상법"),
    Category.CRIMINAL_LAW: ("형법", "형사소송법"),
}

# Subject -> root segment of its classification codes
SUBJECT_CODE_PREFIX: dict[str, str] = {
    "민법": "CIV",
    "민사소송법": "CPL",
    "상법": "COM",
    "형법": "CRI",
    "형사소송법": "CRL",
    "헌법": "CON",
    "행정법": "ADM",
}


def parse_category(name: str | Category) -> Category:
    """
    Validate a category name at the input boundary.

    Accepts the content-file value ("공법") or the member name ("PUBLIC_LAW").

    Raises:
        UnknownCategoryError: name is not a known category
    """
    if isinstance(name, Category):
        return name
    try:
        return Category(name)
    except ValueError:
        pass
    try:
        return Category[name.upper()]
    except KeyError:
        raise UnknownCategoryError(name) from None


def subject_prefixes(subjects: list[str]) -> list[str]:
    """Code prefixes for the given subjects; unknown subjects are skipped."""
    return [SUBJECT_CODE_PREFIX[s] for s in subjects if s in SUBJECT_CODE_PREFIX]
