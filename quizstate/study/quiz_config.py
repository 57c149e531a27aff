"""
Quiz configuration record (the `config` synced store).

Validated once at the boundary: category is a closed set and selected codes
must be well-formed classification codes. Persisted with camelCase keys.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from quizstate.taxonomy.categories import Category, parse_category
from quizstate.taxonomy.codes import validate_code

FIRST_EXAM_YEAR = 2012

# exam type id -> round name suffix
EXAM_TYPES: dict[str, str] = {
    "official": "",
    "6mo": "_6mo",
    "8mo": "_8mo",
    "10mo": "_10mo",
}


def round_name(year: int, exam_type: str = "official") -> str:
    """2012 official -> '1회', 2013 6-month mock -> '2회_6mo'."""
    return f"{year - FIRST_EXAM_YEAR + 1}회{EXAM_TYPES.get(exam_type, '')}"


class QuizConfig(BaseModel):
    """Learner's quiz filter and session settings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    category: Category = Category.PUBLIC_LAW
    start_year: int = FIRST_EXAM_YEAR
    end_year: int = FIRST_EXAM_YEAR
    exam_types: list[str] = Field(default_factory=lambda: ["official"])
    selected_rounds: list[str] = Field(default_factory=lambda: ["1회"])
    selected_subjects: list[str] = Field(default_factory=list)
    selected_codes: list[str] = Field(default_factory=list)
    question_count: int = Field(default=10, ge=1)
    prioritize_unseen: bool = True
    shuffle_options: bool = True

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> Category:
        return parse_category(value)

    @field_validator("selected_codes")
    @classmethod
    def _codes(cls, value: list[str]) -> list[str]:
        return [validate_code(code) for code in value]

    @field_validator("exam_types")
    @classmethod
    def _exam_types(cls, value: list[str]) -> list[str]:
        unknown = [t for t in value if t not in EXAM_TYPES]
        if unknown:
            raise ValueError(f"Unknown exam types: {unknown}")
        return value

    def rounds_in_range(self) -> list[str]:
        """Round names covered by start_year..end_year and exam_types."""
        return [
            round_name(year, exam_type)
            for year in range(self.start_year, self.end_year + 1)
            for exam_type in self.exam_types
        ]

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_store(cls, raw: Any) -> QuizConfig:
        """Parse a stored config; invalid data falls back to defaults."""
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Stored quiz config is invalid, using defaults: {e}")
            return cls()


def default_config() -> dict[str, Any]:
    return QuizConfig().to_store()
