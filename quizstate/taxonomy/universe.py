"""
Code universe: the flat code -> metadata mapping and per-subject taxonomy trees.

master_codes.json:
    {"CIV_01_02": {"subject": "민법", "path": "총칙 > 법률행위"}, ...}

<subject>.json (taxonomy tree, three fixed depths):
    {"subject": "민법", "categories": [
        {"depth1_code": ..., "depth1_name": ..., "depth2_items": [
            {"depth2_code": ..., "depth2_name": ..., "depth3_items": [
                {"depth3_code": ..., "depth3_name": ...}]}]}]}

Lookups never raise on unknown codes: they return the input code (or an
empty list) so callers degrade gracefully.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .categories import Category, parse_category
from .codes import CodeMatcher

PATH_SEPARATOR = " > "


@dataclass(frozen=True)
class CodeInfo:
    subject: str
    path: str


@dataclass(frozen=True)
class FlatTaxonomyNode:
    """One node of a flattened taxonomy tree."""

    code: str
    name: str
    depth: int  # 1..3
    path: str
    subject: str
    parent_code: str | None = None


class CodeUniverse:
    """Read-only snapshot of every known classification code."""

    def __init__(self, codes: Mapping[str, CodeInfo] | None = None):
        self._codes: dict[str, CodeInfo] = dict(codes or {})
        self.matcher = CodeMatcher(self._codes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping]) -> CodeUniverse:
        return cls(
            {
                code: CodeInfo(subject=info.get("subject", ""), path=info.get("path", ""))
                for code, info in data.items()
            }
        )

    @classmethod
    def load(cls, path: Path) -> CodeUniverse:
        """
        Load master codes from JSON.

        A missing or unreadable file yields an empty universe (logged), so
        expansion falls back to the code itself.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load master codes from {path}: {e}")
            return cls()
        logger.info(f"Loaded master codes with {len(data)} entries")
        return cls.from_dict(data)

    def __contains__(self, code: str) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)

    def codes(self) -> list[str]:
        return sorted(self._codes)

    def expand(self, code: str) -> set[str]:
        return self.matcher.expand(code)

    def path_of(self, code: str) -> str:
        info = self._codes.get(code)
        return info.path if info and info.path else code

    def name_of(self, code: str) -> str:
        info = self._codes.get(code)
        if not info or not info.path:
            return code
        return info.path.split(PATH_SEPARATOR)[-1]

    def subject_of(self, code: str) -> str | None:
        info = self._codes.get(code)
        return info.subject if info else None


def flatten_taxonomy(taxonomy: Mapping) -> list[FlatTaxonomyNode]:
    """Flatten one subject's depth1/2/3 taxonomy tree, parents before children."""
    subject = taxonomy.get("subject", "")
    nodes: list[FlatTaxonomyNode] = []

    for d1 in taxonomy.get("categories", []):
        d1_path = d1["depth1_name"]
        nodes.append(
            FlatTaxonomyNode(
                code=d1["depth1_code"], name=d1["depth1_name"], depth=1,
                path=d1_path, subject=subject,
            )
        )
        for d2 in d1.get("depth2_items", []):
            d2_path = f"{d1_path}{PATH_SEPARATOR}{d2['depth2_name']}"
            nodes.append(
                FlatTaxonomyNode(
                    code=d2["depth2_code"], name=d2["depth2_name"], depth=2,
                    path=d2_path, subject=subject, parent_code=d1["depth1_code"],
                )
            )
            for d3 in d2.get("depth3_items", []):
                nodes.append(
                    FlatTaxonomyNode(
                        code=d3["depth3_code"], name=d3["depth3_name"], depth=3,
                        path=f"{d2_path}{PATH_SEPARATOR}{d3['depth3_name']}",
                        subject=subject, parent_code=d2["depth2_code"],
                    )
                )
    return nodes


def load_taxonomy(taxonomy_dir: Path, subject: str) -> dict | None:
    path = taxonomy_dir / f"{subject}.json"
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load taxonomy {path}: {e}")
        return None


def flat_taxonomy_for_category(taxonomy_dir: Path, category: str | Category) -> list[FlatTaxonomyNode]:
    """All taxonomy nodes of a category's subjects; empty for an unknown category."""
    try:
        resolved = parse_category(category)
    except ValueError:
        logger.warning(f"Unknown category {category!r}; no taxonomy")
        return []

    nodes: list[FlatTaxonomyNode] = []
    for subject in resolved.subjects:
        taxonomy = load_taxonomy(taxonomy_dir, subject)
        if taxonomy is not None:
            nodes.extend(flatten_taxonomy(taxonomy))
    return nodes
