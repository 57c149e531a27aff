"""
Classification taxonomy: codes, categories and the known-code universe.
"""

from .categories import CATEGORY_SUBJECTS, SUBJECT_CODE_PREFIX, Category, parse_category
from .codes import (
    ClassificationCode,
    CodeMatcher,
    ancestors_of,
    is_ancestor,
    matches,
    validate_code,
)
from .universe import (
    CodeInfo,
    CodeUniverse,
    FlatTaxonomyNode,
    flat_taxonomy_for_category,
    flatten_taxonomy,
)

__all__ = [
    "Category",
    "CATEGORY_SUBJECTS",
    "SUBJECT_CODE_PREFIX",
    "parse_category",
    "ClassificationCode",
    "CodeMatcher",
    "ancestors_of",
    "is_ancestor",
    "matches",
    "validate_code",
    "CodeInfo",
    "CodeUniverse",
    "FlatTaxonomyNode",
    "flat_taxonomy_for_category",
    "flatten_taxonomy",
]
