"""Taxonomy resolution, category tree, and correction learning."""

from .categories import CategoryNode, CategoryTree, default_roots
from .corrections import CorrectionLearner, CorrectionRecord
from .ignore import should_ignore
from .resolver import (
    Resolution,
    ResolutionOutcome,
    TaxonomyResolver,
    normalize_path,
    truncate_depth,
)
from .similarity import best_match, similarity

__all__ = [
    "CategoryNode",
    "CategoryTree",
    "CorrectionLearner",
    "CorrectionRecord",
    "Resolution",
    "ResolutionOutcome",
    "TaxonomyResolver",
    "best_match",
    "default_roots",
    "normalize_path",
    "should_ignore",
    "similarity",
    "truncate_depth",
]
