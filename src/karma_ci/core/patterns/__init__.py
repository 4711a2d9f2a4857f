"""Failure signature database.

Re-exports the catalog, its types, and the matching functions.
"""

from karma_ci.core.patterns.catalog import SIGNATURES
from karma_ci.core.patterns.codes import Category, Severity
from karma_ci.core.patterns.matching import (
    best_match,
    get_signature,
    match_all,
    signatures_by_category,
)
from karma_ci.core.patterns.models import FailureSignature

__all__ = [
    "Category",
    "FailureSignature",
    "SIGNATURES",
    "Severity",
    "best_match",
    "get_signature",
    "match_all",
    "signatures_by_category",
]
