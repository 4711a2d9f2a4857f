"""Matching and ranking of log text against failure signatures.

Matching is presence-based: a signature either occurs in the log or it does
not. How many lines it matched never influences ranking.
"""

from __future__ import annotations

from collections.abc import Sequence

from .catalog import SIGNATURES
from .codes import Category
from .models import FailureSignature


def match_all(
    log: str,
    signatures: Sequence[FailureSignature] = SIGNATURES,
) -> list[FailureSignature]:
    """Return every signature that occurs in ``log``.

    Patterns are searched unanchored over the whole text. Declaration order
    is preserved and each signature appears at most once.

    Args:
        log: Raw CI log text. Empty text matches nothing.
        signatures: Catalog to match against.

    Returns:
        Matching signatures in catalog order.
    """
    if not log:
        return []
    matched: list[FailureSignature] = []
    seen_ids: set[str] = set()
    for signature in signatures:
        if signature.id in seen_ids:
            continue
        if signature.matches(log):
            matched.append(signature)
            seen_ids.add(signature.id)
    return matched


def best_match(
    log: str,
    signatures: Sequence[FailureSignature] = SIGNATURES,
) -> FailureSignature | None:
    """Return the highest-severity signature occurring in ``log``.

    Ties between equal severities go to the signature declared first.

    Returns:
        The primary match, or None when nothing matches.
    """
    matches = match_all(log, signatures)
    if not matches:
        return None
    # Stable key: severity descending, then declaration position.
    ranked = min(
        enumerate(matches),
        key=lambda item: (-item[1].severity.rank, item[0]),
    )
    return ranked[1]


def get_signature(
    signature_id: str,
    signatures: Sequence[FailureSignature] = SIGNATURES,
) -> FailureSignature:
    """Look up a signature by id.

    Raises:
        KeyError: If no signature has that id.
    """
    for signature in signatures:
        if signature.id == signature_id:
            return signature
    raise KeyError(signature_id)


def signatures_by_category(
    category: Category,
    signatures: Sequence[FailureSignature] = SIGNATURES,
) -> list[FailureSignature]:
    """Return the signatures of one category, in catalog order."""
    return [s for s in signatures if s.category == category]
