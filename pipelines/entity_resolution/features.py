"""
Feature Extraction for Entity Resolution.

Responsibilities:
- Compute individual similarity and agreement features.
- Normalize and compare fields (names, dates of birth, free text).

Non-Responsibilities:
- No weighting logic.
- No threshold logic.
- No persistence.

Invariant:
Missing data must never be treated as a mismatch.
"""

from typing import Any, Optional

from rapidfuzz.distance import Levenshtein

from rostercheck.normalize import normalize_text, parse_date, is_missing
from rostercheck.records import IdentityRecord


def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Normalized Levenshtein similarity in [0, 1].

    Case, diacritics and whitespace are ignored. An empty side scores 0.
    """
    na = normalize_text(a)
    nb = normalize_text(b)
    if not na or not nb:
        return 0.0
    return Levenshtein.normalized_similarity(na, nb)


def name_similarity(source: IdentityRecord, target: IdentityRecord) -> float:
    """Best of straight and swapped first/last name comparison."""
    source_first = source.first_name or ""
    source_last = source.last_name or ""
    target_full = f"{target.first_name or ''} {target.last_name or ''}"

    straight = string_similarity(f"{source_first} {source_last}", target_full)
    swapped = string_similarity(f"{source_last} {source_first}", target_full)
    return max(straight, swapped)


def dob_agreement(a: Any, b: Any) -> Optional[float]:
    """
    1.0 when both birth dates denote the same day, 0.0 when they differ.

    Returns None when either side is missing so the caller can exclude
    the signal. Unreadable values that differ count as disagreement.
    """
    if is_missing(a) or is_missing(b):
        return None
    if isinstance(a, str) and isinstance(b, str) and a.strip() == b.strip():
        return 1.0
    da = parse_date(a)
    db = parse_date(b)
    if da is None or db is None:
        return 0.0
    return 1.0 if da == db else 0.0
