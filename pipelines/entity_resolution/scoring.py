"""
Scoring Logic for Entity Resolution (v1).

Responsibilities:
- Compute a deterministic composite score between a declared and an
  authoritative identity.
- Keep the name and date-of-birth components for explanation.

Non-Responsibilities:
- No candidate selection.
- No threshold decisions.

Invariant:
Given identical inputs, this module must always return the same score.
"""

from dataclasses import dataclass
from typing import Optional

from rostercheck.config import MatchingConfig
from rostercheck.records import IdentityRecord

from .features import name_similarity, dob_agreement


@dataclass(frozen=True)
class PairScore:
    source: IdentityRecord
    target: IdentityRecord
    score: float
    name_score: float
    dob_score: Optional[float]


def combine(name_score: float, dob_score: Optional[float], config: MatchingConfig) -> float:
    """
    Weighted mean of the name and birth date signals, clamped to [0, 1].

    A missing birth date drops out of the mean instead of counting as 0.
    """
    if dob_score is None or config.dob_weight == 0:
        combined = name_score
    else:
        total_weight = config.name_weight + config.dob_weight
        combined = (name_score * config.name_weight + dob_score * config.dob_weight) / total_weight
    return min(max(combined, 0.0), 1.0)


def score_pair(
    source: IdentityRecord,
    target: IdentityRecord,
    config: Optional[MatchingConfig] = None,
) -> PairScore:
    config = config or MatchingConfig()
    name_score = name_similarity(source, target)
    dob_score = dob_agreement(source.date_of_birth, target.date_of_birth)
    return PairScore(
        source=source,
        target=target,
        score=combine(name_score, dob_score, config),
        name_score=name_score,
        dob_score=dob_score,
    )
