"""
Candidate Selection Logic.

Responsibilities:
- Score every declared x authoritative pair.
- Propose only pairs that clear the acceptance threshold.
- Rank proposals by descending score with a deterministic tie-break.

Non-Responsibilities:
- No one-to-one assignment.
- No persistence.

Invariant:
A pair below the threshold is never proposed.
"""

from typing import List, Optional, Sequence

from rostercheck.config import MatchingConfig
from rostercheck.records import IdentityRecord

from .scoring import PairScore, score_pair


def ranking_key(pair: PairScore):
    """Descending score, then ascending source id, then ascending target id."""
    return (-pair.score, pair.source.id, pair.target.id)


def select_candidates(
    source: Sequence[IdentityRecord],
    target: Sequence[IdentityRecord],
    config: Optional[MatchingConfig] = None,
) -> List[PairScore]:
    config = config or MatchingConfig()
    proposals = []
    for s in source:
        for t in target:
            scored = score_pair(s, t, config)
            if scored.score >= config.threshold:
                proposals.append(scored)
    proposals.sort(key=ranking_key)
    return proposals
