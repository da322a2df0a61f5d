"""
Entity Resolution Orchestrator.

Responsibilities:
- Coordinate candidate selection.
- Assign declared records to authoritative records one-to-one.
- Return explainable matches (composite, name and birth date scores).

Non-Responsibilities:
- No database access.
- No feature computation.
- No mutation of persistent state.

Invariant:
This module must be deterministic given the same inputs.
"""

from typing import List, Optional, Sequence

from rostercheck.config import MatchingConfig
from rostercheck.records import IdentityRecord, MatchedPair

from .candidate_selector import select_candidates


def find_best_matches(
    source: Sequence[IdentityRecord],
    target: Sequence[IdentityRecord],
    config: Optional[MatchingConfig] = None,
) -> List[MatchedPair]:
    """
    Greedy maximum-score one-to-one assignment.

    Proposals are consumed best first; a proposal is accepted only when
    neither identity has been assigned yet. Identities that clear the
    threshold against no peer are left out of the result.

    Args:
        source: Declared identities
        target: Authoritative identities
        config: Matching policy (default: MatchingConfig())

    Returns:
        Accepted pairs, best score first
    """
    if not source or not target:
        return []

    assigned_sources = set()
    assigned_targets = set()
    matches: List[MatchedPair] = []

    for proposal in select_candidates(source, target, config):
        if proposal.source.id in assigned_sources or proposal.target.id in assigned_targets:
            continue
        assigned_sources.add(proposal.source.id)
        assigned_targets.add(proposal.target.id)
        matches.append(
            MatchedPair(
                source=proposal.source,
                target=proposal.target,
                score=proposal.score,
                name_score=proposal.name_score,
                dob_score=proposal.dob_score,
            )
        )

    return matches
