"""
Verification Aggregation.

Responsibilities:
- Reduce the field results of one match into an average similarity and
  an overall status.

Non-Responsibilities:
- No field scoring.
- No persistence (the summary upsert lives in the repository).

Invariant:
The most severe field wins: a single fraud field outweighs any number of
verified ones.
"""

from typing import Iterable

from rostercheck.records import VerificationStatus, VerificationSummary


def aggregate(results: Iterable) -> VerificationSummary:
    """
    Summarize field results.

    Accepts anything with ``similarity_score`` and ``verification_status``
    attributes (FieldComparison or persisted ComparisonResult rows).
    Fields that cannot be verified are left out of the average.
    """
    statuses = []
    scored = []
    for r in results:
        status = VerificationStatus(r.verification_status)
        statuses.append(status)
        if status != VerificationStatus.CANNOT_VERIFY:
            scored.append(r.similarity_score)

    average = sum(scored) / len(scored) if scored else 0.0

    if not statuses:
        overall = VerificationStatus.CANNOT_VERIFY
    elif VerificationStatus.FRAUD in statuses:
        overall = VerificationStatus.FRAUD
    elif VerificationStatus.CANNOT_VERIFY in statuses:
        overall = VerificationStatus.CANNOT_VERIFY
    elif all(s == VerificationStatus.FULLY_VERIFIED for s in statuses):
        overall = VerificationStatus.FULLY_VERIFIED
    else:
        overall = VerificationStatus.PARTIALLY_VERIFIED

    return VerificationSummary(average_similarity=average, overall_status=overall)
