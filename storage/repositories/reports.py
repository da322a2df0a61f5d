"""
Comparison Report Assembly.

Responsibilities:
- Join a match, its summary and its ordered field results into a
  ComparisonReport.

Non-Responsibilities:
- No writes.
- No rendering or formatting.

Invariant:
Reports are derived on read and never persisted. A match that was never
compared (no summary) has no report.
"""

from datetime import date
from typing import Callable, Iterable, List, Optional, Tuple

from rostercheck.database import CandidateMatch
from rostercheck.logger import get_logger
from rostercheck.records import ComparisonReport, FieldComparison, IdentityRecord

from .comparisons import ComparisonRepository
from .matches import MatchRepository

logger = get_logger()

IdentityLookup = Callable[[int, int], Optional[IdentityRecord]]


class ReportBuilder:
    def __init__(
        self,
        matches: MatchRepository,
        comparisons: ComparisonRepository,
        identity_lookup: Optional[IdentityLookup] = None,
    ):
        """
        Args:
            matches: Match repository
            comparisons: Comparison repository
            identity_lookup: Optional (file_id, candidate_id) -> IdentityRecord
                used to show names and birth dates in reports
        """
        self.matches = matches
        self.comparisons = comparisons
        self.identity_lookup = identity_lookup

    def build(self, match_id: int) -> Optional[ComparisonReport]:
        match = self.matches.get(match_id)
        if match is None:
            return None
        return self._build_for_match(match)

    def build_for_file_pair(self, source_file_id: int, target_file_id: int) -> List[ComparisonReport]:
        return self._build_all(self.matches.list_for_file_pair(source_file_id, target_file_id))

    def build_for_candidate(self, candidate_id: int) -> List[ComparisonReport]:
        return self._build_all(self.matches.list_for_candidate(candidate_id))

    def build_for_program(self, file_pairs: Iterable[Tuple[int, int]]) -> List[ComparisonReport]:
        """
        Reports of every file pair, in the given pair order.

        A pair whose reports cannot be built is logged and skipped; the
        other pairs are still returned.
        """
        reports = []
        for source_file_id, target_file_id in file_pairs:
            try:
                reports.extend(self.build_for_file_pair(source_file_id, target_file_id))
            except Exception as e:
                logger.error(
                    "Could not build reports for file pair",
                    source_file_id=source_file_id,
                    target_file_id=target_file_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return reports

    def _build_all(self, matches: List[CandidateMatch]) -> List[ComparisonReport]:
        reports = []
        for match in matches:
            report = self._build_for_match(match)
            if report is not None:
                reports.append(report)
        return reports

    def _build_for_match(self, match: CandidateMatch) -> Optional[ComparisonReport]:
        summary = self.comparisons.get_summary(match.match_id)
        if summary is None:
            return None

        fields = [
            FieldComparison(
                field_name=row.field_name,
                source_value=row.source_value,
                target_value=row.target_value,
                similarity_score=row.similarity_score,
                verification_status=row.verification_status,
            )
            for row in self.comparisons.list_results(match.match_id)
        ]

        full_name, date_of_birth = self._identity_summary(match)
        return ComparisonReport(
            match_id=match.match_id,
            source_file_id=match.source_file_id,
            target_file_id=match.target_file_id,
            source_candidate_id=match.source_candidate_id,
            target_candidate_id=match.target_candidate_id,
            created_at=match.created_at,
            average_similarity=summary.average_similarity,
            overall_verification_status=summary.overall_verification_status,
            fields=fields,
            full_name=full_name,
            date_of_birth=date_of_birth,
        )

    def _identity_summary(self, match: CandidateMatch):
        if self.identity_lookup is None:
            return None, None

        # Prefer the declared record, fall back to the transcript
        records = [
            self.identity_lookup(match.source_file_id, match.source_candidate_id),
            self.identity_lookup(match.target_file_id, match.target_candidate_id),
        ]
        full_name = next((r.full_name for r in records if r is not None and r.full_name), None)
        dob = next((r.date_of_birth for r in records if r is not None and r.date_of_birth), None)
        if isinstance(dob, date):
            dob = dob.isoformat()
        return full_name, dob
