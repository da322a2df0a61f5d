"""
Reconciliation service.

Wires the matcher, the field comparator and the aggregator to the
repositories. Every operation runs synchronously inside the caller's
request; multi-row writes each use their own transaction.
"""

from datetime import date
from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy.orm import sessionmaker

from pipelines.entity_resolution.resolver import find_best_matches
from pipelines.verification.aggregator import aggregate
from pipelines.verification.field_comparator import compare_fields
from storage.repositories import ComparisonRepository, MatchRepository, ReportBuilder

from .config import MatchingConfig, VerificationConfig
from .database import CandidateMatch, ComparisonSummary
from .logger import get_logger
from .records import CandidateStatus, ComparisonReport, FieldSpec, IdentityRecord
from .sources import RosterSource

logger = get_logger()


class ReconciliationService:
    def __init__(
        self,
        session_factory: sessionmaker,
        matching: Optional[MatchingConfig] = None,
        verification: Optional[VerificationConfig] = None,
        source: Optional[RosterSource] = None,
    ):
        """
        Args:
            session_factory: SQLAlchemy session factory for the store
            matching: Identity matching policy
            verification: Field classification policy
            source: Roster source used by process_file_pair and to put
                names in reports (optional)
        """
        self.matching = matching or MatchingConfig()
        self.verification = verification or VerificationConfig()
        self.source = source
        self.matches = MatchRepository(session_factory)
        self.comparisons = ComparisonRepository(session_factory)
        self.reports = ReportBuilder(
            self.matches,
            self.comparisons,
            identity_lookup=source.get_identity if source is not None else None,
        )

    def generate_matches(
        self,
        source_file_id: int,
        target_file_id: int,
        source_identities: Sequence[IdentityRecord],
        target_identities: Sequence[IdentityRecord],
    ) -> List[CandidateMatch]:
        """
        Match declared identities to authoritative identities and persist them.

        Returns:
            Newly created matches (identities already assigned for this
            file pair are not matched again)
        """
        pairs = find_best_matches(source_identities, target_identities, self.matching)
        logger.record_matching_run(
            pairs_scored=len(source_identities) * len(target_identities),
            matches_accepted=len(pairs),
        )
        created = self.matches.save_matches(source_file_id, target_file_id, pairs)
        logger.info(
            "Generated candidate matches",
            source_file_id=source_file_id,
            target_file_id=target_file_id,
            declared=len(source_identities),
            authoritative=len(target_identities),
            created=len(created),
        )
        return created

    def compare_and_summarize(
        self,
        match_id: int,
        declared_fields: Mapping[str, Any],
        authoritative_fields: Mapping[str, Any],
        field_specs: Optional[Sequence[FieldSpec]] = None,
    ) -> Optional[ComparisonSummary]:
        """
        Compare the fields of a match, store the results and upsert its summary.

        Returns:
            The stored summary, or None if the match does not exist
        """
        if self.matches.get(match_id) is None:
            logger.warning("Match not found for comparison", match_id=match_id)
            return None

        comparisons = compare_fields(declared_fields, authoritative_fields, field_specs, self.verification)
        summary = aggregate(comparisons)
        _, row = self.comparisons.save_comparison(match_id, comparisons, summary)

        logger.record_comparison()
        for c in comparisons:
            logger.record_field_status(c.verification_status.value)
        logger.debug(
            "Compared match",
            match_id=match_id,
            fields=len(comparisons),
            average_similarity=round(summary.average_similarity, 4),
            status=summary.overall_status.value,
        )
        return row

    def process_file_pair(self, source_file_id: int, target_file_id: int) -> int:
        """
        Match and compare one file pair using the attached roster source.

        Existing matches of the pair are reused; otherwise they are generated.

        Returns:
            Number of matches compared
        """
        if self.source is None:
            raise ValueError("process_file_pair needs a roster source")

        matches = self.matches.list_for_file_pair(source_file_id, target_file_id)
        if not matches:
            matches = self.generate_matches(
                source_file_id,
                target_file_id,
                self.source.list_identities(source_file_id),
                self.source.list_identities(target_file_id),
            )

        field_specs = self.source.field_specs()
        for match in matches:
            self.compare_and_summarize(
                match.match_id,
                self.source.get_field_values(source_file_id, match.source_candidate_id),
                self.source.get_field_values(target_file_id, match.target_candidate_id),
                field_specs,
            )
        return len(matches)

    def get_matches_for_file_pair(self, source_file_id: int, target_file_id: int) -> List[CandidateMatch]:
        return self.matches.list_for_file_pair(source_file_id, target_file_id)

    def get_report(self, match_id: int) -> Optional[ComparisonReport]:
        return self.reports.build(match_id)

    def get_reports_for_file_pair(self, source_file_id: int, target_file_id: int) -> List[ComparisonReport]:
        return self.reports.build_for_file_pair(source_file_id, target_file_id)

    def get_reports_for_candidate(self, candidate_id: int) -> List[ComparisonReport]:
        return self.reports.build_for_candidate(candidate_id)

    def get_reports_for_program(self, program_id: int) -> List[ComparisonReport]:
        """
        Reports of every file pair of a program.

        A pair whose reports cannot be read is logged and left out.
        """
        if self.source is None:
            raise ValueError("get_reports_for_program needs a roster source")

        pairs = self.source.list_file_pairs(program_id)
        if not pairs:
            logger.warning("No file pairs for program", program_id=program_id)
            return []
        return self.reports.build_for_program(pairs)

    def get_candidate_statuses(self, program_id: int) -> List[CandidateStatus]:
        """
        Latest verdict of every declared candidate of a program.

        A candidate with no report against any transcript of the program
        stays cannot_verify.
        """
        if self.source is None:
            raise ValueError("get_candidate_statuses needs a roster source")

        pairs = set(self.source.list_file_pairs(program_id))
        statuses = []
        for source_file_id in sorted({s for s, _ in pairs}):
            for identity in self.source.list_identities(source_file_id):
                dob = identity.date_of_birth
                status = CandidateStatus(
                    candidate_id=identity.id,
                    source_file_id=source_file_id,
                    full_name=identity.full_name or None,
                    date_of_birth=dob.isoformat() if isinstance(dob, date) else dob,
                )
                # Reports come latest first
                latest = next(
                    (
                        r
                        for r in self.reports.build_for_candidate(identity.id)
                        if (r.source_file_id, r.target_file_id) in pairs
                    ),
                    None,
                )
                if latest is not None:
                    status.verification_status = latest.overall_verification_status
                    status.match_id = latest.match_id
                statuses.append(status)
        return statuses

    def delete_match(self, match_id: int) -> bool:
        deleted = self.matches.delete(match_id)
        if deleted:
            logger.info("Deleted match", match_id=match_id)
        else:
            logger.debug("Match to delete not found", match_id=match_id)
        return deleted
