"""
Comparison Results and Summaries Repository.

Responsibilities:
- Store the field results of a match (all rows or none).
- Upsert the single summary row of a match.
- Store results and summary of one comparison together.

Non-Responsibilities:
- No scoring.
- No classification.

Invariant:
At most one summary exists per match, and it always describes the
stored results.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, sessionmaker

from rostercheck.database import ComparisonResult, ComparisonSummary, session_scope
from rostercheck.records import FieldComparison, VerificationSummary


class ComparisonRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save_comparison(
        self,
        match_id: int,
        comparisons: Sequence[FieldComparison],
        summary: VerificationSummary,
    ) -> Tuple[List[ComparisonResult], ComparisonSummary]:
        """
        Replace the results of a match and upsert its summary in one transaction.

        If either write fails, the previous results and summary stay as they were.
        """
        with session_scope(self.session_factory, "save_comparison") as session:
            rows = self._replace_results(session, match_id, comparisons)
            row = self._upsert_summary(session, match_id, summary)
        return rows, row

    def replace_results(self, match_id: int, comparisons: Sequence[FieldComparison]) -> List[ComparisonResult]:
        """
        Replace the field results of a match in one transaction.

        Earlier results of the match are removed first so a re-comparison
        never accumulates rows.
        """
        with session_scope(self.session_factory, "save_comparison_results") as session:
            return self._replace_results(session, match_id, comparisons)

    def upsert_summary(self, match_id: int, summary: VerificationSummary) -> ComparisonSummary:
        with session_scope(self.session_factory, "save_comparison_summary") as session:
            return self._upsert_summary(session, match_id, summary)

    def _replace_results(
        self, session: Session, match_id: int, comparisons: Sequence[FieldComparison]
    ) -> List[ComparisonResult]:
        session.query(ComparisonResult).filter_by(match_id=match_id).delete(synchronize_session=False)
        now = datetime.now()
        rows = [
            ComparisonResult(
                match_id=match_id,
                field_name=c.field_name,
                source_value=c.source_value,
                target_value=c.target_value,
                similarity_score=c.similarity_score,
                verification_status=c.verification_status,
                created_at=now,
            )
            for c in comparisons
        ]
        session.add_all(rows)
        session.flush()
        return rows

    def _upsert_summary(self, session: Session, match_id: int, summary: VerificationSummary) -> ComparisonSummary:
        # Check-then-write without row locking: concurrent re-aggregation of
        # the same match is last-write-wins.
        row = session.query(ComparisonSummary).filter_by(match_id=match_id).first()
        if row is None:
            row = ComparisonSummary(match_id=match_id, created_at=datetime.now())
            session.add(row)
        row.average_similarity = summary.average_similarity
        row.overall_verification_status = summary.overall_status
        session.flush()
        return row

    def list_results(self, match_id: int) -> List[ComparisonResult]:
        """Field results of a match ordered by field name."""
        session = self.session_factory()
        try:
            return (
                session.query(ComparisonResult)
                .filter_by(match_id=match_id)
                .order_by(ComparisonResult.field_name, ComparisonResult.result_id)
                .all()
            )
        finally:
            session.close()

    def get_summary(self, match_id: int) -> Optional[ComparisonSummary]:
        session = self.session_factory()
        try:
            return session.query(ComparisonSummary).filter_by(match_id=match_id).first()
        finally:
            session.close()

    def count_summaries(self, match_id: int) -> int:
        session = self.session_factory()
        try:
            return session.query(ComparisonSummary).filter_by(match_id=match_id).count()
        finally:
            session.close()

    def count_results(self, match_id: int) -> int:
        session = self.session_factory()
        try:
            return session.query(ComparisonResult).filter_by(match_id=match_id).count()
        finally:
            session.close()
