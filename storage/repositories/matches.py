"""
Candidate Matches Repository.

Responsibilities:
- Create, look up and delete candidate_matches rows.
- Transaction-safe writes: a batch is committed whole or not at all.
- Cascade deletion to comparison results and summaries.

Non-Responsibilities:
- No scoring.
- No assignment decisions.

Invariant:
Within one (source_file_id, target_file_id) pair, a candidate from either
side is assigned at most once.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import sessionmaker

from rostercheck.database import CandidateMatch, ComparisonResult, ComparisonSummary, session_scope
from rostercheck.logger import get_logger
from rostercheck.records import MatchedPair

logger = get_logger()


class MatchRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save_matches(
        self,
        source_file_id: int,
        target_file_id: int,
        pairs: Sequence[MatchedPair],
    ) -> List[CandidateMatch]:
        """
        Persist matched pairs for a file pair in one transaction.

        Pairs whose declared or authoritative identity is already assigned
        for this file pair are skipped, so re-running the matcher never
        duplicates an assignment.

        Returns:
            The newly created matches, in input order
        """
        if not pairs:
            return []

        with session_scope(self.session_factory, "save_matches") as session:
            existing = (
                session.query(CandidateMatch.source_candidate_id, CandidateMatch.target_candidate_id)
                .filter_by(source_file_id=source_file_id, target_file_id=target_file_id)
                .all()
            )
            used_sources = {row[0] for row in existing}
            used_targets = {row[1] for row in existing}

            created = []
            skipped = 0
            now = datetime.now()
            for pair in pairs:
                if pair.source.id in used_sources or pair.target.id in used_targets:
                    skipped += 1
                    continue
                used_sources.add(pair.source.id)
                used_targets.add(pair.target.id)
                match = CandidateMatch(
                    source_file_id=source_file_id,
                    target_file_id=target_file_id,
                    source_candidate_id=pair.source.id,
                    target_candidate_id=pair.target.id,
                    created_at=now,
                )
                session.add(match)
                created.append(match)

            session.flush()

        if skipped:
            logger.info(
                "Skipped already assigned identities",
                source_file_id=source_file_id,
                target_file_id=target_file_id,
                skipped=skipped,
            )
        return created

    def get(self, match_id: int) -> Optional[CandidateMatch]:
        session = self.session_factory()
        try:
            return session.get(CandidateMatch, match_id)
        finally:
            session.close()

    def list_for_file_pair(self, source_file_id: int, target_file_id: int) -> List[CandidateMatch]:
        """Matches of a file pair in insertion order."""
        session = self.session_factory()
        try:
            return (
                session.query(CandidateMatch)
                .filter_by(source_file_id=source_file_id, target_file_id=target_file_id)
                .order_by(CandidateMatch.match_id)
                .all()
            )
        finally:
            session.close()

    def list_for_candidate(self, candidate_id: int) -> List[CandidateMatch]:
        """Matches of a declared candidate across every target file, latest first."""
        session = self.session_factory()
        try:
            return (
                session.query(CandidateMatch)
                .filter_by(source_candidate_id=candidate_id)
                .order_by(CandidateMatch.created_at.desc(), CandidateMatch.match_id.desc())
                .all()
            )
        finally:
            session.close()

    def list_for_files(self, file_ids: Iterable[int]) -> List[CandidateMatch]:
        """Matches involving any of the files, on either side."""
        file_ids = list(file_ids)
        if not file_ids:
            return []
        session = self.session_factory()
        try:
            return (
                session.query(CandidateMatch)
                .filter(
                    or_(
                        CandidateMatch.source_file_id.in_(file_ids),
                        CandidateMatch.target_file_id.in_(file_ids),
                    )
                )
                .order_by(CandidateMatch.match_id)
                .all()
            )
        finally:
            session.close()

    def delete(self, match_id: int) -> bool:
        """
        Delete a match with its results and summary atomically.

        Returns:
            False if the match does not exist
        """
        with session_scope(self.session_factory, "delete_match") as session:
            session.query(ComparisonSummary).filter_by(match_id=match_id).delete(synchronize_session=False)
            session.query(ComparisonResult).filter_by(match_id=match_id).delete(synchronize_session=False)
            deleted = (
                session.query(CandidateMatch).filter_by(match_id=match_id).delete(synchronize_session=False)
            )
        return deleted > 0

    def delete_for_files(self, file_ids: Iterable[int]) -> int:
        """
        Purge every match involving any of the files, with its comparison data.

        Returns:
            Number of matches deleted
        """
        file_ids = list(file_ids)
        if not file_ids:
            return 0

        with session_scope(self.session_factory, "delete_matches_for_files") as session:
            match_ids = [
                row[0]
                for row in session.query(CandidateMatch.match_id).filter(
                    or_(
                        CandidateMatch.source_file_id.in_(file_ids),
                        CandidateMatch.target_file_id.in_(file_ids),
                    )
                )
            ]
            if not match_ids:
                return 0

            session.query(ComparisonSummary).filter(
                ComparisonSummary.match_id.in_(match_ids)
            ).delete(synchronize_session=False)
            session.query(ComparisonResult).filter(
                ComparisonResult.match_id.in_(match_ids)
            ).delete(synchronize_session=False)
            deleted = session.query(CandidateMatch).filter(
                CandidateMatch.match_id.in_(match_ids)
            ).delete(synchronize_session=False)

        return deleted
