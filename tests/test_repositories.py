"""
Tests for the match, comparison and report repositories.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from rostercheck.database import CandidateMatch, ComparisonResult, ComparisonSummary
from rostercheck.records import (
    FieldComparison,
    IdentityRecord,
    MatchedPair,
    VerificationStatus,
    VerificationSummary,
)
from storage.repositories import ComparisonRepository, MatchRepository, ReportBuilder


def _pair(source_id, target_id, score=1.0):
    return MatchedPair(
        source=IdentityRecord(source_id, "Jean", "Dupont"),
        target=IdentityRecord(target_id, "Jean", "Dupont"),
        score=score,
        name_score=score,
    )


def _comparison(name, score=1.0, status=VerificationStatus.FULLY_VERIFIED):
    return FieldComparison(name, "12", "12", score, status)


@pytest.fixture
def matches(session_factory):
    return MatchRepository(session_factory)


@pytest.fixture
def comparisons(session_factory):
    return ComparisonRepository(session_factory)


class TestMatchRepository:
    """Test candidate match persistence."""

    def test_save_and_list_in_insertion_order(self, matches):
        created = matches.save_matches(1, 2, [_pair(3, 30), _pair(1, 10), _pair(2, 20)])

        assert len(created) == 3
        assert all(m.match_id is not None for m in created)

        stored = matches.list_for_file_pair(1, 2)
        assert [(m.source_candidate_id, m.target_candidate_id) for m in stored] == [
            (3, 30), (1, 10), (2, 20)
        ]

    def test_empty_batch(self, matches):
        assert matches.save_matches(1, 2, []) == []
        assert matches.list_for_file_pair(1, 2) == []

    def test_rerun_skips_assigned_identities(self, matches):
        matches.save_matches(1, 2, [_pair(1, 10)])

        created = matches.save_matches(1, 2, [_pair(1, 10), _pair(1, 11), _pair(2, 10), _pair(2, 20)])

        assert [(m.source_candidate_id, m.target_candidate_id) for m in created] == [(2, 20)]
        assert len(matches.list_for_file_pair(1, 2)) == 2

    def test_duplicates_within_batch_skipped(self, matches):
        created = matches.save_matches(1, 2, [_pair(1, 10), _pair(1, 11)])
        assert len(created) == 1

    def test_file_pairs_are_independent(self, matches):
        matches.save_matches(1, 2, [_pair(1, 10)])
        matches.save_matches(1, 3, [_pair(1, 10)])

        assert len(matches.list_for_file_pair(1, 2)) == 1
        assert len(matches.list_for_file_pair(1, 3)) == 1
        assert len(matches.list_for_candidate(1)) == 2

    def test_batch_is_atomic(self, matches, session_factory):
        """A failure while persisting leaves no partial batch behind."""
        with pytest.raises(IntegrityError):
            matches.save_matches(1, 2, [_pair(1, 10), _pair(2, None)])

        session = session_factory()
        assert session.query(CandidateMatch).count() == 0
        session.close()

    def test_get_missing_returns_none(self, matches):
        assert matches.get(12345) is None

    def test_list_for_candidate_latest_first(self, matches):
        first = matches.save_matches(1, 2, [_pair(1, 10)])[0]
        second = matches.save_matches(1, 3, [_pair(1, 30)])[0]

        listed = matches.list_for_candidate(1)

        assert [m.match_id for m in listed] == [second.match_id, first.match_id]

    def test_list_for_files_either_side(self, matches):
        matches.save_matches(1, 2, [_pair(1, 10)])
        matches.save_matches(5, 6, [_pair(1, 10)])

        assert len(matches.list_for_files([2])) == 1
        assert len(matches.list_for_files([1, 6])) == 2
        assert matches.list_for_files([]) == []

    def test_delete_cascades(self, matches, comparisons, session_factory):
        match = matches.save_matches(1, 2, [_pair(1, 10)])[0]
        comparisons.replace_results(match.match_id, [_comparison("maths"), _comparison("physics")])
        comparisons.upsert_summary(match.match_id, VerificationSummary(1.0, VerificationStatus.FULLY_VERIFIED))

        assert matches.delete(match.match_id) is True

        session = session_factory()
        assert session.query(CandidateMatch).count() == 0
        assert session.query(ComparisonResult).count() == 0
        assert session.query(ComparisonSummary).count() == 0
        session.close()

    def test_delete_missing_returns_false(self, matches):
        assert matches.delete(999) is False

    def test_delete_for_files(self, matches, comparisons):
        kept = matches.save_matches(5, 6, [_pair(1, 10)])[0]
        purged = matches.save_matches(1, 2, [_pair(1, 10), _pair(2, 20)])
        comparisons.replace_results(purged[0].match_id, [_comparison("maths")])

        assert matches.delete_for_files([1, 2]) == 2
        assert matches.list_for_file_pair(1, 2) == []
        assert comparisons.count_results(purged[0].match_id) == 0
        assert matches.get(kept.match_id) is not None

    def test_delete_for_files_nothing_to_purge(self, matches):
        assert matches.delete_for_files([1]) == 0
        assert matches.delete_for_files([]) == 0


class TestComparisonRepository:
    """Test field results and summary persistence."""

    @pytest.fixture
    def match_id(self, matches):
        return matches.save_matches(1, 2, [_pair(1, 10)])[0].match_id

    def test_results_ordered_by_field_name(self, comparisons, match_id):
        comparisons.replace_results(match_id, [_comparison("physics"), _comparison("english"), _comparison("maths")])

        rows = comparisons.list_results(match_id)

        assert [r.field_name for r in rows] == ["english", "maths", "physics"]

    def test_replace_does_not_accumulate(self, comparisons, match_id):
        comparisons.replace_results(match_id, [_comparison("maths"), _comparison("physics")])
        comparisons.replace_results(match_id, [_comparison("maths", 0.5, VerificationStatus.FRAUD)])

        rows = comparisons.list_results(match_id)
        assert len(rows) == 1
        assert rows[0].verification_status is VerificationStatus.FRAUD

    def test_upsert_keeps_single_summary(self, comparisons, match_id):
        comparisons.upsert_summary(match_id, VerificationSummary(1.0, VerificationStatus.FULLY_VERIFIED))
        comparisons.upsert_summary(match_id, VerificationSummary(0.4, VerificationStatus.FRAUD))

        assert comparisons.count_summaries(match_id) == 1
        summary = comparisons.get_summary(match_id)
        assert summary.average_similarity == pytest.approx(0.4)
        assert summary.overall_verification_status is VerificationStatus.FRAUD

    def test_get_summary_missing(self, comparisons, match_id):
        assert comparisons.get_summary(match_id) is None


class TestReportBuilder:
    """Test report assembly."""

    def test_report_requires_summary(self, matches, comparisons):
        match = matches.save_matches(1, 2, [_pair(1, 10)])[0]
        builder = ReportBuilder(matches, comparisons)

        assert builder.build(match.match_id) is None
        assert builder.build_for_file_pair(1, 2) == []

    def test_report_contents(self, matches, comparisons):
        match = matches.save_matches(1, 2, [_pair(1, 10)])[0]
        comparisons.replace_results(match.match_id, [_comparison("physics"), _comparison("maths", 0.5, VerificationStatus.FRAUD)])
        comparisons.upsert_summary(match.match_id, VerificationSummary(0.75, VerificationStatus.FRAUD))

        report = ReportBuilder(matches, comparisons).build(match.match_id)

        assert report.match_id == match.match_id
        assert report.source_candidate_id == 1
        assert report.target_candidate_id == 10
        assert report.overall_verification_status is VerificationStatus.FRAUD
        assert [f.field_name for f in report.fields] == ["maths", "physics"]
        assert report.full_name is None

    def test_identity_lookup_prefers_declared(self, matches, comparisons):
        match = matches.save_matches(1, 2, [_pair(1, 10)])[0]
        comparisons.upsert_summary(match.match_id, VerificationSummary(1.0, VerificationStatus.FULLY_VERIFIED))
        people = {
            (1, 1): IdentityRecord(1, "Jean", "Dupont", None),
            (2, 10): IdentityRecord(10, "Jean", "Dupond", "1990-05-15"),
        }

        builder = ReportBuilder(matches, comparisons, identity_lookup=lambda f, c: people.get((f, c)))
        report = builder.build(match.match_id)

        assert report.full_name == "Jean Dupont"
        assert report.date_of_birth == "1990-05-15"

    def test_missing_match(self, matches, comparisons):
        assert ReportBuilder(matches, comparisons).build(42) is None
