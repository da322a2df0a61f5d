"""
Tests for the program rebuild pipeline.
"""

import pytest

from pipelines.backfill.full_rebuild import rebuild_program
from rostercheck.records import VerificationStatus


class TestRebuildProgram:
    """Test batch processing of a program."""

    def test_requires_source(self, service):
        with pytest.raises(ValueError):
            rebuild_program(service, 7)

    def test_processes_every_file_pair(self, sourced_service):
        outcome = rebuild_program(sourced_service, 7)

        assert outcome.success is True
        assert [(r.source_file_id, r.target_file_id) for r in outcome.results] == [(1, 2), (1, 3)]
        assert all(r.success for r in outcome.results)
        assert [r.matches for r in outcome.results] == [2, 1]
        assert outcome.deleted_matches == 0

    def test_program_without_pairs_fails(self, sourced_service):
        """Program 8 has a transcript file but no declared file."""
        outcome = rebuild_program(sourced_service, 8)

        assert outcome.success is False
        assert outcome.results == []
        assert "program 8" in outcome.message

    def test_unknown_program_fails(self, sourced_service):
        assert rebuild_program(sourced_service, 999).success is False

    def test_rerun_is_idempotent(self, sourced_service):
        rebuild_program(sourced_service, 7)
        first = [r.to_dict() for r in sourced_service.get_reports_for_file_pair(1, 2)]

        outcome = rebuild_program(sourced_service, 7)
        second = [r.to_dict() for r in sourced_service.get_reports_for_file_pair(1, 2)]

        assert outcome.deleted_matches == 3
        assert len(second) == len(first)
        for a, b in zip(first, second):
            assert a["candidate"] == b["candidate"]
            assert a["overall_verification_status"] == b["overall_verification_status"]
            assert a["fields"] == b["fields"]

    def test_failing_pair_does_not_stop_others(self, sourced_service, monkeypatch):
        original = sourced_service.process_file_pair

        def flaky(source_file_id, target_file_id):
            if target_file_id == 2:
                raise RuntimeError("transcript unreadable")
            return original(source_file_id, target_file_id)

        monkeypatch.setattr(sourced_service, "process_file_pair", flaky)

        outcome = rebuild_program(sourced_service, 7)

        assert outcome.success is True
        failed, succeeded = outcome.results
        assert failed.success is False
        assert failed.error == "transcript unreadable"
        assert succeeded.success is True
        reports = sourced_service.get_reports_for_file_pair(1, 3)
        assert reports[0].overall_verification_status is VerificationStatus.CANNOT_VERIFY

    def test_to_dict(self, sourced_service):
        data = rebuild_program(sourced_service, 7).to_dict()

        assert data["program_id"] == 7
        assert data["success"] is True
        assert data["results"][0] == {
            "source_file_id": 1,
            "target_file_id": 2,
            "success": True,
            "matches": 2,
            "error": None,
        }
