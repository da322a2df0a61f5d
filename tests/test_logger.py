"""
Tests for logger functionality.
"""

import pytest
from rostercheck.logger import StructuredLogger, get_logger, reset_logger


def _logger(tmp_path, **kwargs):
    return StructuredLogger(name="test", log_dir=tmp_path, enable_console=False, **kwargs)


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = _logger(tmp_path, level="INFO")

        assert logger.logger.name == "test"
        assert logger.metrics["matching_runs"] == 0
        assert logger.metrics["fields_by_status"] == {}

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = _logger(tmp_path)

        # Should not raise exceptions
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context is written as JSON after the message."""
        logger = _logger(tmp_path)

        logger.info("Generated candidate matches", source_file_id=1, created=3)

        content = next(tmp_path.glob("*.log")).read_text()
        assert 'Context: {"source_file_id": 1, "created": 3}' in content

    def test_context_with_non_json_values(self, tmp_path):
        logger = _logger(tmp_path)
        logger.info("Message", path=tmp_path)

        assert str(tmp_path) in next(tmp_path.glob("*.log")).read_text()

    def test_matching_metrics(self, tmp_path):
        logger = _logger(tmp_path)

        logger.record_matching_run(pairs_scored=9, matches_accepted=3)
        logger.record_matching_run(pairs_scored=4, matches_accepted=1)

        metrics = logger.get_metrics()
        assert metrics["matching_runs"] == 2
        assert metrics["pairs_scored"] == 13
        assert metrics["matches_accepted"] == 4

    def test_field_status_metrics(self, tmp_path):
        logger = _logger(tmp_path)

        logger.record_comparison()
        logger.record_field_status("fully_verified")
        logger.record_field_status("fraud")
        logger.record_field_status("fully_verified")

        metrics = logger.get_metrics()
        assert metrics["comparisons"] == 1
        assert metrics["fields_by_status"] == {"fully_verified": 2, "fraud": 1}

    def test_file_pair_success_rate(self, tmp_path):
        """Success rate should be calculated correctly."""
        logger = _logger(tmp_path)

        # 3 attempts, 2 successes = 66.7% success rate
        for _ in range(3):
            logger.record_file_pair_attempt()
        logger.record_file_pair_success()
        logger.record_file_pair_success()
        logger.record_file_pair_failure("RuntimeError")

        metrics = logger.get_metrics()

        assert metrics["file_pairs_failed"] == 1
        assert metrics["errors_by_type"]["RuntimeError"] == 1
        assert metrics["file_pair_success_rate"] == pytest.approx(0.667, rel=0.01)

    def test_no_success_rate_without_attempts(self, tmp_path):
        assert "file_pair_success_rate" not in _logger(tmp_path).get_metrics()

    def test_metrics_summary(self, tmp_path):
        logger = _logger(tmp_path)
        logger.record_file_pair_attempt()
        logger.record_file_pair_failure("ValueError")
        logger.record_field_status("cannot_verify")

        logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Reconciliation Metrics" in content
        assert "cannot_verify: 1" in content
        assert "ValueError: 1" in content

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = _logger(tmp_path)

        logger.info("Test message")

        log_files = list(tmp_path.glob("rostercheck_*.log"))
        assert len(log_files) == 1
        assert "Test message" in log_files[0].read_text()

    def test_configure_keeps_metrics(self, tmp_path):
        logger = _logger(tmp_path)
        logger.record_comparison()

        other_dir = tmp_path / "other"
        logger.configure(level="DEBUG", log_dir=other_dir, enable_console=False)
        logger.debug("After reconfigure")

        assert logger.metrics["comparisons"] == 1
        assert len(logger.logger.handlers) == 1
        assert "After reconfigure" in next(other_dir.glob("*.log")).read_text()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_comparison()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        # Should be different instance with fresh metrics
        assert logger2.metrics["comparisons"] == 0
