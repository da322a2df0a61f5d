"""
Structured logging for rostercheck.

One process-wide StructuredLogger writes to the console and to a daily
file, appends keyword context to each message as JSON, and keeps counters
for matching, comparison and program batch runs.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"rostercheck_{datetime.now().strftime('%Y%m%d')}.log"
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)  # file keeps everything
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


class StructuredLogger:
    """
    Logger with console/file outputs and reconciliation counters.

    Context passed as keyword arguments is serialized after the message:

        logger.info("Generated candidate matches", source_file_id=1, created=3)
        # Generated candidate matches | Context: {"source_file_id": 1, "created": 3}
    """

    def __init__(
        self,
        name: str = "rostercheck",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Name of the underlying logging.Logger
            level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for the daily log file (default: logs/)
            enable_file: Write to the daily log file
            enable_console: Write to stdout
        """
        self.logger = logging.getLogger(name)
        self.metrics = {
            "matching_runs": 0,
            "pairs_scored": 0,
            "matches_accepted": 0,
            "comparisons": 0,
            "fields_by_status": {},
            "file_pairs_attempted": 0,
            "file_pairs_succeeded": 0,
            "file_pairs_failed": 0,
            "errors_by_type": {},
        }
        self.configure(level, log_dir, enable_file, enable_console)

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """Swap handlers and level in place. Counters are kept."""
        numeric_level = getattr(logging, level.upper())
        self.logger.setLevel(numeric_level)
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if enable_console:
            self.logger.addHandler(_console_handler(numeric_level))
        if enable_file:
            self.logger.addHandler(_file_handler(Path(log_dir) if log_dir else Path("logs")))

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Counters

    def record_matching_run(self, pairs_scored: int, matches_accepted: int):
        """Record one matcher invocation."""
        self.metrics["matching_runs"] += 1
        self.metrics["pairs_scored"] += pairs_scored
        self.metrics["matches_accepted"] += matches_accepted

    def record_field_status(self, status: str):
        by_status = self.metrics["fields_by_status"]
        by_status[status] = by_status.get(status, 0) + 1

    def record_comparison(self):
        self.metrics["comparisons"] += 1

    def record_file_pair_attempt(self):
        self.metrics["file_pairs_attempted"] += 1

    def record_file_pair_success(self):
        self.metrics["file_pairs_succeeded"] += 1

    def record_file_pair_failure(self, error_type: str):
        """Record a failed file pair under its exception type."""
        self.metrics["file_pairs_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Snapshot of the counters, with the file pair success rate once pairs ran."""
        snapshot = dict(self.metrics)
        attempted = snapshot["file_pairs_attempted"]
        if attempted:
            snapshot["file_pair_success_rate"] = round(snapshot["file_pairs_succeeded"] / attempted, 3)
        return snapshot

    def log_metrics_summary(self):
        metrics = self.get_metrics()

        self.info("=== Reconciliation Metrics ===")
        self.info(
            f"Matching runs: {metrics['matching_runs']} "
            f"({metrics['matches_accepted']} matches from {metrics['pairs_scored']} scored pairs)"
        )
        self.info(f"Comparisons: {metrics['comparisons']}")

        if metrics["fields_by_status"]:
            self.info("Fields by status:")
            for status, count in sorted(metrics["fields_by_status"].items()):
                self.info(f"  {status}: {count}")

        if metrics["file_pairs_attempted"]:
            rate = metrics.get("file_pair_success_rate", 0) * 100
            self.info(
                f"File pairs: {metrics['file_pairs_succeeded']}/{metrics['file_pairs_attempted']} "
                f"({rate:.1f}% success)"
            )

        if metrics["errors_by_type"]:
            self.info("Errors by type:")
            for error_type, count in sorted(metrics["errors_by_type"].items()):
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "rostercheck", level: str = "INFO", **kwargs) -> StructuredLogger:
    """
    Return the process-wide logger, creating it on first use.

    Arguments only apply to that first call; use configure() to change
    level or outputs afterwards.
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Drop the process-wide logger so the next get_logger() builds a fresh one."""
    global _global_logger
    _global_logger = None
