"""
Full Program Rebuild Pipeline.

Responsibilities:
- Recompute matches, field results and summaries for every declared x
  authoritative file pair of a program.
- Isolate failures per file pair and report each outcome.

Non-Responsibilities:
- No file parsing.
- No scoring logic.

Invariant:
A full rebuild must be idempotent and reproducible: existing comparison
data of the program is purged before the pairs are processed again.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from rostercheck.logger import get_logger
from rostercheck.reconcile import ReconciliationService

logger = get_logger()


@dataclass
class FilePairResult:
    source_file_id: int
    target_file_id: int
    success: bool
    matches: int = 0
    error: Optional[str] = None


@dataclass
class ProgramRunResult:
    program_id: int
    success: bool
    message: str
    deleted_matches: int = 0
    results: List[FilePairResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "program_id": self.program_id,
            "success": self.success,
            "message": self.message,
            "deleted_matches": self.deleted_matches,
            "results": [vars(r) for r in self.results],
        }


def rebuild_program(service: ReconciliationService, program_id: int) -> ProgramRunResult:
    """
    Rebuild all comparison data of a program.

    One file pair failing is logged and recorded in its FilePairResult;
    the remaining pairs are still processed. The run only fails when the
    program has no file pairs at all.

    Args:
        service: Reconciliation service with a roster source attached
        program_id: Program whose files are compared

    Returns:
        ProgramRunResult with one entry per file pair
    """
    if service.source is None:
        raise ValueError("rebuild_program needs a service with a roster source")

    pairs = service.source.list_file_pairs(program_id)
    if not pairs:
        logger.warning("No file pairs to process", program_id=program_id)
        return ProgramRunResult(
            program_id=program_id,
            success=False,
            message=f"No declared/authoritative file pairs found for program {program_id}",
        )

    file_ids = sorted({fid for pair in pairs for fid in pair})
    deleted = service.matches.delete_for_files(file_ids)
    logger.info("Purged previous comparison data", program_id=program_id, deleted_matches=deleted)

    results = []
    for source_file_id, target_file_id in pairs:
        logger.record_file_pair_attempt()
        try:
            compared = service.process_file_pair(source_file_id, target_file_id)
        except Exception as e:
            logger.record_file_pair_failure(type(e).__name__)
            logger.error(
                "File pair failed",
                program_id=program_id,
                source_file_id=source_file_id,
                target_file_id=target_file_id,
                error=str(e),
            )
            results.append(FilePairResult(source_file_id, target_file_id, success=False, error=str(e)))
            continue

        logger.record_file_pair_success()
        results.append(FilePairResult(source_file_id, target_file_id, success=True, matches=compared))

    succeeded = sum(1 for r in results if r.success)
    return ProgramRunResult(
        program_id=program_id,
        success=True,
        message=(
            f"Processed {len(results)} file pairs for program {program_id} "
            f"({succeeded} succeeded). Previously deleted {deleted} matches."
        ),
        deleted_matches=deleted,
        results=results,
    )
