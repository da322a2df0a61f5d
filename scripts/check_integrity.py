#!/usr/bin/env python3
"""
Check a reconciliation database for orphaned or duplicated rows.

Usage:
    python scripts/check_integrity.py --db data/rostercheck.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select

from rostercheck.database import CandidateMatch, ComparisonResult, ComparisonSummary, get_session


def find_problems(session) -> dict:
    """Collect integrity problems by kind."""
    match_ids = select(CandidateMatch.match_id)

    orphan_results = (
        session.query(ComparisonResult.result_id)
        .filter(~ComparisonResult.match_id.in_(match_ids))
        .all()
    )
    orphan_summaries = (
        session.query(ComparisonSummary.summary_id)
        .filter(~ComparisonSummary.match_id.in_(match_ids))
        .all()
    )
    duplicate_summaries = (
        session.query(ComparisonSummary.match_id)
        .group_by(ComparisonSummary.match_id)
        .having(func.count() > 1)
        .all()
    )

    duplicate_assignments = []
    for column in (CandidateMatch.source_candidate_id, CandidateMatch.target_candidate_id):
        duplicate_assignments.extend(
            session.query(CandidateMatch.source_file_id, CandidateMatch.target_file_id, column)
            .group_by(CandidateMatch.source_file_id, CandidateMatch.target_file_id, column)
            .having(func.count() > 1)
            .all()
        )

    return {
        "orphan_results": [r[0] for r in orphan_results],
        "orphan_summaries": [r[0] for r in orphan_summaries],
        "duplicate_summaries": [r[0] for r in duplicate_summaries],
        "duplicate_assignments": [tuple(r) for r in duplicate_assignments],
    }


def check(db_path: Path) -> bool:
    """
    Report integrity problems.

    Returns True if the database is clean, False otherwise.
    """
    print(f"Checking database at {db_path}...")
    session = get_session(db_path)
    try:
        print(f"  Matches:   {session.query(CandidateMatch).count()}")
        print(f"  Results:   {session.query(ComparisonResult).count()}")
        print(f"  Summaries: {session.query(ComparisonSummary).count()}")
        problems = find_problems(session)
    finally:
        session.close()

    clean = True
    for kind, items in problems.items():
        if not items:
            continue
        clean = False
        print(f"\n❌ {kind.replace('_', ' ').upper()}: {len(items)}")
        for item in items[:5]:
            print(f"   - {item}")
        if len(items) > 5:
            print(f"   ... and {len(items) - 5} more")

    if clean:
        print("\n✅ No orphaned or duplicated rows")
    return clean


def main():
    parser = argparse.ArgumentParser(description="Check reconciliation database integrity")
    parser.add_argument("--db", type=Path, default=Path("data/rostercheck.db"),
                       help="Path to SQLite database file")

    args = parser.parse_args()

    if not args.db.exists():
        print(f"❌ Database file not found: {args.db}")
        sys.exit(1)

    sys.exit(0 if check(args.db) else 1)


if __name__ == "__main__":
    main()
