import argparse
import json
from pathlib import Path
from typing import Optional

from . import __version__
from .config import Settings, load_settings
from .database import init_database, get_session_factory
from .logger import get_logger
from .reconcile import ReconciliationService
from .schema import validate_roster
from .sources import JsonRosterSource


def _load_source(path: Optional[str]) -> Optional[JsonRosterSource]:
    if not path:
        return None
    input_path = Path(path)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    try:
        return JsonRosterSource.from_file(input_path)
    except ValueError as e:
        raise SystemExit(str(e))


def build_service(args: argparse.Namespace, settings: Settings) -> ReconciliationService:
    db_path = Path(args.db) if getattr(args, "db", None) else settings.db_path
    init_database(db_path)
    return ReconciliationService(
        get_session_factory(db_path),
        matching=settings.matching,
        verification=settings.verification,
        source=_load_source(getattr(args, "input", None)),
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> None:
    db_path = Path(args.db) if args.db else settings.db_path
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_validate(args: argparse.Namespace, settings: Settings) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    errors = validate_roster(data)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    created = service.generate_matches(
        args.source_file,
        args.target_file,
        service.source.list_identities(args.source_file),
        service.source.list_identities(args.target_file),
    )
    print(f"Created {len(created)} matches")
    for m in created:
        print(f" - match {m.match_id}: {m.source_candidate_id} -> {m.target_candidate_id}")


def cmd_compare(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    match = service.matches.get(args.match_id)
    if match is None:
        raise SystemExit(f"Match not found: {args.match_id}")
    summary = service.compare_and_summarize(
        match.match_id,
        service.source.get_field_values(match.source_file_id, match.source_candidate_id),
        service.source.get_field_values(match.target_file_id, match.target_candidate_id),
        service.source.field_specs(),
    )
    print(f"Match {match.match_id}: {summary.overall_verification_status.value} "
          f"(average similarity {summary.average_similarity:.3f})")


def cmd_process_pair(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    compared = service.process_file_pair(args.source_file, args.target_file)
    print(f"Compared {compared} matches")


def cmd_process_program(args: argparse.Namespace, settings: Settings) -> None:
    from pipelines.backfill.full_rebuild import rebuild_program

    service = build_service(args, settings)
    outcome = rebuild_program(service, args.program)
    _print_json(outcome.to_dict())
    get_logger().log_metrics_summary()
    if not outcome.success:
        raise SystemExit(1)


def cmd_report(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    report = service.get_report(args.match_id)
    if report is None:
        raise SystemExit(f"No report for match {args.match_id}")
    _print_json(report.to_dict())


def cmd_reports(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    reports = service.get_reports_for_file_pair(args.source_file, args.target_file)
    _print_json([r.to_dict() for r in reports])


def cmd_candidate_reports(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    reports = service.get_reports_for_candidate(args.candidate)
    _print_json([r.to_dict() for r in reports])


def cmd_program_reports(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    reports = service.get_reports_for_program(args.program)
    _print_json([r.to_dict() for r in reports])


def cmd_candidate_statuses(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    statuses = service.get_candidate_statuses(args.program)
    _print_json([s.to_dict() for s in statuses])


def cmd_delete(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    if not service.delete_match(args.match_id):
        raise SystemExit(f"Match not found: {args.match_id}")
    print(f"Deleted match {args.match_id}")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="rostercheck", description="Reconcile declared and transcript rosters")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    def add_db(p):
        p.add_argument("--db", help="Path to SQLite database (default: ROSTERCHECK_DB_PATH or data/rostercheck.db)")

    ini = subparsers.add_parser("init-db", help="Create the database tables")
    add_db(ini)
    ini.set_defaults(func=cmd_init_db)

    val = subparsers.add_parser("validate", help="Validate a roster JSON document")
    val.add_argument("--input", required=True, help="Path to roster JSON")
    val.set_defaults(func=cmd_validate)

    mat = subparsers.add_parser("match", help="Match identities of a declared file against a transcript file")
    mat.add_argument("--input", required=True, help="Path to roster JSON")
    mat.add_argument("--source-file", type=int, required=True, help="Declared file id")
    mat.add_argument("--target-file", type=int, required=True, help="Authoritative file id")
    add_db(mat)
    mat.set_defaults(func=cmd_match)

    cmp_ = subparsers.add_parser("compare", help="Compare the fields of one match and store its summary")
    cmp_.add_argument("--input", required=True, help="Path to roster JSON")
    cmp_.add_argument("--match-id", type=int, required=True, help="Match id")
    add_db(cmp_)
    cmp_.set_defaults(func=cmd_compare)

    pp = subparsers.add_parser("process-pair", help="Match and compare one file pair")
    pp.add_argument("--input", required=True, help="Path to roster JSON")
    pp.add_argument("--source-file", type=int, required=True, help="Declared file id")
    pp.add_argument("--target-file", type=int, required=True, help="Authoritative file id")
    add_db(pp)
    pp.set_defaults(func=cmd_process_pair)

    prg = subparsers.add_parser("process-program", help="Rebuild comparisons for every file pair of a program")
    prg.add_argument("--input", required=True, help="Path to roster JSON")
    prg.add_argument("--program", type=int, required=True, help="Program id")
    add_db(prg)
    prg.set_defaults(func=cmd_process_program)

    rep = subparsers.add_parser("report", help="Show the comparison report of a match")
    rep.add_argument("--match-id", type=int, required=True, help="Match id")
    rep.add_argument("--input", help="Optional roster JSON to show names")
    add_db(rep)
    rep.set_defaults(func=cmd_report)

    reps = subparsers.add_parser("reports", help="Show every report of a file pair")
    reps.add_argument("--source-file", type=int, required=True, help="Declared file id")
    reps.add_argument("--target-file", type=int, required=True, help="Authoritative file id")
    reps.add_argument("--input", help="Optional roster JSON to show names")
    add_db(reps)
    reps.set_defaults(func=cmd_reports)

    crep = subparsers.add_parser("candidate-reports", help="Show every report of a declared candidate")
    crep.add_argument("--candidate", type=int, required=True, help="Declared candidate id")
    crep.add_argument("--input", help="Optional roster JSON to show names")
    add_db(crep)
    crep.set_defaults(func=cmd_candidate_reports)

    prep = subparsers.add_parser("program-reports", help="Show every report of a program")
    prep.add_argument("--input", required=True, help="Path to roster JSON")
    prep.add_argument("--program", type=int, required=True, help="Program id")
    add_db(prep)
    prep.set_defaults(func=cmd_program_reports)

    stat = subparsers.add_parser("candidate-statuses", help="Show the latest status of every candidate of a program")
    stat.add_argument("--input", required=True, help="Path to roster JSON")
    stat.add_argument("--program", type=int, required=True, help="Program id")
    add_db(stat)
    stat.set_defaults(func=cmd_candidate_statuses)

    dele = subparsers.add_parser("delete", help="Delete a match with its results and summary")
    dele.add_argument("--match-id", type=int, required=True, help="Match id")
    add_db(dele)
    dele.set_defaults(func=cmd_delete)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        settings = load_settings()
        get_logger().configure(level=settings.log_level, log_dir=settings.log_dir)
        args.func(args, settings)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
