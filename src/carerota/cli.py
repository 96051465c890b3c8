from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict

from pydantic import ValidationError

from carerota.errors import CareRotaError, status_code_for
from carerota.io.results_export import export_result
from carerota.io.snapshot_loader import load_snapshot
from carerota.models.validated import ValidatedSolverConfig
from carerota.solver.engine import solve
from carerota.solver.validation import ConflictReport, ConflictValidator
from carerota.store.memory import InMemoryRotaStore
from carerota.utils.logging_setup import level_for_verbosity, setup_logging

EXIT_OK = 0
EXIT_CONFLICT = 1
EXIT_ERROR = 2


def _config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    if getattr(args, "max_iterations", None) is not None:
        cfg["max_iterations"] = int(args.max_iterations)
    if getattr(args, "min_rest_minutes", None) is not None:
        cfg["min_rest_minutes"] = int(args.min_rest_minutes)
    if getattr(args, "employment_scoring", False):
        cfg["employment_type_scoring"] = True
    return cfg


def _load(args: argparse.Namespace):
    snapshot = load_snapshot(args.snapshot)
    overrides = _config_overrides(args)
    if overrides:
        snapshot = snapshot.model_copy(update={
            "config": ValidatedSolverConfig.model_validate({**snapshot.config.model_dump(), **overrides}),
        })
    return snapshot


def _print_report(report: ConflictReport, json_out: bool) -> int:
    if json_out:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2, default=str))
    elif report.has_conflict:
        print(f"{len(report.conflicts)} conflict(s):")
        for c in report.conflicts:
            print(f" - [{c.type.value}] {c.message}")
    else:
        print("No conflicts")
    return EXIT_CONFLICT if report.has_conflict else EXIT_OK


def cmd_solve(args: argparse.Namespace) -> int:
    snapshot = _load(args)
    shifts = snapshot.to_shifts()
    config = snapshot.to_config()
    result = solve(
        shifts,
        snapshot.to_staff(),
        snapshot.to_availability(),
        snapshot.to_time_off(),
        snapshot.to_weights(),
        config,
    )
    if args.export:
        export_result(result, args.export, shifts, config.to_dict())

    if args.json_out:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print("Summary:")
        for k, v in result.summary().items():
            print(f" - {k}: {v}")
        for shift_id, staff_ids in result.assignments_by_shift().items():
            print(f"   {shift_id}: {', '.join(staff_ids) or '-'}")
        for v in result.violated_constraints:
            print(f" ! {v.constraint} {v.shift_id}: {v.message}")
    return EXIT_OK


def cmd_check_assignment(args: argparse.Namespace) -> int:
    snapshot = _load(args)
    validator = ConflictValidator(InMemoryRotaStore.from_snapshot(snapshot), snapshot.to_config())
    report = validator.validate_assignment(args.user, args.date, args.start, args.end, args.exclude_shift)
    return _print_report(report, args.json_out)


def cmd_check_swap(args: argparse.Namespace) -> int:
    snapshot = _load(args)
    validator = ConflictValidator(InMemoryRotaStore.from_snapshot(snapshot), snapshot.to_config())
    report = validator.validate_swap(args.requester_shift, args.target_shift, args.requester, args.target_user)
    return _print_report(report, args.json_out)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="carerota", description="Care home rota solver and conflict checks")
    p.add_argument("-v", "--verbose", action="count", default=0)
    p.add_argument("--log-file", default=None, help="Also write logs to this file")
    sub = p.add_subparsers(dest="command", required=True)

    ps = sub.add_parser("solve", help="Assign staff to the shifts of a snapshot")
    ps.add_argument("snapshot", help="JSON snapshot file or directory of CSV tables")
    ps.add_argument("--max-iterations", type=int, default=None, help="Local-search pass cap")
    ps.add_argument("--employment-scoring", action="store_true", help="Adjust scores by weekly-hour bands")
    ps.add_argument("--export", default=None, help="Write results to .json, .csv or .xlsx")
    ps.add_argument("--json", dest="json_out", action="store_true", help="JSON output")
    ps.set_defaults(func=cmd_solve)

    pa = sub.add_parser("check-assignment", help="Check one user against a time window")
    pa.add_argument("snapshot")
    pa.add_argument("--user", required=True)
    pa.add_argument("--date", required=True, help="YYYY-MM-DD")
    pa.add_argument("--start", required=True, help="HH:MM")
    pa.add_argument("--end", required=True, help="HH:MM")
    pa.add_argument("--exclude-shift", default=None)
    pa.add_argument("--min-rest-minutes", type=int, default=None)
    pa.add_argument("--json", dest="json_out", action="store_true")
    pa.set_defaults(func=cmd_check_assignment)

    pw = sub.add_parser("check-swap", help="Check a proposed swap between two shifts")
    pw.add_argument("snapshot")
    pw.add_argument("--requester-shift", required=True)
    pw.add_argument("--target-shift", required=True)
    pw.add_argument("--requester", required=True)
    pw.add_argument("--target-user", required=True)
    pw.add_argument("--json", dest="json_out", action="store_true")
    pw.set_defaults(func=cmd_check_swap)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level = level_for_verbosity(args.verbose)
    setup_logging(level=level, log_file=args.log_file)

    try:
        return args.func(args)
    except CareRotaError as e:
        print(f"error ({status_code_for(e)} {e.kind}): {e}", file=sys.stderr)
        return EXIT_ERROR
    except (ValidationError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
