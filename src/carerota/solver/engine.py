"""Solve façade: matrix, greedy pass, local search and post-solve checks."""
import time
from typing import Dict, Iterable, List, Optional, Set

from carerota.models.availability import AvailabilityRecord
from carerota.models.constraints import (
    ConstraintContext,
    ConstraintWeightSet,
    SolverConfig,
    default_constraint_weights,
)
from carerota.models.schedule import ConstraintViolation, ShiftAssignmentResult, SolveResult
from carerota.models.shift import Shift
from carerota.models.staff import StaffMember
from carerota.models.timeoff import TimeOffRequest
from carerota.solver.greedy import greedy_assign
from carerota.solver.hours import add_result_hours, employment_distribution, staff_hours
from carerota.solver.local_search import improve_assignments, total_penalty, violated_constraints
from carerota.solver.matrix import build_constraint_matrix
from carerota.solver.validation import check_window
from carerota.utils.logging_setup import SolverLogger, get_logger

logger = get_logger("carerota.solver.engine")


def solve_context(shifts: List[Shift]) -> ConstraintContext:
    """Scope of a solve, derived from the shifts it covers."""
    homes = tuple(sorted({s.home_id for s in shifts}))
    services = {s.service_id for s in shifts}
    return ConstraintContext(
        home_ids=homes,
        service_id=next(iter(services)) if len(services) == 1 else None,
    )


def sanity_warnings(
    results: List[ShiftAssignmentResult],
    shifts: List[Shift],
    time_off: List[TimeOffRequest],
    config: SolverConfig,
) -> List[ConstraintViolation]:
    """Re-check every placement with the conflict rules against the snapshot."""
    by_id = {s.id: s for s in shifts}
    held: Dict[str, List[Shift]] = {}
    for s in shifts:
        if s.is_active:
            for a in s.assigned_staff:
                held.setdefault(a.user_id, []).append(s)
    for r in results:
        for e in r.entries:
            held.setdefault(e.staff_id, []).append(by_id[r.shift_id])

    warnings = []
    for r in results:
        shift = by_id[r.shift_id]
        for e in r.entries:
            others = [s for s in held.get(e.staff_id, []) if s.id != shift.id]
            for c in check_window(shift.window, others, time_off, e.staff_id, config):
                warnings.append(ConstraintViolation(
                    constraint=c.type.value,
                    message=c.message,
                    shift_id=shift.id,
                    staff_id=e.staff_id,
                    severity="warning",
                ))
    return warnings


def solve(
    shifts: Iterable[Shift],
    staff: Iterable[StaffMember],
    availability: Iterable[AvailabilityRecord],
    time_off: Iterable[TimeOffRequest],
    weights: Optional[ConstraintWeightSet] = None,
    config: Optional[SolverConfig] = None,
) -> SolveResult:
    """
    Assign staff to the shifts of one window.

    Args:
        shifts: Shifts of the window, existing assignments included
        staff: Roster, in tie-break order
        availability: Availability records for the window
        time_off: Time-off requests; only approved ones exclude
        weights: Active constraint weights (defaults if None)
        config: Solver configuration (defaults if None)

    Returns:
        SolveResult with the final placements, the total penalty and the
        shifts left understaffed
    """
    config = config or SolverConfig()
    start = time.time()
    shifts = list(shifts)
    staff = list(staff)
    availability = list(availability)
    time_off = list(time_off)

    slog = SolverLogger("carerota.solver.engine")
    active_shifts = [s for s in shifts if s.is_active]
    weights = (weights if weights is not None else default_constraint_weights())
    weights = weights.for_context(solve_context(active_shifts))

    slog.phase(f"Solve: {len(active_shifts)} shifts, {len(staff)} staff")
    if not active_shifts:
        logger.warning("No active shifts to staff - returning empty result")
        return SolveResult(solve_time_seconds=time.time() - start)

    slog.step(f"Building constraint matrix ({len(weights)} active rules)")
    matrix = build_constraint_matrix(shifts, staff, availability, time_off, weights, config)

    # Staff already on a shift of the snapshot are not placed again
    used_staff: Set[str] = {a.user_id for s in active_shifts for a in s.assigned_staff}
    slog.step(f"Greedy pass ({len(used_staff)} staff already assigned)")
    greedy = greedy_assign(active_shifts, staff, matrix, used_staff)
    greedy_penalty = total_penalty(greedy)
    slog.detail("greedy_penalty", greedy_penalty)

    outcome = improve_assignments(greedy, matrix, config.max_iterations)

    hours = add_result_hours(staff_hours(shifts, staff), outcome.assignments, {s.id: s for s in shifts})
    result = SolveResult(
        assignments=outcome.assignments,
        total_penalty=outcome.final_penalty,
        violated_constraints=violated_constraints(outcome.assignments),
        warnings=sanity_warnings(outcome.assignments, shifts, time_off, config),
        iterations=outcome.iterations,
        greedy_penalty=greedy_penalty,
        employment_distribution=employment_distribution(hours, staff),
    )
    result.solve_time_seconds = time.time() - start

    slog.step(
        f"Done: {result.assigned_count} placement(s), penalty {result.total_penalty} "
        f"(greedy {greedy_penalty}), {len(result.violated_constraints)} understaffed, {slog.elapsed():.3f}s"
    )
    for w in result.warnings:
        logger.warning(f"Post-solve check: {w.staff_id} on {w.shift_id}: {w.message}")
    return result
