"""
Local Search
============
Hill climbing over pairwise staff exchanges between shifts.

Each pass scans every unordered pair of shifts and every pair of staff
placed on them, applies the single best strictly-improving exchange and
starts over. The search stops on a pass without an improving exchange or
at the iteration cap. Cardinalities never change.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from carerota.models.schedule import AssignmentEntry, ConstraintViolation, ShiftAssignmentResult
from carerota.solver.matrix import MAX_SCORE, ConstraintMatrix, score
from carerota.utils.logging_setup import SolverLogger, get_logger, log_function_call

logger = get_logger("carerota.solver.local_search")

DEFAULT_MAX_ITERATIONS = 100

# (delta, shift index i, entry index in i, shift index j, entry index in j)
Move = Tuple[int, int, int, int, int]


@dataclass
class LocalSearchOutcome:
    """Improved assignments and how the search got there."""
    assignments: List[ShiftAssignmentResult] = field(default_factory=list)
    iterations: int = 0
    swaps_applied: int = 0
    initial_penalty: int = 0
    final_penalty: int = 0
    converged: bool = False  # Stopped on a pass without an improving exchange

    @property
    def improvement(self) -> int:
        return self.initial_penalty - self.final_penalty


def total_penalty(assignments: List[ShiftAssignmentResult]) -> int:
    """Sum of ``100 - score`` over every placed entry."""
    return sum(MAX_SCORE - e.score for a in assignments for e in a.entries)


def violated_constraints(assignments: List[ShiftAssignmentResult]) -> List[ConstraintViolation]:
    """Shifts left below their required headcount."""
    return [
        ConstraintViolation(
            constraint="min_staff_required",
            message=f"Shift understaffed: {a.filled_count}/{a.required_staff_count}",
            shift_id=a.shift_id,
        )
        for a in assignments
        if a.is_understaffed
    ]


def _best_move(assignments: List[ShiftAssignmentResult], matrix: ConstraintMatrix) -> Optional[Move]:
    best: Optional[Move] = None
    n = len(assignments)
    for i in range(n):
        shift_i = assignments[i].shift_id
        for j in range(i + 1, n):
            shift_j = assignments[j].shift_id
            for ai, a in enumerate(assignments[i].entries):
                for bj, b in enumerate(assignments[j].entries):
                    a_to_j = score(matrix, a.staff_id, shift_j)
                    b_to_i = score(matrix, b.staff_id, shift_i)
                    # Never move anyone into an excluded slot
                    if a_to_j <= 0 or b_to_i <= 0:
                        continue
                    delta = (a_to_j + b_to_i) - (a.score + b.score)
                    if delta > 0 and (best is None or delta > best[0]):
                        best = (delta, i, ai, j, bj)
    return best


@log_function_call
def improve_assignments(
    assignments: List[ShiftAssignmentResult],
    matrix: ConstraintMatrix,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> LocalSearchOutcome:
    """
    Improve a greedy result by exchanging staff between shifts.

    Args:
        assignments: Greedy result; not mutated
        matrix: Scores from ``build_constraint_matrix``
        max_iterations: Cap on improving passes

    Returns:
        LocalSearchOutcome with copied, possibly improved assignments
    """
    current = [a.copy() for a in assignments]
    initial = total_penalty(current)
    outcome = LocalSearchOutcome(initial_penalty=initial)
    slog = SolverLogger("carerota.solver.local_search")

    slog.step(f"Local search: {len(current)} shifts, initial penalty {initial}")
    slog.enter("passes")
    while outcome.iterations < max_iterations:
        outcome.iterations += 1
        move = _best_move(current, matrix)
        if move is None:
            outcome.converged = True
            break
        delta, i, ai, j, bj = move
        a = current[i].entries[ai]
        b = current[j].entries[bj]
        current[i].entries[ai] = AssignmentEntry(b.staff_id, score(matrix, b.staff_id, current[i].shift_id))
        current[j].entries[bj] = AssignmentEntry(a.staff_id, score(matrix, a.staff_id, current[j].shift_id))
        outcome.swaps_applied += 1
        slog.detail(
            f"pass {outcome.iterations}",
            f"{a.staff_id} <-> {b.staff_id} ({current[i].shift_id}/{current[j].shift_id}) +{delta}",
        )
    slog.exit(f"{outcome.swaps_applied} swap(s) in {outcome.iterations} pass(es)")

    outcome.assignments = current
    outcome.final_penalty = total_penalty(current)
    if not outcome.converged and max_iterations > 0:
        logger.warning(f"Local search stopped at iteration cap ({max_iterations})")
    return outcome
