"""Greedy assignment pass over the constraint matrix."""
from typing import Iterable, List, Optional, Set

from carerota.models.schedule import AssignmentEntry, ShiftAssignmentResult
from carerota.models.shift import Shift, open_slots
from carerota.models.staff import StaffMember
from carerota.solver.matrix import ConstraintMatrix, score
from carerota.utils.logging_setup import get_logger, log_constraint, log_function_call

logger = get_logger("carerota.solver.greedy")


@log_function_call
def greedy_assign(
    shifts: Iterable[Shift],
    staff: Iterable[StaffMember],
    matrix: ConstraintMatrix,
    used_staff: Optional[Set[str]] = None,
) -> List[ShiftAssignmentResult]:
    """
    Fill shifts left to right with the best still-unused staff.

    Shifts are taken in input order, never re-sorted. Per shift the
    unused staff are stable-sorted by descending score so ties keep
    roster order, and the top ``open_slots`` with a positive score are
    taken. A staff member is placed at most once per call.

    Args:
        shifts: Shifts to fill, in processing order
        staff: Roster, in tie-break order
        matrix: Scores from ``build_constraint_matrix``
        used_staff: Staff ids not to place; updated in place with every
            placement. A fresh set is used if None.

    Returns:
        One result per shift, in input order
    """
    used = used_staff if used_staff is not None else set()
    roster = [s.id for s in staff]
    results = []

    for shift in shifts:
        slots = open_slots(shift)
        existing = len(shift.assigned_staff)
        result = ShiftAssignmentResult(shift.id, shift.required_staff_count, existing_count=existing)

        if slots > 0:
            candidates = [sid for sid in roster if sid not in used]
            candidates.sort(key=lambda sid: -score(matrix, sid, shift.id))
            for sid in candidates[:slots]:
                value = score(matrix, sid, shift.id)
                if value <= 0:
                    break
                result.entries.append(AssignmentEntry(sid, value))
                used.add(sid)

        filled = result.filled_count
        log_constraint(
            logger,
            f"shift {shift.id} headcount",
            filled >= shift.required_staff_count or not shift.is_active,
            f"{filled}/{shift.required_staff_count}",
        )
        results.append(result)

    return results
