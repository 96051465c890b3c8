"""
Constraint Matrix
=================
Per staff member, per shift suitability scores in [0, 100].

A score of 0 is a hard exclusion: no availability record, declared
unavailable, approved time off on the shift date, already on the shift,
or already holding an overlapping shift in the same snapshot. Anything
else starts at 100 and loses points for each preference the shift does
not meet.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from carerota.models.availability import (
    AvailabilityRecord,
    NoPreference,
    Preference,
    ShiftTypePreference,
    TimeWindowPreference,
    index_availability,
)
from carerota.models.constraints import (
    ConstraintType,
    ConstraintWeightSet,
    SolverConfig,
    default_constraint_weights,
)
from carerota.models.shift import Shift, is_assigned, shift_duration_hours
from carerota.models.staff import StaffMember
from carerota.models.timeoff import TimeOffRequest, blocking_request
from carerota.solver.hours import employment_adjustment, staff_hours
from carerota.utils.logging_setup import get_logger, log_function_call
from carerota.utils.time_utils import rest_period_minutes, window_covers

logger = get_logger("carerota.solver.matrix")

MAX_SCORE = 100

ConstraintMatrix = Dict[str, Dict[str, int]]


def preference_penalty(pref: Preference, shift: Shift, config: SolverConfig,
                       check_shift_type: bool = True) -> int:
    """Points lost for one declared preference the shift does not meet."""
    if isinstance(pref, NoPreference):
        return 0
    if isinstance(pref, ShiftTypePreference):
        if check_shift_type and pref.shift_type != shift.shift_type:
            return config.shift_type_mismatch_penalty
        return 0
    if isinstance(pref, TimeWindowPreference):
        if not window_covers(pref.start_time, pref.end_time, shift.start_time, shift.end_time):
            return config.time_window_mismatch_penalty
        return 0
    raise TypeError(f"Unknown preference variant: {type(pref).__name__}")


def _held_intervals(shifts: List[Shift]) -> Dict[str, List[Tuple[str, tuple]]]:
    """Anchored intervals of the shifts each staff member already holds."""
    held: Dict[str, List[Tuple[str, tuple]]] = {}
    for shift in shifts:
        if not shift.is_active:
            continue
        interval = shift.window.interval
        for a in shift.assigned_staff:
            held.setdefault(a.user_id, []).append((shift.id, interval))
    return held


def score_pair(
    member: StaffMember,
    shift: Shift,
    record: Optional[AvailabilityRecord],
    time_off: List[TimeOffRequest],
    weights: ConstraintWeightSet,
    config: SolverConfig,
    held: Optional[List[Tuple[str, tuple]]] = None,
    current_hours: float = 0.0,
) -> int:
    """Score one (staff, shift) pair."""
    if is_assigned(shift, member.id):
        return 0

    if weights.has(ConstraintType.NO_DOUBLE_BOOKING) and held:
        candidate = shift.window.interval
        for shift_id, interval in held:
            if shift_id != shift.id and rest_period_minutes(interval, candidate) < 0:
                return 0

    if weights.has(ConstraintType.RESPECT_TIME_OFF):
        if blocking_request(time_off, member.id, shift.date) is not None:
            return 0

    if record is None or not record.is_available:
        return 0

    check_type = weights.has(ConstraintType.PREFERRED_SHIFT_TYPES)
    score = MAX_SCORE
    for pref in record.preferences:
        score -= preference_penalty(pref, shift, config, check_type)

    if config.employment_type_scoring:
        projected = current_hours + shift_duration_hours(shift)
        score += employment_adjustment(member.employment_type, projected)

    return max(0, min(MAX_SCORE, int(score)))


@log_function_call
def build_constraint_matrix(
    shifts: Iterable[Shift],
    staff: Iterable[StaffMember],
    availability: Iterable[AvailabilityRecord],
    time_off: Iterable[TimeOffRequest],
    weights: Optional[ConstraintWeightSet] = None,
    config: Optional[SolverConfig] = None,
) -> ConstraintMatrix:
    """
    Build the staff-by-shift score matrix.

    Args:
        shifts: Shifts of the solve window (existing assignments included)
        staff: Roster
        availability: At most one record per (staff, date)
        time_off: Time-off requests; only approved ones exclude
        weights: Active rules (defaults if None)
        config: Scoring penalties and toggles (defaults if None)

    Returns:
        {staff_id: {shift_id: score}}
    """
    shifts = list(shifts)
    staff = list(staff)
    time_off = list(time_off)
    weights = weights if weights is not None else default_constraint_weights()
    config = config or SolverConfig()

    index = index_availability(availability)
    held = _held_intervals(shifts)
    hours = staff_hours(shifts, staff) if config.employment_type_scoring else {}

    matrix: ConstraintMatrix = {}
    for member in staff:
        row = {}
        for shift in shifts:
            row[shift.id] = score_pair(
                member,
                shift,
                index.get((member.id, shift.date)),
                time_off,
                weights,
                config,
                held.get(member.id),
                hours.get(member.id, 0.0),
            )
        matrix[member.id] = row

    excluded = sum(1 for row in matrix.values() for s in row.values() if s == 0)
    logger.debug(f"Matrix built: {len(staff)} staff x {len(shifts)} shifts, {excluded} excluded pairs")
    return matrix


def score(matrix: ConstraintMatrix, staff_id: str, shift_id: str) -> int:
    """Matrix lookup; unknown pairs score 0."""
    return matrix.get(staff_id, {}).get(shift_id, 0)
