"""
Weekly Hours
============
Hour totals per staff member and their comparison against the weekly
band of each employment type.
"""
from typing import Dict, Iterable, List, Optional

from carerota.models.constraints import ConstraintType, ConstraintWeightSet, default_constraint_weights
from carerota.models.schedule import ConstraintViolation, ShiftAssignmentResult
from carerota.models.shift import Shift, shift_duration_hours
from carerota.models.staff import EmploymentType, StaffMember
from carerota.utils.logging_setup import get_logger

logger = get_logger("carerota.solver.hours")

HOUR_RULES = (
    ConstraintType.MIN_HOURS_PER_WEEK,
    ConstraintType.MAX_HOURS_PER_WEEK,
    ConstraintType.EMPLOYMENT_TYPE_COMPLIANCE,
)


def staff_hours(shifts: Iterable[Shift], staff: Iterable[StaffMember]) -> Dict[str, float]:
    """Hours each staff member already holds through existing assignments."""
    hours = {s.id: 0.0 for s in staff}
    for shift in shifts:
        if not shift.is_active:
            continue
        duration = shift_duration_hours(shift)
        for a in shift.assigned_staff:
            if a.user_id in hours:
                hours[a.user_id] += duration
    return hours


def add_result_hours(
    hours: Dict[str, float],
    assignments: Iterable[ShiftAssignmentResult],
    shifts_by_id: Dict[str, Shift],
) -> Dict[str, float]:
    """Return a copy of ``hours`` with the solver's placements added."""
    totals = dict(hours)
    for result in assignments:
        shift = shifts_by_id.get(result.shift_id)
        if shift is None:
            continue
        duration = shift_duration_hours(shift)
        for entry in result.entries:
            totals[entry.staff_id] = totals.get(entry.staff_id, 0.0) + duration
    return totals


def employment_adjustment(employment_type: EmploymentType, projected_hours: float) -> int:
    """Score adjustment for taking a shift that brings the week to ``projected_hours``.

    Full-time staff below their minimum are favoured, part-time staff are
    preferred over bank staff, and going past a band is penalised.
    """
    if employment_type == EmploymentType.FULL_TIME:
        if projected_hours < 38:
            return 25
        if projected_hours <= 45:
            return 15
        if projected_hours > 50:
            return -30
        return 0
    if employment_type == EmploymentType.PART_TIME:
        return 30 if projected_hours <= 24 else -60
    if employment_type == EmploymentType.BANK:
        if projected_hours <= 15:
            return 5
        if projected_hours > 20:
            return -80
        return 0
    return 0


def employment_distribution(
    hours: Dict[str, float],
    staff: Iterable[StaffMember],
) -> Dict[str, Dict[str, float]]:
    """Total and average hours per employment type."""
    dist = {
        t.value: {"total_hours": 0.0, "staff_count": 0, "average_hours": 0.0}
        for t in EmploymentType
    }
    for member in staff:
        bucket = dist[member.employment_type.value]
        bucket["total_hours"] += hours.get(member.id, 0.0)
        bucket["staff_count"] += 1
    for bucket in dist.values():
        if bucket["staff_count"]:
            bucket["average_hours"] = bucket["total_hours"] / bucket["staff_count"]
    return dist


def validate_weekly_hours(
    hours: Dict[str, float],
    staff: Iterable[StaffMember],
    weights: Optional[ConstraintWeightSet] = None,
    target_hours: Optional[float] = None,
) -> List[ConstraintViolation]:
    """
    Check each staff member's weekly total against the hour rules.

    Args:
        hours: Weekly hours per staff id
        staff: Roster
        weights: Active rules (defaults if None); only the hour-based
            rule types are consulted
        target_hours: Expected hours for the compliance ratio (40 if None)

    Returns:
        One violation per (staff, rule) with a positive penalty
    """
    weights = weights if weights is not None else default_constraint_weights()
    rules = [w for w in weights.active() if w.constraint_type in HOUR_RULES]
    violations = []

    for member in staff:
        type_key = member.employment_type.value
        actual = round(hours.get(member.id, 0.0), 2)
        for rule in rules:
            penalty = rule.hours_penalty(type_key, actual, target_hours)
            if penalty <= 0:
                continue
            violations.append(ConstraintViolation(
                constraint=rule.constraint_type.value,
                message=_hours_message(rule.constraint_type, rule.parameters, type_key, actual, target_hours),
                staff_id=member.id,
                severity="critical" if rule.is_hard else "warning",
                penalty=penalty,
            ))

    if violations:
        logger.debug(f"Weekly hours: {len(violations)} violation(s) across {len({v.staff_id for v in violations})} staff")
    return violations


def _hours_message(constraint_type, params, type_key: str, actual: float,
                   target_hours: Optional[float]) -> str:
    if constraint_type == ConstraintType.MIN_HOURS_PER_WEEK:
        return f"{type_key} staff must work at least {params.get(type_key, 0)} hours per week (currently: {actual})"
    if constraint_type == ConstraintType.MAX_HOURS_PER_WEEK:
        return f"{type_key} staff cannot exceed {params.get(type_key, 40)} hours per week (currently: {actual})"
    expected = target_hours or 40
    preference = params.get(f"{type_key}_preference", 0.5)
    return f"{type_key} staff should work closer to {round(preference * expected)} hours per week"
