"""
Conflict Validation
===================
Rule checks shared by ad-hoc assignment validation, swap validation and
the solver's post-solve sanity pass.

The ``check_*`` functions are pure. ``ConflictValidator`` reads what they
need from a ``RotaStore``. Business-rule violations come back as data in
a ``ConflictReport``; only a missing shift or user raises
(``NotFoundError``) and storage failures surface as ``StorageError``.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from carerota.models.constraints import SolverConfig
from carerota.models.shift import Shift, ShiftWindow, is_assigned, shift_duration_hours
from carerota.models.staff import StaffMember
from carerota.models.swap import ShiftSwapRequest, SwapStatus, involves_shift
from carerota.models.timeoff import TimeOffRequest, blocking_request
from carerota.store.base import RotaStore, neighbour_window
from carerota.utils.logging_setup import get_logger, log_constraint
from carerota.utils.time_utils import rest_period_minutes, to_date

logger = get_logger("carerota.solver.validation")


class ConflictType(str, Enum):
    ASSIGNMENT_MISMATCH = "assignment_mismatch"
    HOME_ACCESS = "home_access"
    TIME_OVERLAP = "time_overlap"
    INSUFFICIENT_REST = "insufficient_rest"
    TIME_OFF_CONFLICT = "time_off_conflict"
    EXISTING_SWAP_REQUEST = "existing_swap_request"
    MAX_HOURS_EXCEEDED = "max_hours_exceeded"


@dataclass
class Conflict:
    """One itemized rule violation."""
    type: ConflictType
    message: str
    user_id: str = ""
    party: str = ""  # "requester" or "target_user" on swap checks
    details: Dict[str, Any] = field(default_factory=dict)

    def tagged(self, user_id: str, party: str = "") -> "Conflict":
        return Conflict(self.type, self.message, user_id, party, dict(self.details))

    def to_dict(self) -> dict:
        d = {"type": self.type.value, "message": self.message}
        if self.user_id:
            d["user_id"] = self.user_id
        if self.party:
            d["user"] = self.party
        d.update(self.details)
        return d


@dataclass
class ConflictReport:
    conflicts: List[Conflict] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)

    def of_type(self, conflict_type: ConflictType) -> List[Conflict]:
        return [c for c in self.conflicts if c.type == conflict_type]

    @property
    def types(self) -> List[str]:
        return [c.type.value for c in self.conflicts]

    def to_dict(self) -> dict:
        return {
            "has_conflict": self.has_conflict,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


# ----------------------------------------------------------------------
# Pure rule checks
# ----------------------------------------------------------------------

def check_time_off(time_off: Iterable[TimeOffRequest], user_id: str, day: date) -> Optional[Conflict]:
    request = blocking_request(time_off, user_id, to_date(day))
    if request is None:
        return None
    return Conflict(
        ConflictType.TIME_OFF_CONFLICT,
        f"User has approved time off on {to_date(day).isoformat()}",
        details={"time_off_request_id": request.id},
    )


def check_overlap(candidate: ShiftWindow, held: Iterable[Shift]) -> List[Conflict]:
    """Held shifts whose anchored interval intersects the candidate's."""
    interval = candidate.interval
    return [
        Conflict(
            ConflictType.TIME_OVERLAP,
            f"Overlaps with existing shift: {s.start_time} - {s.end_time}",
            details={"conflicting_shift_id": s.id},
        )
        for s in held
        if rest_period_minutes(interval, s.window.interval) < 0
    ]


def check_rest(candidate: ShiftWindow, held: Iterable[Shift], min_rest_minutes: int = 660) -> List[Conflict]:
    """Non-overlapping held shifts that leave less than the minimum rest."""
    interval = candidate.interval
    conflicts = []
    for s in held:
        gap = rest_period_minutes(interval, s.window.interval)
        if 0 <= gap < min_rest_minutes:
            conflicts.append(Conflict(
                ConflictType.INSUFFICIENT_REST,
                f"Insufficient rest period ({round(gap / 60)}h, {gap} min) with shift: {s.start_time} - {s.end_time}",
                details={"conflicting_shift_id": s.id, "rest_period_minutes": gap},
            ))
    return conflicts


def check_daily_hours(candidate: ShiftWindow, held: Iterable[Shift], max_hours: float = 24.0) -> Optional[Conflict]:
    """Same-date hours including the candidate must stay within ``max_hours``."""
    total = candidate.hours + sum(shift_duration_hours(s) for s in held if s.date == candidate.date)
    if total <= max_hours:
        return None
    total = round(total, 2)
    return Conflict(
        ConflictType.MAX_HOURS_EXCEEDED,
        f"Total daily hours ({total}) would exceed {max_hours:g} hours",
        details={"total_hours": total},
    )


def check_home_access(member: StaffMember, home_id: str, party: str = "") -> Optional[Conflict]:
    if member.has_home_access(home_id):
        return None
    who = "Requester" if party == "requester" else "Target user" if party == "target_user" else "User"
    return Conflict(
        ConflictType.HOME_ACCESS,
        f"{who} does not have access to home {home_id}",
        user_id=member.id,
        party=party,
        details={"home_id": home_id},
    )


def check_pending_swaps(
    swaps: Iterable[ShiftSwapRequest],
    shift_ids: Iterable[str],
    exclude_swap_id: Optional[str] = None,
) -> List[Conflict]:
    ids = list(shift_ids)
    return [
        Conflict(
            ConflictType.EXISTING_SWAP_REQUEST,
            "One or both shifts are already involved in a pending swap request",
            details={"existing_swap_id": sw.id},
        )
        for sw in swaps
        if sw.status == SwapStatus.PENDING
        and sw.id != exclude_swap_id
        and any(involves_shift(sw, i) for i in ids)
    ]


def check_assignment_mismatch(shift: Shift, user_id: str, party: str = "") -> Optional[Conflict]:
    if is_assigned(shift, user_id):
        return None
    who = "Requester" if party == "requester" else "Target user" if party == "target_user" else "User"
    return Conflict(
        ConflictType.ASSIGNMENT_MISMATCH,
        f"{who} is not assigned to shift {shift.id}",
        user_id=str(user_id),
        party=party,
        details={"shift_id": shift.id},
    )


def check_window(
    candidate: ShiftWindow,
    held: List[Shift],
    time_off: Iterable[TimeOffRequest],
    user_id: str,
    config: SolverConfig,
) -> List[Conflict]:
    """Every time-based rule for one user taking ``candidate``."""
    conflicts = []
    off = check_time_off(time_off, user_id, candidate.date)
    if off:
        conflicts.append(off)
    conflicts.extend(check_overlap(candidate, held))
    conflicts.extend(check_rest(candidate, held, config.min_rest_minutes))
    daily = check_daily_hours(candidate, held, config.max_daily_hours)
    if daily:
        conflicts.append(daily)
    return [c.tagged(str(user_id), c.party) for c in conflicts]


# ----------------------------------------------------------------------
# Store-backed validator
# ----------------------------------------------------------------------

class ConflictValidator:
    """
    Validates assignments and swaps against the current store contents.

    Usage:
        validator = ConflictValidator(store)
        report = validator.validate_swap(shift_a, shift_b, user_a, user_b)
        if report.has_conflict:
            ...
    """

    def __init__(self, store: RotaStore, config: Optional[SolverConfig] = None):
        self.store = store
        self.config = config or SolverConfig()

    def _window_conflicts(self, user_id: str, candidate: ShiftWindow,
                          exclude_shift_id: Optional[str]) -> List[Conflict]:
        start, end = neighbour_window(candidate.date)
        held = self.store.shifts_for_user(user_id, start, end, exclude_shift_id)
        time_off = self.store.approved_time_off(user_id, candidate.date, candidate.date)
        return check_window(candidate, held, time_off, user_id, self.config)

    def validate_assignment(
        self,
        user_id: str,
        day: date,
        start_time: str,
        end_time: str,
        exclude_shift_id: Optional[str] = None,
    ) -> ConflictReport:
        """Check whether ``user_id`` can take a shift on ``day`` from start to end."""
        user_id = str(user_id)
        self.store.get_staff(user_id)
        candidate = ShiftWindow(to_date(day), start_time, end_time)
        report = ConflictReport(self._window_conflicts(user_id, candidate, exclude_shift_id))
        log_constraint(logger, f"assignment {user_id} {candidate.date} {start_time}-{end_time}",
                       not report.has_conflict, ", ".join(report.types))
        return report

    def validate_swap(
        self,
        requester_shift_id: str,
        target_shift_id: str,
        requester_id: str,
        target_user_id: str,
        exclude_swap_id: Optional[str] = None,
    ) -> ConflictReport:
        """
        Check a proposed exchange from both sides.

        The requester is checked against the target shift without the
        shift they give up, and the target user the other way round.
        """
        requester_shift = self.store.get_shift(requester_shift_id)
        target_shift = self.store.get_shift(target_shift_id)
        requester = self.store.get_staff(requester_id)
        target_user = self.store.get_staff(target_user_id)

        conflicts: List[Conflict] = []
        for shift, user_id, party in (
            (requester_shift, requester.id, "requester"),
            (target_shift, target_user.id, "target_user"),
        ):
            mismatch = check_assignment_mismatch(shift, user_id, party)
            if mismatch:
                conflicts.append(mismatch)

        if requester_shift.home_id != target_shift.home_id:
            for member, home_id, party in (
                (requester, target_shift.home_id, "requester"),
                (target_user, requester_shift.home_id, "target_user"),
            ):
                denied = check_home_access(member, home_id, party)
                if denied:
                    conflicts.append(denied)

        for c in self._window_conflicts(requester.id, target_shift.window, requester_shift.id):
            conflicts.append(c.tagged(requester.id, "requester"))
        for c in self._window_conflicts(target_user.id, requester_shift.window, target_shift.id):
            conflicts.append(c.tagged(target_user.id, "target_user"))

        pending = self.store.pending_swaps_for_shifts([requester_shift.id, target_shift.id], exclude_swap_id)
        conflicts.extend(check_pending_swaps(pending, [requester_shift.id, target_shift.id], exclude_swap_id))

        report = ConflictReport(conflicts)
        log_constraint(logger, f"swap {requester_shift.id}<->{target_shift.id}",
                       not report.has_conflict, ", ".join(report.types))
        return report

    def home_conflicts(self, home_id: str, start: date, end: date) -> List[dict]:
        """Assigned staff at a home with approved time off on their shift date."""
        found = []
        for shift in self.store.shifts_for_home(home_id, start, end):
            for a in shift.assigned_staff:
                off = check_time_off(self.store.approved_time_off(a.user_id, shift.date, shift.date),
                                     a.user_id, shift.date)
                if off:
                    found.append({
                        "shift_id": shift.id,
                        "user_id": a.user_id,
                        "date": shift.date.isoformat(),
                        "conflicts": [off.to_dict()],
                    })
        if found:
            logger.warning(f"Home {home_id}: {len(found)} assignment(s) clash with approved time off")
        return found
