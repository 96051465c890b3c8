"""Shift model, assignments and derived shift properties."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from carerota.utils.time_utils import absolute_interval, duration_hours, parse_hhmm, to_date


class ShiftType(str, Enum):
    """Shift-type tags used by care homes."""
    MORNING = "morning"
    DAY = "day"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    OVERTIME = "overtime"
    LONG_DAY = "long_day"
    SPLIT = "split"

    @classmethod
    def from_string(cls, s: str) -> "ShiftType":
        """Parse shift type from various string formats."""
        key = str(s).strip().lower().replace("-", "_").replace(" ", "_")
        aliases = {"am": cls.MORNING, "pm": cls.AFTERNOON, "longday": cls.LONG_DAY}
        if key in aliases:
            return aliases[key]
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown shift type: {s!r}")


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    PENDING = "pending"
    SWAPPED = "swapped"
    DECLINED = "declined"


class StaffingStatus(str, Enum):
    UNASSIGNED = "unassigned"
    UNDERSTAFFED = "understaffed"
    FULLY_STAFFED = "fully_staffed"
    OVERSTAFFED = "overstaffed"


@dataclass
class ShiftAssignment:
    """A staff member's place on a shift."""
    user_id: str
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    assigned_at: Optional[datetime] = None
    note: str = ""

    def __post_init__(self):
        self.user_id = str(self.user_id)
        if not isinstance(self.status, AssignmentStatus):
            self.status = AssignmentStatus(self.status)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "status": self.status.value,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ShiftAssignment":
        assigned_at = d.get("assigned_at")
        if isinstance(assigned_at, str):
            assigned_at = datetime.fromisoformat(assigned_at)
        return cls(
            user_id=str(d["user_id"]),
            status=d.get("status", AssignmentStatus.ASSIGNED),
            assigned_at=assigned_at,
            note=d.get("note") or "",
        )


@dataclass(frozen=True)
class ShiftWindow:
    """A calendar date with a time-of-day range, used for conflict checks."""
    date: date
    start_time: str
    end_time: str

    @property
    def interval(self) -> Tuple[datetime, datetime]:
        return absolute_interval(self.date, self.start_time, self.end_time)

    @property
    def hours(self) -> float:
        return duration_hours(self.start_time, self.end_time)


@dataclass
class Shift:
    """A staffing slot at a home on a given date."""

    id: str
    home_id: str
    service_id: str
    date: date
    start_time: str
    end_time: str
    shift_type: ShiftType
    required_staff_count: int = 1
    assigned_staff: List[ShiftAssignment] = field(default_factory=list)
    is_active: bool = True

    def __post_init__(self):
        self.id = str(self.id)
        self.home_id = str(self.home_id)
        self.service_id = str(self.service_id)
        self.date = to_date(self.date)
        parse_hhmm(self.start_time)
        parse_hhmm(self.end_time)
        if not isinstance(self.shift_type, ShiftType):
            self.shift_type = ShiftType.from_string(self.shift_type)
        self.required_staff_count = int(self.required_staff_count)
        if self.required_staff_count < 0:
            raise ValueError("Required staff count cannot be negative")
        self.assigned_staff = [
            a if isinstance(a, ShiftAssignment) else ShiftAssignment.from_dict(a)
            for a in self.assigned_staff
        ]

    @property
    def window(self) -> ShiftWindow:
        return ShiftWindow(self.date, self.start_time, self.end_time)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "home_id": self.home_id,
            "service_id": self.service_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "shift_type": self.shift_type.value,
            "required_staff_count": self.required_staff_count,
            "assigned_staff": [a.to_dict() for a in self.assigned_staff],
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Shift":
        """Create from dictionary."""
        return cls(
            id=str(d.get("id", "")),
            home_id=str(d.get("home_id", "")),
            service_id=str(d.get("service_id", "")),
            date=d["date"],
            start_time=d["start_time"],
            end_time=d["end_time"],
            shift_type=d["shift_type"],
            required_staff_count=int(d.get("required_staff_count", 1)),
            assigned_staff=[ShiftAssignment.from_dict(a) for a in d.get("assigned_staff") or []],
            is_active=bool(d.get("is_active", True)),
        )


def shift_duration_hours(shift: Shift) -> float:
    return duration_hours(shift.start_time, shift.end_time)


def assigned_user_ids(shift: Shift) -> List[str]:
    return [a.user_id for a in shift.assigned_staff]


def is_assigned(shift: Shift, user_id: str) -> bool:
    return str(user_id) in assigned_user_ids(shift)


def staffing_status(shift: Shift) -> StaffingStatus:
    """Compare the assigned headcount to the required one."""
    count = len(shift.assigned_staff)
    if count == 0:
        return StaffingStatus.UNASSIGNED
    if count < shift.required_staff_count:
        return StaffingStatus.UNDERSTAFFED
    if count == shift.required_staff_count:
        return StaffingStatus.FULLY_STAFFED
    return StaffingStatus.OVERSTAFFED


def open_slots(shift: Shift) -> int:
    """Headcount still to fill. Inactive shifts have none."""
    if not shift.is_active:
        return 0
    return max(shift.required_staff_count - len(shift.assigned_staff), 0)
