"""Availability records and the preference variants they declare."""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Optional, Tuple, Union

from carerota.models.shift import ShiftType
from carerota.utils.logging_setup import get_logger
from carerota.utils.time_utils import parse_hhmm, to_date

logger = get_logger("carerota.models.availability")


@dataclass(frozen=True)
class NoPreference:
    """Available for any shift on the day."""


@dataclass(frozen=True)
class ShiftTypePreference:
    """Prefers one shift type on the day."""
    shift_type: ShiftType


@dataclass(frozen=True)
class TimeWindowPreference:
    """Prefers shifts inside a time-of-day window (may wrap midnight)."""
    start_time: str
    end_time: str

    def __post_init__(self):
        parse_hhmm(self.start_time)
        parse_hhmm(self.end_time)


Preference = Union[NoPreference, ShiftTypePreference, TimeWindowPreference]


def preferences_from_fields(
    preferred_shift_type: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> Tuple[Preference, ...]:
    """Build the preference variants from loosely-typed record fields.

    ``"none"`` and empty values mean no shift-type preference; a window
    needs both ends.
    """
    prefs = []
    if preferred_shift_type and str(preferred_shift_type).strip().lower() != "none":
        prefs.append(ShiftTypePreference(ShiftType.from_string(preferred_shift_type)))
    if start_time and end_time:
        prefs.append(TimeWindowPreference(start_time, end_time))
    if not prefs:
        return (NoPreference(),)
    return tuple(prefs)


@dataclass
class AvailabilityRecord:
    """A staff member's declared availability for one date."""

    user_id: str
    date: date
    is_available: bool = True
    preferences: Tuple[Preference, ...] = field(default_factory=lambda: (NoPreference(),))

    def __post_init__(self):
        self.user_id = str(self.user_id)
        self.date = to_date(self.date)
        self.preferences = tuple(self.preferences) or (NoPreference(),)

    @property
    def preferred_shift_type(self) -> Optional[ShiftType]:
        for pref in self.preferences:
            if isinstance(pref, ShiftTypePreference):
                return pref.shift_type
        return None

    @property
    def preferred_window(self) -> Optional[TimeWindowPreference]:
        for pref in self.preferences:
            if isinstance(pref, TimeWindowPreference):
                return pref
        return None

    def to_dict(self) -> dict:
        window = self.preferred_window
        shift_type = self.preferred_shift_type
        return {
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "is_available": self.is_available,
            "preferred_shift_type": shift_type.value if shift_type else None,
            "start_time": window.start_time if window else None,
            "end_time": window.end_time if window else None,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AvailabilityRecord":
        return cls(
            user_id=str(d["user_id"]),
            date=d["date"],
            is_available=bool(d.get("is_available", True)),
            preferences=preferences_from_fields(
                d.get("preferred_shift_type"), d.get("start_time"), d.get("end_time"),
            ),
        )


def index_availability(
    records: Iterable[AvailabilityRecord],
) -> Dict[Tuple[str, date], AvailabilityRecord]:
    """Index records by (user_id, date). A later duplicate replaces an earlier one."""
    index: Dict[Tuple[str, date], AvailabilityRecord] = {}
    for rec in records:
        key = (rec.user_id, rec.date)
        if key in index:
            logger.warning(f"Duplicate availability for {rec.user_id} on {rec.date}, keeping the last")
        index[key] = rec
    return index
