"""Time-off requests and their date-range helpers."""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional
from uuid import uuid4

from carerota.utils.time_utils import to_date


def new_time_off_id() -> str:
    return uuid4().hex


class TimeOffStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


@dataclass
class TimeOffRequest:
    """Leave request covering an inclusive date range."""

    user_id: str
    start_date: date
    end_date: date
    status: TimeOffStatus = TimeOffStatus.PENDING
    request_type: str = "annual_leave"
    reason: str = ""
    id: str = ""

    def __post_init__(self):
        self.user_id = str(self.user_id)
        self.start_date = to_date(self.start_date)
        self.end_date = to_date(self.end_date)
        if not isinstance(self.status, TimeOffStatus):
            self.status = TimeOffStatus(str(self.status).lower())
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status.value,
            "request_type": self.request_type,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TimeOffRequest":
        return cls(
            user_id=str(d["user_id"]),
            start_date=d["start_date"],
            end_date=d["end_date"],
            status=d.get("status", TimeOffStatus.PENDING),
            request_type=d.get("request_type") or "annual_leave",
            reason=d.get("reason") or "",
            id=str(d.get("id") or ""),
        )


def overlaps_dates(request: TimeOffRequest, check_start: date, check_end: date) -> bool:
    """``request.start <= check_end and request.end >= check_start``."""
    return request.start_date <= to_date(check_end) and request.end_date >= to_date(check_start)


def covers_date(request: TimeOffRequest, day: date) -> bool:
    return overlaps_dates(request, day, day)


def is_blocking(request: TimeOffRequest, day: date) -> bool:
    """Only approved requests constrain scheduling."""
    return request.status == TimeOffStatus.APPROVED and covers_date(request, day)


def duration_days(request: TimeOffRequest) -> int:
    """Number of days covered, both ends included."""
    return (request.end_date - request.start_date).days + 1


def blocking_request(
    requests: Iterable[TimeOffRequest],
    user_id: str,
    day: date,
) -> Optional[TimeOffRequest]:
    """First approved request of ``user_id`` covering ``day``, if any."""
    for req in requests:
        if req.user_id == str(user_id) and is_blocking(req, day):
            return req
    return None


def approved_in_window(
    requests: Iterable[TimeOffRequest],
    start: date,
    end: date,
) -> List[TimeOffRequest]:
    return [
        r for r in requests
        if r.status == TimeOffStatus.APPROVED and overlaps_dates(r, start, end)
    ]
