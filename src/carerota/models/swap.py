"""Shift swap request and its state machine.

Transitions::

    pending -> approved -> completed
    pending -> rejected
    pending -> cancelled

Every state except ``pending`` (and ``approved`` towards ``completed``)
is terminal. Requests are never deleted.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from carerota.errors import InvalidStateError, SwapExpiredError
from carerota.utils.time_utils import utcnow

MAX_MESSAGE_LENGTH = 500
DEFAULT_EXPIRY = timedelta(days=7)


class SwapStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class ConflictSnapshot:
    """Result of the conflict check stored on the request."""
    has_conflict: bool = False
    details: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"has_conflict": self.has_conflict, "details": list(self.details)}

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> "ConflictSnapshot":
        d = d or {}
        return cls(bool(d.get("has_conflict", False)), list(d.get("details") or []))


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _clip(message: Optional[str]) -> str:
    return (message or "")[:MAX_MESSAGE_LENGTH]


@dataclass
class ShiftSwapRequest:
    """A proposed exchange of two staff members' shift assignments."""

    requester_shift_id: str
    target_shift_id: str
    requester_id: str
    target_user_id: str
    home_id: str = ""
    status: SwapStatus = SwapStatus.PENDING
    requester_message: str = ""
    response_message: str = ""
    conflict_check: ConflictSnapshot = field(default_factory=ConflictSnapshot)
    requested_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: uuid4().hex)

    def __post_init__(self):
        if not isinstance(self.status, SwapStatus):
            self.status = SwapStatus(self.status)
        if self.requested_at is None:
            self.requested_at = utcnow()
        if self.expires_at is None:
            self.expires_at = self.requested_at + DEFAULT_EXPIRY
        self.requester_message = _clip(self.requester_message)
        self.response_message = _clip(self.response_message)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def ensure_actionable(self, action: str, now: Optional[datetime]):
        if self.status != SwapStatus.PENDING:
            raise InvalidStateError(f"Cannot {action} swap {self.id}: status is {self.status.value}")
        if is_expired(self, now):
            raise SwapExpiredError(f"Swap {self.id} expired at {self.expires_at.isoformat()}")

    def approve(self, message: str = "", now: Optional[datetime] = None):
        self.ensure_actionable("approve", now)
        self.status = SwapStatus.APPROVED
        self.response_message = _clip(message)
        self.responded_at = now or utcnow()

    def reject(self, message: str = "", now: Optional[datetime] = None):
        self.ensure_actionable("reject", now)
        self.status = SwapStatus.REJECTED
        self.response_message = _clip(message)
        self.responded_at = now or utcnow()

    def cancel(self, now: Optional[datetime] = None):
        """Withdraw a pending request. Expired requests may still be withdrawn."""
        if self.status != SwapStatus.PENDING:
            raise InvalidStateError(f"Cannot cancel swap {self.id}: status is {self.status.value}")
        self.status = SwapStatus.CANCELLED
        self.responded_at = now or utcnow()

    def complete(self, now: Optional[datetime] = None):
        if self.status != SwapStatus.APPROVED:
            raise InvalidStateError(f"Cannot complete swap {self.id}: status is {self.status.value}")
        self.status = SwapStatus.COMPLETED
        self.completed_at = now or utcnow()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        def ts(value):
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "requester_shift_id": self.requester_shift_id,
            "target_shift_id": self.target_shift_id,
            "requester_id": self.requester_id,
            "target_user_id": self.target_user_id,
            "home_id": self.home_id,
            "status": self.status.value,
            "requester_message": self.requester_message,
            "response_message": self.response_message,
            "conflict_check": self.conflict_check.to_dict(),
            "requested_at": ts(self.requested_at),
            "responded_at": ts(self.responded_at),
            "completed_at": ts(self.completed_at),
            "expires_at": ts(self.expires_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ShiftSwapRequest":
        return cls(
            id=str(d["id"]),
            requester_shift_id=str(d["requester_shift_id"]),
            target_shift_id=str(d["target_shift_id"]),
            requester_id=str(d["requester_id"]),
            target_user_id=str(d["target_user_id"]),
            home_id=str(d.get("home_id") or ""),
            status=d.get("status", SwapStatus.PENDING),
            requester_message=d.get("requester_message") or "",
            response_message=d.get("response_message") or "",
            conflict_check=ConflictSnapshot.from_dict(d.get("conflict_check")),
            requested_at=_parse_ts(d.get("requested_at")),
            responded_at=_parse_ts(d.get("responded_at")),
            completed_at=_parse_ts(d.get("completed_at")),
            expires_at=_parse_ts(d.get("expires_at")),
        )


def is_expired(swap: ShiftSwapRequest, now: Optional[datetime] = None) -> bool:
    """A request is expired once ``now`` is strictly past ``expires_at``."""
    return (now or utcnow()) > swap.expires_at


def is_active(swap: ShiftSwapRequest, now: Optional[datetime] = None) -> bool:
    """Pending and not yet expired."""
    return swap.status == SwapStatus.PENDING and not is_expired(swap, now)


def involves_shift(swap: ShiftSwapRequest, shift_id: str) -> bool:
    return shift_id in (swap.requester_shift_id, swap.target_shift_id)


def involves_user(swap: ShiftSwapRequest, user_id: str) -> bool:
    return user_id in (swap.requester_id, swap.target_user_id)
