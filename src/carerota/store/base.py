"""
Rota Store
==========
Storage boundary for shifts, staff, time off and swap requests.

Implementations provide a handful of primitives plus a ``transaction()``
context manager that serializes writers; the queries the validator and
the swap manager rely on are built on top of those primitives here.
"""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional

from carerota.errors import NotFoundError
from carerota.models.shift import Shift, is_assigned
from carerota.models.staff import StaffMember
from carerota.models.swap import ShiftSwapRequest, SwapStatus, involves_shift, involves_user, is_active
from carerota.models.timeoff import TimeOffRequest, approved_in_window
from carerota.utils.time_utils import to_date

DEFAULT_HISTORY_LIMIT = 50


class RotaStore(ABC):
    """Abstract store. Reads return copies; writes go through ``save_*``/``add_*``."""

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Serialize writers; all writes inside commit together or not at all."""

    @abstractmethod
    def iter_staff(self) -> Iterator[StaffMember]:
        ...

    @abstractmethod
    def iter_shifts(self) -> Iterator[Shift]:
        ...

    @abstractmethod
    def iter_time_off(self) -> Iterator[TimeOffRequest]:
        ...

    @abstractmethod
    def iter_swaps(self) -> Iterator[ShiftSwapRequest]:
        ...

    @abstractmethod
    def find_staff(self, staff_id: str) -> Optional[StaffMember]:
        ...

    @abstractmethod
    def find_shift(self, shift_id: str) -> Optional[Shift]:
        ...

    @abstractmethod
    def find_swap(self, swap_id: str) -> Optional[ShiftSwapRequest]:
        ...

    @abstractmethod
    def save_staff(self, member: StaffMember) -> None:
        ...

    @abstractmethod
    def save_shift(self, shift: Shift) -> None:
        ...

    @abstractmethod
    def save_time_off(self, request: TimeOffRequest) -> None:
        ...

    @abstractmethod
    def save_swap(self, swap: ShiftSwapRequest) -> None:
        ...

    def add_swap(self, swap: ShiftSwapRequest) -> None:
        self.save_swap(swap)

    # ------------------------------------------------------------------
    # Lookups that must succeed
    # ------------------------------------------------------------------

    def get_staff(self, staff_id: str) -> StaffMember:
        member = self.find_staff(str(staff_id))
        if member is None:
            raise NotFoundError("User", staff_id)
        return member

    def get_shift(self, shift_id: str) -> Shift:
        shift = self.find_shift(str(shift_id))
        if shift is None:
            raise NotFoundError("Shift", shift_id)
        return shift

    def get_swap(self, swap_id: str) -> ShiftSwapRequest:
        swap = self.find_swap(str(swap_id))
        if swap is None:
            raise NotFoundError("Shift swap", swap_id)
        return swap

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def shifts_for_user(self, user_id: str, start: date, end: date,
                        exclude_shift_id: Optional[str] = None) -> List[Shift]:
        """Active shifts the user is assigned to with a date in [start, end]."""
        start, end = to_date(start), to_date(end)
        return [
            s for s in self.iter_shifts()
            if s.is_active
            and start <= s.date <= end
            and s.id != exclude_shift_id
            and is_assigned(s, user_id)
        ]

    def shifts_for_home(self, home_id: str, start: date, end: date) -> List[Shift]:
        start, end = to_date(start), to_date(end)
        return sorted(
            (s for s in self.iter_shifts()
             if s.is_active and s.home_id == str(home_id) and start <= s.date <= end),
            key=lambda s: (s.date, s.start_time),
        )

    def approved_time_off(self, user_id: str, start: date, end: date) -> List[TimeOffRequest]:
        mine = (r for r in self.iter_time_off() if r.user_id == str(user_id))
        return approved_in_window(mine, start, end)

    def pending_swaps_for_shifts(self, shift_ids, exclude_swap_id: Optional[str] = None) -> List[ShiftSwapRequest]:
        """Pending swaps naming any of ``shift_ids`` on either side."""
        ids = [str(i) for i in shift_ids]
        return [
            sw for sw in self.iter_swaps()
            if sw.status == SwapStatus.PENDING
            and sw.id != exclude_swap_id
            and any(involves_shift(sw, i) for i in ids)
        ]

    def active_swaps_for_user(self, user_id: str, now: Optional[datetime] = None) -> List[ShiftSwapRequest]:
        """Pending, unexpired swaps the user takes part in, newest first."""
        swaps = [sw for sw in self.iter_swaps() if involves_user(sw, str(user_id)) and is_active(sw, now)]
        return sorted(swaps, key=lambda sw: sw.requested_at, reverse=True)

    def pending_swaps_to_respond(self, user_id: str, now: Optional[datetime] = None) -> List[ShiftSwapRequest]:
        """Active swaps waiting on ``user_id`` as the target, oldest first."""
        swaps = [sw for sw in self.iter_swaps() if sw.target_user_id == str(user_id) and is_active(sw, now)]
        return sorted(swaps, key=lambda sw: sw.requested_at)

    def swap_history(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[ShiftSwapRequest]:
        swaps = [sw for sw in self.iter_swaps() if involves_user(sw, str(user_id))]
        swaps.sort(key=lambda sw: sw.requested_at, reverse=True)
        return swaps[:limit]

    def snapshot_window(self, start: date, end: date):
        """Shifts, staff and approved time off for a solve over [start, end]."""
        start, end = to_date(start), to_date(end)
        shifts = [s for s in self.iter_shifts() if start <= s.date <= end]
        time_off = approved_in_window(self.iter_time_off(), start, end)
        return shifts, list(self.iter_staff()), time_off


def neighbour_window(day: date) -> tuple:
    """The day before through the day after, for overnight-aware checks."""
    day = to_date(day)
    return day - timedelta(days=1), day + timedelta(days=1)
