"""In-memory store for tests, the CLI and single-process callers."""
import copy
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Optional

from carerota.models.shift import Shift
from carerota.models.staff import StaffMember
from carerota.models.swap import ShiftSwapRequest
from carerota.models.timeoff import TimeOffRequest, new_time_off_id
from carerota.store.base import RotaStore
from carerota.utils.logging_setup import get_logger

logger = get_logger("carerota.store.memory")


class InMemoryRotaStore(RotaStore):
    """
    Dict-backed store.

    ``transaction()`` holds a re-entrant lock and snapshots every table on
    entry; an exception inside the block restores the snapshot. Reads
    outside a transaction take the same lock, so they never see a
    half-applied write.
    """

    def __init__(
        self,
        staff: Iterable[StaffMember] = (),
        shifts: Iterable[Shift] = (),
        time_off: Iterable[TimeOffRequest] = (),
        swaps: Iterable[ShiftSwapRequest] = (),
    ):
        self._lock = threading.RLock()
        self._depth = 0
        self._staff: Dict[str, StaffMember] = {m.id: copy.deepcopy(m) for m in staff}
        self._shifts: Dict[str, Shift] = {s.id: copy.deepcopy(s) for s in shifts}
        self._time_off: Dict[str, TimeOffRequest] = {}
        for r in time_off:
            r = copy.deepcopy(r)
            r.id = r.id or new_time_off_id()
            self._time_off[r.id] = r
        self._swaps: Dict[str, ShiftSwapRequest] = {sw.id: copy.deepcopy(sw) for sw in swaps}

    @classmethod
    def from_snapshot(cls, snapshot) -> "InMemoryRotaStore":
        """Build from a validated ``Snapshot``."""
        return cls(
            staff=snapshot.to_staff(),
            shifts=snapshot.to_shifts(),
            time_off=snapshot.to_time_off(),
        )

    def _tables(self):
        return self._staff, self._shifts, self._time_off, self._swaps

    @contextmanager
    def transaction(self):
        with self._lock:
            outermost = self._depth == 0
            saved = copy.deepcopy(self._tables()) if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._staff, self._shifts, self._time_off, self._swaps = saved
                    logger.debug("Transaction rolled back")
                raise
            finally:
                self._depth -= 1

    # Reads ------------------------------------------------------------

    def _values(self, table: Dict) -> Iterator:
        with self._lock:
            items = [copy.deepcopy(v) for v in table.values()]
        return iter(items)

    def iter_staff(self) -> Iterator[StaffMember]:
        return self._values(self._staff)

    def iter_shifts(self) -> Iterator[Shift]:
        return self._values(self._shifts)

    def iter_time_off(self) -> Iterator[TimeOffRequest]:
        return self._values(self._time_off)

    def iter_swaps(self) -> Iterator[ShiftSwapRequest]:
        return self._values(self._swaps)

    def _find(self, table: Dict, key: str):
        with self._lock:
            value = table.get(key)
            return copy.deepcopy(value) if value is not None else None

    def find_staff(self, staff_id: str) -> Optional[StaffMember]:
        return self._find(self._staff, staff_id)

    def find_shift(self, shift_id: str) -> Optional[Shift]:
        return self._find(self._shifts, shift_id)

    def find_swap(self, swap_id: str) -> Optional[ShiftSwapRequest]:
        return self._find(self._swaps, swap_id)

    # Writes -----------------------------------------------------------

    def save_staff(self, member: StaffMember) -> None:
        with self._lock:
            self._staff[member.id] = copy.deepcopy(member)

    def save_shift(self, shift: Shift) -> None:
        with self._lock:
            self._shifts[shift.id] = copy.deepcopy(shift)

    def save_time_off(self, request: TimeOffRequest) -> None:
        with self._lock:
            if not request.id:
                request.id = new_time_off_id()
            self._time_off[request.id] = copy.deepcopy(request)

    def save_swap(self, swap: ShiftSwapRequest) -> None:
        with self._lock:
            self._swaps[swap.id] = copy.deepcopy(swap)
