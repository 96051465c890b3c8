"""
SQLite Store
============
Keeps each record as a JSON document keyed by id. Writers are serialized
with ``BEGIN IMMEDIATE`` so a duplicate-swap check and the insert that
follows it cannot interleave with another writer.
"""
import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from carerota.errors import StorageError
from carerota.models.shift import Shift
from carerota.models.staff import StaffMember
from carerota.models.swap import ShiftSwapRequest
from carerota.models.timeoff import TimeOffRequest, new_time_off_id
from carerota.store.base import RotaStore
from carerota.utils.logging_setup import get_logger

logger = get_logger("carerota.store.sqlite")

DEFAULT_DB_PATH = Path("data/carerota.db")

TABLES = ("staff", "shifts", "time_off", "swaps")


class SqliteRotaStore(RotaStore):
    """
    SQLite-backed store.

    Usage:
        store = SqliteRotaStore(Path("data/carerota.db"))
        with store.transaction():
            store.save_shift(shift)
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None, timeout: float = 5.0):
        self.db_path = str(db_path or DEFAULT_DB_PATH)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._depth = 0
        try:
            # Autocommit mode; transactions are opened explicitly
            self._conn = sqlite3.connect(
                self.db_path, timeout=timeout, isolation_level=None, check_same_thread=False,
            )
            self._init_db()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open store at {self.db_path}: {e}") from e

    def _init_db(self):
        """Create tables if they don't exist."""
        for table in TABLES:
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {table} (id TEXT PRIMARY KEY, doc TEXT NOT NULL)"
            )

    def close(self):
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self):
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._execute("ROLLBACK")
                    logger.debug("Transaction rolled back")
                raise
            else:
                self._depth -= 1
                if outermost:
                    try:
                        self._execute("COMMIT")
                    except StorageError:
                        # A failed COMMIT leaves the transaction open
                        self._execute("ROLLBACK")
                        logger.warning("Commit failed; transaction rolled back")
                        raise

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            with self._lock:
                return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    # Reads ------------------------------------------------------------

    def _iter(self, table: str, factory: Callable) -> Iterator:
        rows = self._execute(f"SELECT doc FROM {table} ORDER BY rowid").fetchall()
        return iter([factory(json.loads(doc)) for (doc,) in rows])

    def _find(self, table: str, key: str, factory: Callable):
        row = self._execute(f"SELECT doc FROM {table} WHERE id = ?", (str(key),)).fetchone()
        return factory(json.loads(row[0])) if row else None

    def iter_staff(self) -> Iterator[StaffMember]:
        return self._iter("staff", StaffMember.from_dict)

    def iter_shifts(self) -> Iterator[Shift]:
        return self._iter("shifts", Shift.from_dict)

    def iter_time_off(self) -> Iterator[TimeOffRequest]:
        return self._iter("time_off", TimeOffRequest.from_dict)

    def iter_swaps(self) -> Iterator[ShiftSwapRequest]:
        return self._iter("swaps", ShiftSwapRequest.from_dict)

    def find_staff(self, staff_id: str) -> Optional[StaffMember]:
        return self._find("staff", staff_id, StaffMember.from_dict)

    def find_shift(self, shift_id: str) -> Optional[Shift]:
        return self._find("shifts", shift_id, Shift.from_dict)

    def find_swap(self, swap_id: str) -> Optional[ShiftSwapRequest]:
        return self._find("swaps", swap_id, ShiftSwapRequest.from_dict)

    # Writes -----------------------------------------------------------

    def _upsert(self, table: str, key: str, doc: dict):
        self._execute(
            f"INSERT INTO {table} (id, doc) VALUES (?, ?) "
            f"ON CONFLICT(id) DO UPDATE SET doc = excluded.doc",
            (str(key), json.dumps(doc, ensure_ascii=False)),
        )

    def save_staff(self, member: StaffMember) -> None:
        self._upsert("staff", member.id, member.to_dict())

    def save_shift(self, shift: Shift) -> None:
        self._upsert("shifts", shift.id, shift.to_dict())

    def save_time_off(self, request: TimeOffRequest) -> None:
        if not request.id:
            request.id = new_time_off_id()
        self._upsert("time_off", request.id, request.to_dict())

    def save_swap(self, swap: ShiftSwapRequest) -> None:
        self._upsert("swaps", swap.id, swap.to_dict())

    def add_swap(self, swap: ShiftSwapRequest) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO swaps (id, doc) VALUES (?, ?)",
                    (swap.id, json.dumps(swap.to_dict(), ensure_ascii=False)),
                )
        except sqlite3.IntegrityError as e:
            raise StorageError(f"Swap {swap.id} already exists") from e
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e
