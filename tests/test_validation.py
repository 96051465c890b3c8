"""Tests for conflict validation."""
from datetime import timedelta

import pytest

from carerota.errors import NotFoundError
from carerota.models.constraints import SolverConfig
from carerota.models.swap import ShiftSwapRequest, SwapStatus
from carerota.solver.validation import (
    ConflictType,
    ConflictValidator,
    check_daily_hours,
    check_overlap,
    check_rest,
)
from carerota.store.memory import InMemoryRotaStore
from factories import DAY, NOW, make_shift, make_staff, time_off


@pytest.fixture
def store():
    staff = [make_staff("u1"), make_staff("u2")]
    shifts = [
        make_shift("early", "08:00", "16:00", assigned=["u1"]),
        make_shift("night", "20:00", "08:00", day=DAY - timedelta(days=1), shift_type="night", assigned=["u2"]),
    ]
    return InMemoryRotaStore(staff=staff, shifts=shifts, time_off=[time_off("u2", id="leave-1")])


class TestValidateAssignment:
    """Tests for ConflictValidator.validate_assignment."""

    def test_overlap(self, store):
        report = ConflictValidator(store).validate_assignment("u1", DAY, "15:00", "23:00")
        assert report.has_conflict
        assert report.types == ["time_overlap"]
        conflict = report.conflicts[0]
        assert conflict.message == "Overlaps with existing shift: 08:00 - 16:00"
        assert conflict.details["conflicting_shift_id"] == "early"

    def test_exclude_shift(self, store):
        report = ConflictValidator(store).validate_assignment("u1", DAY, "15:00", "23:00", exclude_shift_id="early")
        assert not report.has_conflict

    def test_insufficient_rest(self, store):
        report = ConflictValidator(store).validate_assignment("u1", DAY, "19:00", "23:00")
        assert report.types == ["insufficient_rest"]
        conflict = report.conflicts[0]
        assert conflict.details["rest_period_minutes"] == 180
        assert conflict.message == "Insufficient rest period (3h, 180 min) with shift: 08:00 - 16:00"

    def test_rest_after_overnight(self, store):
        # u2 finished a night at 08:00 on DAY
        report = ConflictValidator(store).validate_assignment("u2", DAY, "14:00", "18:00")
        rest = report.of_type(ConflictType.INSUFFICIENT_REST)
        assert len(rest) == 1
        assert rest[0].details == {"conflicting_shift_id": "night", "rest_period_minutes": 360}

    def test_rest_configurable(self, store):
        validator = ConflictValidator(store, SolverConfig(min_rest_minutes=120))
        assert not validator.validate_assignment("u1", DAY, "19:00", "23:00").has_conflict

    def test_time_off(self, store):
        report = ConflictValidator(store).validate_assignment("u2", DAY, "14:00", "22:00")
        off = report.of_type(ConflictType.TIME_OFF_CONFLICT)
        assert len(off) == 1
        assert off[0].message == f"User has approved time off on {DAY.isoformat()}"
        assert off[0].details["time_off_request_id"] == "leave-1"

    def test_daily_hours(self):
        staff = [make_staff("u1")]
        shifts = [make_shift("long", "00:00", "20:00", assigned=["u1"])]
        validator = ConflictValidator(InMemoryRotaStore(staff=staff, shifts=shifts), SolverConfig(min_rest_minutes=0))
        report = validator.validate_assignment("u1", DAY, "20:00", "04:30")
        assert report.types == ["max_hours_exceeded"]
        assert report.conflicts[0].message == "Total daily hours (28.5) would exceed 24 hours"
        assert report.conflicts[0].details["total_hours"] == 28.5

    def test_clean(self, store):
        report = ConflictValidator(store).validate_assignment("u1", DAY + timedelta(days=2), "08:00", "16:00")
        assert not report.has_conflict
        assert report.to_dict() == {"has_conflict": False, "conflicts": []}

    def test_unknown_user(self, store):
        with pytest.raises(NotFoundError, match="User not found: ghost"):
            ConflictValidator(store).validate_assignment("ghost", DAY, "08:00", "16:00")


class TestValidateSwap:
    """Tests for ConflictValidator.validate_swap."""

    def test_overlap_and_home_access(self, swap_store):
        report = ConflictValidator(swap_store).validate_swap("early", "late", "u1", "u2")
        assert report.has_conflict
        assert set(report.types) == {"time_overlap", "home_access"}

        access = report.of_type(ConflictType.HOME_ACCESS)
        assert len(access) == 1
        assert access[0].party == "requester"
        assert access[0].message == "Requester does not have access to home h2"
        assert access[0].to_dict()["user"] == "requester"

        overlap = report.of_type(ConflictType.TIME_OVERLAP)
        assert overlap[0].details["conflicting_shift_id"] == "other"
        assert overlap[0].user_id == "u1"

    def test_assignment_mismatch(self, swap_store):
        report = ConflictValidator(swap_store).validate_swap("early", "late", "u3", "u2")
        mismatch = report.of_type(ConflictType.ASSIGNMENT_MISMATCH)
        assert [c.party for c in mismatch] == ["requester"]
        assert mismatch[0].message == "Requester is not assigned to shift early"

    def test_clean_swap(self, clean_swap_store):
        report = ConflictValidator(clean_swap_store).validate_swap("mon", "wed", "u1", "u2")
        assert not report.has_conflict

    def test_pending_swap_blocks_and_exclude(self, clean_swap_store):
        existing = ShiftSwapRequest("mon", "wed", "u1", "u2", requested_at=NOW, id="sw-1")
        clean_swap_store.add_swap(existing)
        validator = ConflictValidator(clean_swap_store)

        report = validator.validate_swap("mon", "wed", "u1", "u2")
        assert report.types == ["existing_swap_request"]
        assert report.conflicts[0].details["existing_swap_id"] == "sw-1"

        assert not validator.validate_swap("mon", "wed", "u1", "u2", exclude_swap_id="sw-1").has_conflict

    def test_settled_swaps_do_not_block(self, clean_swap_store):
        done = ShiftSwapRequest("mon", "wed", "u1", "u2", status=SwapStatus.REJECTED, requested_at=NOW)
        clean_swap_store.add_swap(done)
        assert not ConflictValidator(clean_swap_store).validate_swap("mon", "wed", "u1", "u2").has_conflict

    def test_time_off_on_new_date(self, clean_swap_store):
        clean_swap_store.save_time_off(time_off("u1", start=DAY + timedelta(days=2), end=DAY + timedelta(days=2)))
        report = ConflictValidator(clean_swap_store).validate_swap("mon", "wed", "u1", "u2")
        off = report.of_type(ConflictType.TIME_OFF_CONFLICT)
        assert [c.party for c in off] == ["requester"]

    def test_unknown_shift(self, swap_store):
        with pytest.raises(NotFoundError, match="Shift not found: nope"):
            ConflictValidator(swap_store).validate_swap("early", "nope", "u1", "u2")


class TestHomeConflicts:

    def test_assigned_staff_on_leave(self, store):
        found = ConflictValidator(store).home_conflicts("h1", DAY - timedelta(days=1), DAY + timedelta(days=1))
        assert found == []

        store.save_time_off(time_off("u1", id="leave-2"))
        found = ConflictValidator(store).home_conflicts("h1", DAY, DAY)
        assert [(f["shift_id"], f["user_id"]) for f in found] == [("early", "u1")]
        assert found[0]["conflicts"][0]["type"] == "time_off_conflict"


class TestPureChecks:
    """Tests for the rule checks without a store."""

    def test_overlap_symmetric_for_overnight(self):
        night = make_shift("n", "22:00", "06:00", shift_type="night")
        morning = make_shift("m", "05:00", "09:00", day=DAY + timedelta(days=1))
        assert check_overlap(night.window, [morning])
        assert check_overlap(morning.window, [night])

    def test_rest_boundary(self):
        a = make_shift("a", "08:00", "16:00")
        b = make_shift("b", "03:00", "07:00", day=DAY + timedelta(days=1))
        # 16:00 to 03:00 is exactly 11 hours
        assert check_rest(b.window, [a], 660) == []
        assert check_rest(b.window, [a], 661)

    def test_daily_hours_counts_same_date_only(self):
        candidate = make_shift("c", "12:00", "22:00").window
        same = make_shift("same", "00:00", "11:00")
        other_day = make_shift("prev", "08:00", "20:00", day=DAY - timedelta(days=1))
        assert check_daily_hours(candidate, [same, other_day]) is None
        assert check_daily_hours(candidate, [same], max_hours=20).details["total_hours"] == 21.0
