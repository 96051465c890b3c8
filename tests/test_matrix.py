"""Tests for the constraint matrix."""
import logging

import pytest

from carerota.models.availability import NoPreference, ShiftTypePreference, TimeWindowPreference
from carerota.models.constraints import (
    ConstraintType,
    ConstraintWeightSet,
    SolverConfig,
    default_constraint_weights,
)
from carerota.models.shift import ShiftType
from carerota.models.timeoff import TimeOffStatus
from carerota.solver.hours import employment_adjustment
from carerota.solver.matrix import MAX_SCORE, build_constraint_matrix, preference_penalty, score
from factories import DAY, available, make_shift, make_staff, time_off


def _without(*types):
    return ConstraintWeightSet.of(w for w in default_constraint_weights() if w.constraint_type not in types)


class TestExclusions:
    """Pairs that must score 0."""

    def test_example_scores(self, sample_staff, example_shifts, example_availability):
        matrix = build_constraint_matrix(example_shifts, sample_staff, example_availability, [])
        assert matrix["A"] == {"S1": 0, "S2": 0}
        assert matrix["B"] == {"S1": 100, "S2": 70}
        assert matrix["C"] == {"S1": 100, "S2": 100}

    def test_missing_availability_excludes(self):
        matrix = build_constraint_matrix([make_shift("s")], [make_staff("x")], [], [])
        assert matrix["x"]["s"] == 0

    def test_approved_time_off_excludes(self):
        staff = [make_staff("x")]
        matrix = build_constraint_matrix([make_shift("s")], staff, [available("x")], [time_off("x")])
        assert matrix["x"]["s"] == 0

    def test_pending_time_off_does_not_exclude(self):
        staff = [make_staff("x")]
        pending = time_off("x", status=TimeOffStatus.PENDING)
        matrix = build_constraint_matrix([make_shift("s")], staff, [available("x")], [pending])
        assert matrix["x"]["s"] == 100

    def test_time_off_ignored_without_rule(self):
        staff = [make_staff("x")]
        weights = _without(ConstraintType.RESPECT_TIME_OFF)
        matrix = build_constraint_matrix([make_shift("s")], staff, [available("x")], [time_off("x")], weights)
        assert matrix["x"]["s"] == 100

    def test_already_on_shift_excludes(self):
        staff = [make_staff("x")]
        matrix = build_constraint_matrix([make_shift("s", assigned=["x"])], staff, [available("x")], [])
        assert matrix["x"]["s"] == 0

    def test_overlapping_held_shift_excludes(self):
        staff = [make_staff("x")]
        shifts = [
            make_shift("held", "08:00", "16:00", assigned=["x"]),
            make_shift("clash", "15:00", "23:00"),
            make_shift("later", "16:00", "23:00"),
        ]
        matrix = build_constraint_matrix(shifts, staff, [available("x")], [])
        assert matrix["x"]["clash"] == 0
        assert matrix["x"]["later"] == 100

    def test_overlap_allowed_without_double_booking_rule(self):
        staff = [make_staff("x")]
        shifts = [make_shift("held", "08:00", "16:00", assigned=["x"]), make_shift("clash", "15:00", "23:00")]
        weights = _without(ConstraintType.NO_DOUBLE_BOOKING)
        matrix = build_constraint_matrix(shifts, staff, [available("x")], [], weights)
        assert matrix["x"]["clash"] == 100

    def test_inactive_held_shift_does_not_exclude(self):
        staff = [make_staff("x")]
        shifts = [
            make_shift("held", "08:00", "16:00", assigned=["x"], is_active=False),
            make_shift("clash", "15:00", "23:00"),
        ]
        matrix = build_constraint_matrix(shifts, staff, [available("x")], [])
        assert matrix["x"]["clash"] == 100


class TestPreferencePenalties:
    """Soft penalties per preference variant."""

    def test_variants(self, default_config):
        shift = make_shift("s", "08:00", "16:00", shift_type="day")
        assert preference_penalty(NoPreference(), shift, default_config) == 0
        assert preference_penalty(ShiftTypePreference(ShiftType.DAY), shift, default_config) == 0
        assert preference_penalty(ShiftTypePreference(ShiftType.NIGHT), shift, default_config) == 30
        assert preference_penalty(TimeWindowPreference("07:00", "17:00"), shift, default_config) == 0
        assert preference_penalty(TimeWindowPreference("09:00", "17:00"), shift, default_config) == 20

    def test_unknown_variant_raises(self, default_config):
        with pytest.raises(TypeError):
            preference_penalty("night", make_shift("s"), default_config)

    def test_both_mismatches_stack(self):
        staff = [make_staff("x")]
        rec = available("x", shift_type="night", start="20:00", end="08:00")
        matrix = build_constraint_matrix([make_shift("s", "08:00", "16:00")], staff, [rec], [])
        assert matrix["x"]["s"] == 50

    def test_shift_type_ignored_without_rule(self):
        staff = [make_staff("x")]
        weights = _without(ConstraintType.PREFERRED_SHIFT_TYPES)
        rec = available("x", shift_type="night")
        matrix = build_constraint_matrix([make_shift("s")], staff, [rec], [], weights)
        assert matrix["x"]["s"] == 100

    def test_configured_penalties(self):
        staff = [make_staff("x")]
        config = SolverConfig(shift_type_mismatch_penalty=45)
        rec = available("x", shift_type="night")
        matrix = build_constraint_matrix([make_shift("s")], staff, [rec], [], config=config)
        assert matrix["x"]["s"] == 55


class TestEmploymentScoring:
    """Optional weekly-hour adjustments."""

    @pytest.mark.parametrize("employment_type,hours,expected", [
        ("fulltime", 12, 25),
        ("fulltime", 40, 15),
        ("fulltime", 48, 0),
        ("fulltime", 52, -30),
        ("parttime", 24, 30),
        ("parttime", 25, -60),
        ("bank", 15, 5),
        ("bank", 18, 0),
        ("bank", 21, -80),
    ])
    def test_bands(self, employment_type, hours, expected):
        member = make_staff("x", employment_type=employment_type)
        assert employment_adjustment(member.employment_type, hours) == expected

    def test_scores_stay_clamped(self):
        staff = [make_staff("ft"), make_staff("bank", employment_type="bank")]
        held = [make_shift(f"h{i}", day=DAY.replace(day=2 + i), assigned=["bank"]) for i in range(3)]
        shift = make_shift("s", "08:00", "16:00")
        records = [available("ft"), available("bank")]
        config = SolverConfig(employment_type_scoring=True)
        matrix = build_constraint_matrix(held + [shift], staff, records, [], config=config)
        assert matrix["ft"]["s"] == MAX_SCORE
        # 24h held + 8h = 32h, past the bank ceiling
        assert matrix["bank"]["s"] == 20

    def test_disabled_by_default(self):
        staff = [make_staff("b", employment_type="bank")]
        held = [make_shift(f"h{i}", day=DAY.replace(day=2 + i), assigned=["b"]) for i in range(3)]
        matrix = build_constraint_matrix(held + [make_shift("s")], staff, [available("b")], [])
        assert matrix["b"]["s"] == 100


class TestLookup:

    def test_unknown_pairs_score_zero(self):
        assert score({"x": {"s": 80}}, "x", "s") == 80
        assert score({"x": {"s": 80}}, "x", "other") == 0
        assert score({}, "y", "s") == 0

    def test_duplicate_availability_keeps_last(self, caplog):
        staff = [make_staff("x")]
        records = [available("x", is_available=False), available("x")]
        with caplog.at_level(logging.WARNING, logger="carerota.models.availability"):
            matrix = build_constraint_matrix([make_shift("s")], staff, records, [])
        assert matrix["x"]["s"] == 100
        assert "Duplicate availability" in caplog.text
