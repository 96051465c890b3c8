"""Tests for the greedy assignment pass."""
from carerota.solver.greedy import greedy_assign
from carerota.solver.local_search import violated_constraints
from carerota.solver.matrix import build_constraint_matrix
from factories import make_shift, make_staff


class TestGreedyAssign:
    """Tests for greedy_assign."""

    def test_example_scenario(self, sample_staff, example_shifts, example_availability):
        matrix = build_constraint_matrix(example_shifts, sample_staff, example_availability, [])
        results = greedy_assign(example_shifts, sample_staff, matrix)

        assert [r.shift_id for r in results] == ["S1", "S2"]
        assert results[0].staff_ids == ["B", "C"]
        assert results[1].staff_ids == []

        violations = violated_constraints(results)
        assert len(violations) == 1
        assert violations[0].constraint == "min_staff_required"
        assert violations[0].shift_id == "S2"
        assert violations[0].message == "Shift understaffed: 0/1"

    def test_highest_score_first(self):
        staff = [make_staff("low"), make_staff("high")]
        shifts = [make_shift("s")]
        matrix = {"low": {"s": 40}, "high": {"s": 90}}
        results = greedy_assign(shifts, staff, matrix)
        assert results[0].staff_ids == ["high"]
        assert results[0].entries[0].score == 90

    def test_ties_keep_roster_order(self):
        staff = [make_staff("z"), make_staff("a"), make_staff("m")]
        matrix = {sid: {"s": 80} for sid in ("z", "a", "m")}
        results = greedy_assign([make_shift("s", required=2)], staff, matrix)
        assert results[0].staff_ids == ["z", "a"]

    def test_zero_scores_never_placed(self):
        staff = [make_staff("x"), make_staff("y")]
        matrix = {"x": {"s": 0}, "y": {"s": 0}}
        results = greedy_assign([make_shift("s")], staff, matrix)
        assert results[0].staff_ids == []
        assert results[0].is_understaffed

    def test_staff_used_at_most_once(self):
        staff = [make_staff("x"), make_staff("y")]
        shifts = [make_shift("s1"), make_shift("s2", day="2025-09-02")]
        matrix = {"x": {"s1": 100, "s2": 100}, "y": {"s1": 50, "s2": 50}}
        results = greedy_assign(shifts, staff, matrix)
        assert results[0].staff_ids == ["x"]
        assert results[1].staff_ids == ["y"]

    def test_shift_order_is_input_order(self):
        # The second shift would prefer x, but the first one claims it
        staff = [make_staff("x"), make_staff("y")]
        shifts = [make_shift("first"), make_shift("second")]
        matrix = {"x": {"first": 60, "second": 100}, "y": {"first": 50, "second": 90}}
        results = greedy_assign(shifts, staff, matrix)
        assert results[0].staff_ids == ["x"]
        assert results[1].staff_ids == ["y"]

    def test_used_staff_threaded_and_updated(self):
        staff = [make_staff("x"), make_staff("y")]
        matrix = {"x": {"s": 100}, "y": {"s": 70}}
        used = {"x"}
        results = greedy_assign([make_shift("s")], staff, matrix, used)
        assert results[0].staff_ids == ["y"]
        assert used == {"x", "y"}

    def test_fresh_set_per_call(self):
        staff = [make_staff("x")]
        matrix = {"x": {"s": 100}}
        first = greedy_assign([make_shift("s")], staff, matrix)
        second = greedy_assign([make_shift("s")], staff, matrix)
        assert first[0].staff_ids == second[0].staff_ids == ["x"]

    def test_existing_assignments_count_towards_headcount(self):
        staff = [make_staff("x"), make_staff("y")]
        shift = make_shift("s", required=2, assigned=["held"])
        matrix = {"x": {"s": 100}, "y": {"s": 100}}
        results = greedy_assign([shift], staff, matrix)
        assert results[0].staff_ids == ["x"]
        assert results[0].existing_count == 1
        assert not results[0].is_understaffed

    def test_full_and_inactive_shifts_untouched(self):
        staff = [make_staff("x")]
        shifts = [
            make_shift("full", assigned=["held"]),
            make_shift("off", is_active=False),
        ]
        matrix = {"x": {"full": 100, "off": 100}}
        results = greedy_assign(shifts, staff, matrix)
        assert [r.staff_ids for r in results] == [[], []]

    def test_zero_requirement_gets_nobody(self):
        results = greedy_assign([make_shift("s", required=0)], [make_staff("x")], {"x": {"s": 100}})
        assert results[0].staff_ids == []
        assert not results[0].is_understaffed
