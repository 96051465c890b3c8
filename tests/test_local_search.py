"""Tests for the local-search optimizer."""
import logging

from carerota.models.schedule import AssignmentEntry, ShiftAssignmentResult
from carerota.solver.local_search import improve_assignments, total_penalty


def _result(shift_id, *entries, required=None):
    placed = [AssignmentEntry(sid, score) for sid, score in entries]
    return ShiftAssignmentResult(shift_id, required if required is not None else len(placed), placed)


class TestImproveAssignments:
    """Tests for improve_assignments."""

    def test_swaps_into_better_fit(self):
        matrix = {"a": {"i": 40, "j": 100}, "b": {"i": 100, "j": 40}}
        start = [_result("i", ("a", 40)), _result("j", ("b", 40))]
        outcome = improve_assignments(start, matrix)

        assert outcome.assignments[0].staff_ids == ["b"]
        assert outcome.assignments[1].staff_ids == ["a"]
        assert outcome.initial_penalty == 120
        assert outcome.final_penalty == 0
        assert outcome.swaps_applied == 1
        assert outcome.converged
        # One improving pass plus the pass that found nothing
        assert outcome.iterations == 2

    def test_input_not_mutated(self):
        matrix = {"a": {"i": 40, "j": 100}, "b": {"i": 100, "j": 40}}
        start = [_result("i", ("a", 40)), _result("j", ("b", 40))]
        improve_assignments(start, matrix)
        assert start[0].staff_ids == ["a"]
        assert start[0].entries[0].score == 40

    def test_never_moves_into_excluded_slot(self):
        # Exchanging would raise the score sum (100 + 0 vs 10 + 10), but a is excluded from j
        matrix = {"a": {"i": 10, "j": 0}, "b": {"i": 100, "j": 10}}
        start = [_result("i", ("a", 10)), _result("j", ("b", 10))]
        outcome = improve_assignments(start, matrix)

        assert outcome.assignments[0].staff_ids == ["a"]
        assert outcome.assignments[1].staff_ids == ["b"]
        assert outcome.swaps_applied == 0
        assert all(e.score > 0 for a in outcome.assignments for e in a.entries)

    def test_takes_best_exchange_first(self):
        matrix = {
            "a": {"i": 50, "j": 60, "k": 100},
            "b": {"i": 60, "j": 50, "k": 10},
            "c": {"i": 100, "j": 10, "k": 50},
        }
        start = [_result("i", ("a", 50)), _result("j", ("b", 50)), _result("k", ("c", 50))]
        outcome = improve_assignments(start, matrix, max_iterations=1)
        # a<->c (+100) beats a<->b (+20)
        assert outcome.assignments[0].staff_ids == ["c"]
        assert outcome.assignments[2].staff_ids == ["a"]

    def test_penalty_never_increases(self):
        matrix = {
            "a": {"i": 30, "j": 90, "k": 60},
            "b": {"i": 80, "j": 20, "k": 70},
            "c": {"i": 50, "j": 60, "k": 40},
            "d": {"i": 90, "j": 50, "k": 30},
        }
        start = [
            _result("i", ("a", 30), ("c", 50)),
            _result("j", ("b", 20)),
            _result("k", ("d", 30)),
        ]
        outcome = improve_assignments(start, matrix)
        assert outcome.final_penalty <= total_penalty(start)
        assert [len(a.entries) for a in outcome.assignments] == [2, 1, 1]
        assert sorted(s for a in outcome.assignments for s in a.staff_ids) == ["a", "b", "c", "d"]

    def test_iteration_cap(self, caplog):
        matrix = {"a": {"i": 40, "j": 100}, "b": {"i": 100, "j": 40}}
        start = [_result("i", ("a", 40)), _result("j", ("b", 40))]
        with caplog.at_level(logging.WARNING, logger="carerota.solver.local_search"):
            outcome = improve_assignments(start, matrix, max_iterations=1)
        assert outcome.iterations == 1
        assert not outcome.converged
        assert "iteration cap" in caplog.text

    def test_zero_iterations_returns_copy(self):
        matrix = {"a": {"i": 40, "j": 100}, "b": {"i": 100, "j": 40}}
        start = [_result("i", ("a", 40)), _result("j", ("b", 40))]
        outcome = improve_assignments(start, matrix, max_iterations=0)
        assert outcome.iterations == 0
        assert outcome.assignments[0].staff_ids == ["a"]
        assert outcome.assignments[0] is not start[0]

    def test_empty_input(self):
        outcome = improve_assignments([], {})
        assert outcome.assignments == []
        assert outcome.final_penalty == 0
        assert outcome.converged

    def test_understaffed_cardinality_preserved(self):
        matrix = {"a": {"i": 40, "j": 100}, "b": {"i": 100, "j": 40}}
        start = [_result("i", ("a", 40), required=2), _result("j", ("b", 40))]
        outcome = improve_assignments(start, matrix)
        assert outcome.assignments[0].is_understaffed
        assert len(outcome.assignments[0].entries) == 1
