"""Solve results: per-shift assignments, penalty and violations."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd


@dataclass
class AssignmentEntry:
    """A staff member placed on a shift with the score it was placed at."""
    staff_id: str
    score: int


@dataclass
class ShiftAssignmentResult:
    """Ordered staff entries chosen for one shift."""
    shift_id: str
    required_staff_count: int
    entries: List[AssignmentEntry] = field(default_factory=list)
    existing_count: int = 0  # Assignments the shift already had before the solve

    @property
    def staff_ids(self) -> List[str]:
        return [e.staff_id for e in self.entries]

    @property
    def filled_count(self) -> int:
        return self.existing_count + len(self.entries)

    @property
    def is_understaffed(self) -> bool:
        return self.filled_count < self.required_staff_count

    def copy(self) -> "ShiftAssignmentResult":
        return ShiftAssignmentResult(
            self.shift_id,
            self.required_staff_count,
            [AssignmentEntry(e.staff_id, e.score) for e in self.entries],
            self.existing_count,
        )


@dataclass
class ConstraintViolation:
    """A rule the final assignment does not satisfy."""
    constraint: str          # e.g. "min_staff_required"
    message: str
    shift_id: str = ""
    staff_id: str = ""
    severity: str = "critical"  # "critical", "warning"
    penalty: float = 0.0

    def to_dict(self) -> dict:
        return {
            "constraint": self.constraint,
            "message": self.message,
            "shift_id": self.shift_id,
            "staff_id": self.staff_id,
            "severity": self.severity,
            "penalty": self.penalty,
        }


@dataclass
class SolveResult:
    """Complete result of one solve invocation."""

    assignments: List[ShiftAssignmentResult] = field(default_factory=list)
    total_penalty: int = 0
    violated_constraints: List[ConstraintViolation] = field(default_factory=list)

    # Diagnostics
    warnings: List[ConstraintViolation] = field(default_factory=list)
    iterations: int = 0
    greedy_penalty: int = 0
    solve_time_seconds: float = 0.0
    employment_distribution: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def assignments_by_shift(self) -> Dict[str, List[str]]:
        return {a.shift_id: a.staff_ids for a in self.assignments}

    def for_shift(self, shift_id: str) -> Optional[ShiftAssignmentResult]:
        for a in self.assignments:
            if a.shift_id == shift_id:
                return a
        return None

    @property
    def assigned_count(self) -> int:
        return sum(len(a.entries) for a in self.assignments)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per (shift, staff) entry."""
        if not self.assigned_count:
            return pd.DataFrame(columns=["shift_id", "staff_id", "score", "position"])
        rows = [
            {"shift_id": a.shift_id, "staff_id": e.staff_id, "score": e.score, "position": pos}
            for a in self.assignments
            for pos, e in enumerate(a.entries)
        ]
        return pd.DataFrame(rows)

    def coverage_frame(self) -> pd.DataFrame:
        """Required versus assigned headcount per shift."""
        rows = [
            {
                "shift_id": a.shift_id,
                "required": a.required_staff_count,
                "assigned": a.filled_count,
                "missing": max(a.required_staff_count - a.filled_count, 0),
            }
            for a in self.assignments
        ]
        return pd.DataFrame(rows, columns=["shift_id", "required", "assigned", "missing"])

    def summary(self) -> Dict[str, Any]:
        """Get summary dictionary for display."""
        return {
            "shifts": len(self.assignments),
            "assigned": self.assigned_count,
            "total_penalty": self.total_penalty,
            "greedy_penalty": self.greedy_penalty,
            "iterations": self.iterations,
            "violations": len(self.violated_constraints),
            "warnings": len(self.warnings),
            "solve_time": round(self.solve_time_seconds, 3),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignments": [
                {
                    "shift_id": a.shift_id,
                    "required_staff_count": a.required_staff_count,
                    "existing_count": a.existing_count,
                    "entries": [{"staff_id": e.staff_id, "score": e.score} for e in a.entries],
                }
                for a in self.assignments
            ],
            "total_penalty": self.total_penalty,
            "violated_constraints": [v.to_dict() for v in self.violated_constraints],
            "warnings": [w.to_dict() for w in self.warnings],
            "iterations": self.iterations,
            "employment_distribution": self.employment_distribution,
        }
