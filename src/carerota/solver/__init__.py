# carerota/solver - Scoring, assignment, improvement and conflict rules
from .engine import solve
from .greedy import greedy_assign
from .hours import employment_distribution, validate_weekly_hours
from .local_search import LocalSearchOutcome, improve_assignments, total_penalty, violated_constraints
from .matrix import build_constraint_matrix
from .validation import Conflict, ConflictReport, ConflictType, ConflictValidator

__all__ = [
    "solve",
    "build_constraint_matrix",
    "greedy_assign",
    "improve_assignments",
    "LocalSearchOutcome",
    "total_penalty",
    "violated_constraints",
    "employment_distribution",
    "validate_weekly_hours",
    "ConflictValidator",
    "ConflictReport",
    "Conflict",
    "ConflictType",
]
