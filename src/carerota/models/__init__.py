# carerota/models - Data models for the care rota core
from .availability import (
    AvailabilityRecord,
    NoPreference,
    Preference,
    ShiftTypePreference,
    TimeWindowPreference,
)
from .constraints import (
    AppliesTo,
    ConstraintCategory,
    ConstraintContext,
    ConstraintType,
    ConstraintWeight,
    ConstraintWeightSet,
    SolverConfig,
    default_constraint_weights,
)
from .schedule import AssignmentEntry, ConstraintViolation, ShiftAssignmentResult, SolveResult
from .shift import AssignmentStatus, Shift, ShiftAssignment, ShiftType, StaffingStatus
from .staff import EmploymentType, HomeAffiliation, StaffMember
from .swap import ConflictSnapshot, ShiftSwapRequest, SwapStatus
from .timeoff import TimeOffRequest, TimeOffStatus

__all__ = [
    "StaffMember", "EmploymentType", "HomeAffiliation",
    "Shift", "ShiftAssignment", "ShiftType", "AssignmentStatus", "StaffingStatus",
    "AvailabilityRecord", "Preference", "NoPreference", "ShiftTypePreference", "TimeWindowPreference",
    "TimeOffRequest", "TimeOffStatus",
    "ConstraintWeight", "ConstraintWeightSet", "ConstraintCategory", "ConstraintType",
    "ConstraintContext", "AppliesTo", "SolverConfig", "default_constraint_weights",
    "AssignmentEntry", "ShiftAssignmentResult", "ConstraintViolation", "SolveResult",
    "ShiftSwapRequest", "SwapStatus", "ConflictSnapshot",
]
