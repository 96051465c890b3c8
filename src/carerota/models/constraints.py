"""Constraint weights and solver configuration."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


class ConstraintCategory(str, Enum):
    HARD = "hard"    # Violation zeroes the score
    SOFT = "soft"    # Violation subtracts a bounded penalty


class AppliesTo(str, Enum):
    ALL = "all"
    SPECIFIC_HOME = "specific_home"
    SPECIFIC_SERVICE = "specific_service"
    SPECIFIC_ROLE = "specific_role"
    SPECIFIC_EMPLOYMENT_TYPE = "specific_employment_type"


class ConstraintType(str, Enum):
    NO_DOUBLE_BOOKING = "no_double_booking"
    RESPECT_TIME_OFF = "respect_time_off"
    MIN_STAFF_REQUIRED = "min_staff_required"
    MIN_HOURS_PER_WEEK = "min_hours_per_week"
    MAX_HOURS_PER_WEEK = "max_hours_per_week"
    CONSECUTIVE_DAYS_LIMIT = "consecutive_days_limit"
    PREFERRED_SHIFT_TYPES = "preferred_shift_types"
    SKILL_REQUIREMENTS = "skill_requirements"
    EVEN_DISTRIBUTION = "even_distribution"
    AVOID_OVERTIME = "avoid_overtime"
    PREFERRED_SERVICES = "preferred_services"
    EMPLOYMENT_TYPE_COMPLIANCE = "employment_type_compliance"
    SHIFT_PRIORITY = "shift_priority"


@dataclass(frozen=True)
class ConstraintContext:
    """Where a solve or check runs; used to filter scoped weights."""
    home_ids: Tuple[str, ...] = ()
    service_id: Optional[str] = None
    role: Optional[str] = None
    employment_type: Optional[str] = None


@dataclass(frozen=True)
class ConstraintWeight:
    """A named scheduling rule with its category, weight and scope."""

    name: str
    constraint_type: ConstraintType
    category: ConstraintCategory
    weight: float
    applies_to: AppliesTo = AppliesTo.ALL
    target_id: Optional[str] = None
    is_active: bool = True
    description: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        # frozen: coerce through object.__setattr__
        if not isinstance(self.constraint_type, ConstraintType):
            object.__setattr__(self, "constraint_type", ConstraintType(self.constraint_type))
        if not isinstance(self.category, ConstraintCategory):
            object.__setattr__(self, "category", ConstraintCategory(self.category))
        if not isinstance(self.applies_to, AppliesTo):
            object.__setattr__(self, "applies_to", AppliesTo(self.applies_to))
        if not 0 <= float(self.weight) <= 1000:
            raise ValueError(f"Weight must be within 0..1000, got {self.weight}")
        if self.applies_to != AppliesTo.ALL and not self.target_id:
            raise ValueError(f"Constraint {self.name!r} scoped to {self.applies_to.value} needs a target_id")

    @property
    def is_hard(self) -> bool:
        return self.category == ConstraintCategory.HARD

    def applies_to_context(self, context: ConstraintContext) -> bool:
        """Check if this constraint applies to a given context."""
        if self.applies_to == AppliesTo.ALL:
            return True
        target = str(self.target_id)
        if self.applies_to == AppliesTo.SPECIFIC_HOME:
            return target in {str(h) for h in context.home_ids}
        if self.applies_to == AppliesTo.SPECIFIC_SERVICE:
            return context.service_id is not None and str(context.service_id) == target
        if self.applies_to == AppliesTo.SPECIFIC_ROLE:
            return context.role is not None and context.role == target
        if self.applies_to == AppliesTo.SPECIFIC_EMPLOYMENT_TYPE:
            return context.employment_type is not None and context.employment_type == target
        return False

    def penalty_score(self, violation_level: float = 1.0) -> float:
        """Hard rules weigh a thousandfold; soft rules use the weight directly."""
        if self.is_hard:
            return self.weight * 1000 * violation_level
        return self.weight * violation_level

    def hours_penalty(self, employment_type: str, actual_hours: float,
                      target_hours: Optional[float] = None) -> float:
        """Penalty for a weekly total under this rule, 0 when compliant.

        Only the hour-based rule types produce a penalty; every tenth of an
        hour band overshoot adds the base penalty again.
        """
        params = self.parameters
        if self.constraint_type == ConstraintType.MIN_HOURS_PER_WEEK:
            min_hours = params.get(employment_type, 0)
            if actual_hours < min_hours:
                return self.penalty_score() * (1 + (min_hours - actual_hours) / 10)
            return 0.0

        if self.constraint_type == ConstraintType.MAX_HOURS_PER_WEEK:
            max_hours = params.get(employment_type, 40)
            if actual_hours > max_hours:
                penalty = self.penalty_score()
                if actual_hours > params.get("overtime_threshold", 40):
                    penalty *= params.get("overtime_penalty_multiplier", 1.5)
                return penalty * (1 + (actual_hours - max_hours) / 10)
            return 0.0

        if self.constraint_type == ConstraintType.EMPLOYMENT_TYPE_COMPLIANCE:
            preference = params.get(f"{employment_type}_preference", 0.5)
            ratio = actual_hours / (target_hours or 40)
            if abs(ratio - preference) > 0.2:
                return self.penalty_score() * abs(ratio - preference)
            return 0.0

        return 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "constraint_type": self.constraint_type.value,
            "category": self.category.value,
            "weight": self.weight,
            "applies_to": self.applies_to.value,
            "target_id": self.target_id,
            "is_active": self.is_active,
            "description": self.description,
            "parameters": dict(self.parameters),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ConstraintWeight":
        return cls(
            name=str(d["name"]),
            constraint_type=d["constraint_type"],
            category=d["category"],
            weight=float(d["weight"]),
            applies_to=d.get("applies_to") or AppliesTo.ALL,
            target_id=d.get("target_id"),
            is_active=bool(d.get("is_active", True)),
            description=d.get("description") or "",
            parameters=dict(d.get("parameters") or {}),
        )


@dataclass(frozen=True)
class ConstraintWeightSet:
    """Immutable collection of weights loaded once for a solve."""

    weights: Tuple[ConstraintWeight, ...] = ()

    def __iter__(self) -> Iterator[ConstraintWeight]:
        return iter(self.weights)

    def __len__(self) -> int:
        return len(self.weights)

    def active(self) -> "ConstraintWeightSet":
        """Active weights, heaviest first."""
        ordered = sorted((w for w in self.weights if w.is_active), key=lambda w: -w.weight)
        return ConstraintWeightSet(tuple(ordered))

    def for_context(self, context: ConstraintContext) -> "ConstraintWeightSet":
        return ConstraintWeightSet(tuple(
            w for w in self.weights if w.is_active and w.applies_to_context(context)
        ))

    def by_type(self, constraint_type: ConstraintType) -> Optional[ConstraintWeight]:
        for w in self.weights:
            if w.is_active and w.constraint_type == constraint_type:
                return w
        return None

    def has(self, constraint_type: ConstraintType) -> bool:
        return self.by_type(constraint_type) is not None

    @classmethod
    def of(cls, weights) -> "ConstraintWeightSet":
        return cls(tuple(weights))


def default_constraint_weights() -> ConstraintWeightSet:
    """The stock rule set a fresh installation starts with."""
    hard = ConstraintCategory.HARD
    soft = ConstraintCategory.SOFT
    return ConstraintWeightSet((
        ConstraintWeight("No Double Booking", ConstraintType.NO_DOUBLE_BOOKING, hard, 1000,
                         description="Staff cannot be assigned to overlapping shifts"),
        ConstraintWeight("Respect Time Off", ConstraintType.RESPECT_TIME_OFF, hard, 1000,
                         description="Staff cannot be assigned during approved time off"),
        ConstraintWeight("Minimum Staff Required", ConstraintType.MIN_STAFF_REQUIRED, hard, 1000,
                         description="All shifts must meet minimum staffing requirements"),
        ConstraintWeight("Minimum Hours Per Week", ConstraintType.MIN_HOURS_PER_WEEK, hard, 800,
                         description="Staff must meet minimum weekly hours based on employment type",
                         parameters={"fulltime": 38, "parttime": 0, "bank": 0}),
        ConstraintWeight("Maximum Hours Per Week", ConstraintType.MAX_HOURS_PER_WEEK, soft, 100,
                         description="Staff should not exceed maximum weekly hours based on employment type",
                         parameters={"fulltime": 80, "parttime": 20, "bank": 20,
                                     "overtime_threshold": 40, "overtime_penalty_multiplier": 1.5}),
        ConstraintWeight("Consecutive Days Limit", ConstraintType.CONSECUTIVE_DAYS_LIMIT, soft, 30,
                         description="Limit consecutive working days",
                         parameters={"max_consecutive": 6}),
        ConstraintWeight("Preferred Shift Types", ConstraintType.PREFERRED_SHIFT_TYPES, soft, 20,
                         description="Respect staff shift type preferences"),
        ConstraintWeight("Skill Requirements", ConstraintType.SKILL_REQUIREMENTS, soft, 40,
                         description="Ensure staff have required skills for services"),
        ConstraintWeight("Even Distribution", ConstraintType.EVEN_DISTRIBUTION, soft, 25,
                         description="Distribute shifts evenly among staff"),
        ConstraintWeight("Employment Type Compliance", ConstraintType.EMPLOYMENT_TYPE_COMPLIANCE, soft, 60,
                         description="Ensure scheduling respects employment type constraints",
                         parameters={"fulltime_preference": 0.8, "parttime_preference": 0.6,
                                     "bank_preference": 0.4}),
        ConstraintWeight("Shift Priority", ConstraintType.SHIFT_PRIORITY, soft, 50,
                         description="Prioritize scheduling for certain employment types",
                         parameters={"priority_order": ["fulltime", "parttime", "bank"]}),
    ))


@dataclass
class SolverConfig:
    """Configuration for the solver and the conflict rules."""

    # Local search
    max_iterations: int = 100

    # Conflict rules
    min_rest_minutes: int = 11 * 60
    max_daily_hours: float = 24.0

    # Swap lifecycle
    swap_expiry_days: int = 7

    # Scoring
    shift_type_mismatch_penalty: int = 30
    time_window_mismatch_penalty: int = 20
    employment_type_scoring: bool = False  # Adjust scores by weekly-hour bands

    def to_dict(self) -> Dict:
        """Serialize to dictionary."""
        return {
            "max_iterations": self.max_iterations,
            "min_rest_minutes": self.min_rest_minutes,
            "max_daily_hours": self.max_daily_hours,
            "swap_expiry_days": self.swap_expiry_days,
            "shift_type_mismatch_penalty": self.shift_type_mismatch_penalty,
            "time_window_mismatch_penalty": self.time_window_mismatch_penalty,
            "employment_type_scoring": self.employment_type_scoring,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "SolverConfig":
        """Create from dictionary, ignoring unknown keys."""
        cfg = cls()
        for key, value in d.items():
            if hasattr(cfg, key):
                setattr(cfg, key, value)
        return cfg
