"""
Pydantic Validated Models
=========================
Strict validation layer for input snapshots and solver configuration.

The solver works on the dataclass models; these schemas check records at
the boundary (files, CLI, callers handing over raw dicts) and convert to
them.

Usage:
    from carerota.models.validated import Snapshot

    snapshot = Snapshot.model_validate(raw)
    shifts = snapshot.to_shifts()
"""
import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from carerota.models.availability import AvailabilityRecord, preferences_from_fields
from carerota.models.constraints import (
    AppliesTo,
    ConstraintCategory,
    ConstraintType,
    ConstraintWeight,
    ConstraintWeightSet,
    SolverConfig,
)
from carerota.models.shift import Shift, ShiftAssignment, ShiftType
from carerota.models.staff import EmploymentType, HomeAffiliation, StaffMember
from carerota.models.timeoff import TimeOffRequest, TimeOffStatus
from carerota.utils.time_utils import parse_hhmm


def _check_hhmm(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    parse_hhmm(v)
    return v


class EmploymentTypeEnum(str, Enum):
    FULL_TIME = "fulltime"
    PART_TIME = "parttime"
    BANK = "bank"


class StaffRecord(BaseModel):
    """Staff roster row: ``{id, type, skills, preferred_shift_types, home_ids}``."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    employment_type: EmploymentTypeEnum = Field(default=EmploymentTypeEnum.FULL_TIME, alias="type")
    skills: List[str] = Field(default_factory=list)
    preferred_shift_types: List[str] = Field(default_factory=list)
    home_ids: List[str] = Field(default_factory=list)
    default_home_id: Optional[str] = None
    name: str = ""

    @field_validator("employment_type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return EmploymentType.from_string(v).value
        return v

    @field_validator("id", "default_home_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return None if v is None else str(v)

    @field_validator("home_ids", mode="before")
    @classmethod
    def coerce_home_ids(cls, v):
        return [str(h) for h in (v or [])]

    @model_validator(mode="after")
    def check_default_home(self):
        if self.default_home_id and self.default_home_id not in self.home_ids:
            raise ValueError(f"default_home_id {self.default_home_id} is not among home_ids")
        return self

    def to_model(self) -> StaffMember:
        default = self.default_home_id or (self.home_ids[0] if self.home_ids else None)
        return StaffMember(
            id=self.id,
            employment_type=EmploymentType(self.employment_type.value),
            skills=list(self.skills),
            preferred_shift_types=list(self.preferred_shift_types),
            homes=[HomeAffiliation(h, is_default=(h == default)) for h in self.home_ids],
            name=self.name,
        )


class AssignmentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    status: str = "assigned"
    note: str = ""

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v)


class ShiftRecord(BaseModel):
    """Shift row for the solve window."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    home_id: str
    service_id: str = ""
    date: dt.date
    start_time: str
    end_time: str
    shift_type: str
    required_staff_count: int = Field(default=1, ge=0, le=100)
    assigned_staff: List[AssignmentRecord] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("id", "home_id", "service_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return "" if v is None else str(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @field_validator("shift_type")
    @classmethod
    def validate_shift_type(cls, v: str) -> str:
        return ShiftType.from_string(v).value

    @field_validator("assigned_staff", mode="before")
    @classmethod
    def accept_plain_ids(cls, v):
        return [{"user_id": a} if isinstance(a, (str, int)) else a for a in (v or [])]

    def to_model(self) -> Shift:
        return Shift(
            id=self.id,
            home_id=self.home_id,
            service_id=self.service_id,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            shift_type=ShiftType(self.shift_type),
            required_staff_count=self.required_staff_count,
            assigned_staff=[
                ShiftAssignment(a.user_id, a.status, note=a.note) for a in self.assigned_staff
            ],
            is_active=self.is_active,
        )


class AvailabilityRecordIn(BaseModel):
    """Availability row: ``{user_id, date, is_available, preferred_shift_type?, start_time?, end_time?}``."""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    date: dt.date
    is_available: bool = True
    preferred_shift_type: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        return _check_hhmm(v)

    @model_validator(mode="after")
    def window_needs_both_ends(self):
        if bool(self.start_time) != bool(self.end_time):
            raise ValueError("A preferred time window needs both start_time and end_time")
        return self

    def to_model(self) -> AvailabilityRecord:
        return AvailabilityRecord(
            user_id=self.user_id,
            date=self.date,
            is_available=self.is_available,
            preferences=preferences_from_fields(
                self.preferred_shift_type, self.start_time, self.end_time,
            ),
        )


class TimeOffRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    start_date: dt.date
    end_date: dt.date
    status: TimeOffStatus = TimeOffStatus.APPROVED
    request_type: str = "annual_leave"
    reason: str = ""
    id: str = ""

    @field_validator("user_id", "id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return "" if v is None else str(v)

    @model_validator(mode="after")
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    def to_model(self) -> TimeOffRequest:
        return TimeOffRequest(
            user_id=self.user_id,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
            request_type=self.request_type,
            reason=self.reason,
            id=self.id,
        )


class ConstraintWeightRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    constraint_type: ConstraintType
    category: ConstraintCategory
    weight: float = Field(ge=0, le=1000)
    applies_to: AppliesTo = AppliesTo.ALL
    target_id: Optional[str] = None
    is_active: bool = True
    description: str = Field(default="", max_length=500)
    parameters: dict = Field(default_factory=dict)

    @model_validator(mode="after")
    def scoped_needs_target(self):
        if self.applies_to != AppliesTo.ALL and not self.target_id:
            raise ValueError(f"{self.applies_to.value} constraint needs a target_id")
        return self

    def to_model(self) -> ConstraintWeight:
        return ConstraintWeight(
            name=self.name,
            constraint_type=self.constraint_type,
            category=self.category,
            weight=self.weight,
            applies_to=self.applies_to,
            target_id=self.target_id,
            is_active=self.is_active,
            description=self.description,
            parameters=dict(self.parameters),
        )


class ValidatedSolverConfig(BaseModel):
    """
    Pydantic-validated solver configuration.

    Use this for strict validation at boundaries.
    Can be converted to/from the dataclass SolverConfig.
    """
    model_config = ConfigDict(validate_assignment=True)

    max_iterations: int = Field(default=100, ge=0, le=10_000, description="Local-search pass cap")
    min_rest_minutes: int = Field(default=660, ge=0, le=24 * 60)
    max_daily_hours: float = Field(default=24.0, gt=0, le=24)
    swap_expiry_days: int = Field(default=7, ge=1, le=90)
    shift_type_mismatch_penalty: int = Field(default=30, ge=0, le=100)
    time_window_mismatch_penalty: int = Field(default=20, ge=0, le=100)
    employment_type_scoring: bool = False

    def to_dataclass(self) -> SolverConfig:
        """Convert to dataclass SolverConfig for solver compatibility."""
        return SolverConfig(**self.model_dump())

    @classmethod
    def from_dataclass(cls, config: SolverConfig) -> "ValidatedSolverConfig":
        return cls(**config.to_dict())


class Snapshot(BaseModel):
    """Everything one solve needs, as handed over by the caller."""
    model_config = ConfigDict(extra="ignore")

    staff: List[StaffRecord] = Field(default_factory=list)
    shifts: List[ShiftRecord] = Field(default_factory=list)
    availability: List[AvailabilityRecordIn] = Field(default_factory=list)
    time_off: List[TimeOffRecord] = Field(default_factory=list)
    constraints: Optional[List[ConstraintWeightRecord]] = None
    config: ValidatedSolverConfig = Field(default_factory=ValidatedSolverConfig)

    @model_validator(mode="after")
    def unique_ids(self):
        for label, ids in (("staff", [s.id for s in self.staff]), ("shift", [s.id for s in self.shifts])):
            seen = set()
            for i in ids:
                if i in seen:
                    raise ValueError(f"Duplicate {label} id: {i}")
                seen.add(i)
        return self

    def to_staff(self) -> List[StaffMember]:
        return [s.to_model() for s in self.staff]

    def to_shifts(self) -> List[Shift]:
        return [s.to_model() for s in self.shifts]

    def to_availability(self) -> List[AvailabilityRecord]:
        return [a.to_model() for a in self.availability]

    def to_time_off(self) -> List[TimeOffRequest]:
        return [t.to_model() for t in self.time_off]

    def to_weights(self) -> Optional[ConstraintWeightSet]:
        if self.constraints is None:
            return None
        return ConstraintWeightSet(tuple(c.to_model() for c in self.constraints))

    def to_config(self) -> SolverConfig:
        return self.config.to_dataclass()
