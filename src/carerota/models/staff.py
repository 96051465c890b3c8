"""Staff member model for care-home employees."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class EmploymentType(str, Enum):
    """Employment contracts, each with an implicit weekly-hour band."""
    FULL_TIME = "fulltime"
    PART_TIME = "parttime"
    BANK = "bank"

    @property
    def hours_band(self) -> Tuple[float, float]:
        """(minimum, maximum) expected weekly hours."""
        return {
            EmploymentType.FULL_TIME: (38.0, 50.0),
            EmploymentType.PART_TIME: (0.0, 24.0),
            EmploymentType.BANK: (0.0, 20.0),
        }[self]

    @property
    def min_weekly_hours(self) -> float:
        return self.hours_band[0]

    @property
    def max_weekly_hours(self) -> float:
        return self.hours_band[1]

    @classmethod
    def from_string(cls, s: str) -> "EmploymentType":
        """Parse employment type from common spellings."""
        mapping = {
            "fulltime": cls.FULL_TIME, "full-time": cls.FULL_TIME, "full_time": cls.FULL_TIME,
            "ft": cls.FULL_TIME,
            "parttime": cls.PART_TIME, "part-time": cls.PART_TIME, "part_time": cls.PART_TIME,
            "pt": cls.PART_TIME,
            "bank": cls.BANK, "relief": cls.BANK,
        }
        key = str(s).strip().lower()
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown employment type: {s!r}")


@dataclass(frozen=True)
class HomeAffiliation:
    """Access of a staff member to a care home."""
    home_id: str
    is_default: bool = False


@dataclass
class StaffMember:
    """A member of staff as supplied by the roster snapshot."""

    id: str
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    skills: List[str] = field(default_factory=list)
    preferred_shift_types: List[str] = field(default_factory=list)
    homes: List[HomeAffiliation] = field(default_factory=list)
    name: str = ""

    def __post_init__(self):
        self.id = str(self.id).strip()
        if not self.id:
            raise ValueError("Staff id is required")
        if not isinstance(self.employment_type, EmploymentType):
            self.employment_type = EmploymentType.from_string(self.employment_type)
        self.homes = [
            h if isinstance(h, HomeAffiliation) else HomeAffiliation(home_id=str(h))
            for h in self.homes
        ]

    @property
    def home_ids(self) -> List[str]:
        return [h.home_id for h in self.homes]

    @property
    def default_home_id(self) -> Optional[str]:
        """The flagged default home, else the first affiliation."""
        for h in self.homes:
            if h.is_default:
                return h.home_id
        return self.homes[0].home_id if self.homes else None

    def has_home_access(self, home_id: str) -> bool:
        return str(home_id) in self.home_ids

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "type": self.employment_type.value,
            "skills": list(self.skills),
            "preferred_shift_types": list(self.preferred_shift_types),
            "homes": [{"home_id": h.home_id, "is_default": h.is_default} for h in self.homes],
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "StaffMember":
        """Create from dictionary.

        Accepts ``homes`` as affiliation dicts or ``home_ids`` as plain ids;
        with plain ids the first one is the default.
        """
        homes = []
        for h in d.get("homes") or []:
            if isinstance(h, dict):
                homes.append(HomeAffiliation(str(h["home_id"]), bool(h.get("is_default", False))))
            else:
                homes.append(HomeAffiliation(str(h)))
        if not homes:
            ids = [str(h) for h in d.get("home_ids") or []]
            homes = [HomeAffiliation(h, is_default=(i == 0)) for i, h in enumerate(ids)]
        return cls(
            id=str(d.get("id", "")),
            employment_type=d.get("type") or d.get("employment_type") or EmploymentType.FULL_TIME,
            skills=list(d.get("skills") or []),
            preferred_shift_types=list(d.get("preferred_shift_types") or []),
            homes=homes,
            name=str(d.get("name", "")),
        )
