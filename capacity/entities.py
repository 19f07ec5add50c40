"""Domain records for operations, skills, workers, stations and substations."""

import re
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from capacity.enums import StationStatus, TechnicalStatus
from capacity.errors import ValidationError

_SUFFIX_RE = re.compile(r"-(\d+)$")


def unique(values: Iterable[str]) -> List[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: Dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        value = str(value).strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


def substation_suffix(code: str) -> int:
    """Numeric suffix of a substation code; codes without one sort last."""
    match = _SUFFIX_RE.search(str(code or ""))
    return int(match.group(1)) if match else sys.maxsize


@dataclass(frozen=True)
class Operation:
    id: str
    name: str
    type: str = ""
    semi_output_code: str = ""
    required_skills: frozenset = frozenset()


@dataclass(frozen=True)
class Skill:
    id: str
    name: str


@dataclass(frozen=True)
class Worker:
    id: str
    name: str
    skills: frozenset = frozenset()
    status: str = "available"
    current_station_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "skills": sorted(self.skills),
            "status": self.status,
            "current_station_id": self.current_station_id,
        }


@dataclass(frozen=True)
class Substation:
    code: str
    technical_status: TechnicalStatus = TechnicalStatus.ACTIVE

    @property
    def number(self) -> int:
        return substation_suffix(self.code)

    def to_dict(self) -> dict:
        return {"code": self.code, "technical_status": str(self.technical_status)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["Substation"]:
        """Build a substation from a payload; entries without a code are dropped."""
        code = str(data.get("code") or "").strip()
        if not code:
            return None
        status = data.get("technical_status") or data.get("status")
        if status not in {member.value for member in TechnicalStatus}:
            status = TechnicalStatus.ACTIVE
        return cls(code=code, technical_status=TechnicalStatus(status))


def sort_substations(substations: Iterable[Substation]) -> List[Substation]:
    return sorted(substations, key=lambda sub: sub.number)


@dataclass
class Station:
    """
    A capacity unit grouping one or more operations.

    Attributes:
        id: ST-{combined code}-{sequence}, immutable once assigned
        operation_ids: Assigned operations, never empty
        station_specific_skills: Skills required on top of the inherited ones
        substations: Individually tracked units, ordered by numeric suffix
    """
    id: str
    name: str
    operation_ids: List[str]
    description: str = ""
    location: str = ""
    status: StationStatus = StationStatus.ACTIVE
    station_specific_skills: List[str] = field(default_factory=list)
    substations: List[Substation] = field(default_factory=list)

    def __post_init__(self):
        self.operation_ids = unique(self.operation_ids)
        self.station_specific_skills = unique(self.station_specific_skills)
        self.substations = sort_substations(self.substations)

    def find_substation(self, code: str) -> Optional[Substation]:
        for substation in self.substations:
            if substation.code == code:
                return substation
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "status": str(self.status),
            "operation_ids": list(self.operation_ids),
            "station_specific_skills": list(self.station_specific_skills),
            "substations": [sub.to_dict() for sub in self.substations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Station":
        try:
            status = StationStatus(data.get("status") or StationStatus.ACTIVE)
        except ValueError:
            raise ValidationError(f"Unknown station status: {data.get('status')!r}")

        substations = [
            sub
            for sub in (Substation.from_dict(entry) for entry in data.get("substations") or [])
            if sub is not None
        ]
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=data.get("description") or "",
            location=data.get("location") or "",
            status=status,
            operation_ids=list(data.get("operation_ids") or []),
            station_specific_skills=list(data.get("station_specific_skills") or []),
            substations=substations,
        )


@dataclass
class StationDraft:
    """User-editable fields of a station, before an id is assigned."""
    name: str
    operation_ids: List[str]
    description: str = ""
    location: str = ""
    status: StationStatus = StationStatus.ACTIVE
    station_specific_skills: List[str] = field(default_factory=list)

    def validate(self) -> None:
        if not (self.name or "").strip():
            raise ValidationError("Station name must not be empty")
        if not unique(self.operation_ids):
            raise ValidationError("Select at least one operation for the station")
        try:
            self.status = StationStatus(self.status)
        except ValueError:
            raise ValidationError(f"Unknown station status: {self.status!r}")
