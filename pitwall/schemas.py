"""Value objects shared by the scoring engine and the API.

Field names are snake_case in Python and camelCase on the wire and in the
stored JSON documents.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PointsSchedule(CamelModel):
    """Points per finishing/qualifying position plus the fastest-lap bonus."""

    grand_prix_finish: List[int] = Field(default_factory=list)
    sprint_finish: List[int] = Field(default_factory=list)
    gp_qualifying: List[int] = Field(default_factory=list)
    sprint_qualifying: List[int] = Field(default_factory=list)
    fastest_lap: int = 0


DEFAULT_POINTS_SCHEDULE = PointsSchedule(
    grand_prix_finish=[25, 18, 15, 12, 10, 8, 6, 4, 2, 1],
    sprint_finish=[8, 7, 6, 5, 4, 3, 2, 1],
    gp_qualifying=[3, 2, 1],
    sprint_qualifying=[3, 2, 1],
    fastest_lap=3,
)


class ScoringProfile(CamelModel):
    id: str
    name: str
    config: PointsSchedule


class ScoringSettings(CamelModel):
    """Named schedule profiles with a pointer to the active one."""

    active_profile_id: str
    profiles: List[ScoringProfile] = Field(default_factory=list)


class EventResult(CamelModel):
    """Authoritative outcome of one event.

    ``driver_teams`` and ``scoring_snapshot`` are captured when the result is
    saved so later roster or schedule edits do not change historical scores.
    """

    grand_prix_finish: List[Optional[str]] = Field(default_factory=list)
    gp_qualifying: List[Optional[str]] = Field(default_factory=list)
    fastest_lap: Optional[str] = None
    sprint_finish: Optional[List[Optional[str]]] = None
    sprint_qualifying: Optional[List[Optional[str]]] = None
    driver_teams: Optional[Dict[str, str]] = None
    scoring_snapshot: Optional[PointsSchedule] = None


class PickSelection(CamelModel):
    """A participant's selections for one event."""

    a_teams: List[Optional[str]] = Field(default_factory=list)
    b_team: Optional[str] = None
    a_drivers: List[Optional[str]] = Field(default_factory=list)
    b_drivers: List[Optional[str]] = Field(default_factory=list)
    fastest_lap: Optional[str] = None
    penalty: Optional[float] = None
    penalty_reason: Optional[str] = None


class Driver(CamelModel):
    id: str
    name: str = ""
    constructor_id: Optional[str] = None
    is_active: bool = True


class Constructor(CamelModel):
    id: str
    name: str = ""
    is_active: bool = True
    color: Optional[str] = None


class LeagueEntities(CamelModel):
    """Roster of drivers and constructors."""

    drivers: List[Driver] = Field(default_factory=list)
    constructors: List[Constructor] = Field(default_factory=list)


class ScoreBreakdown(CamelModel):
    gp: int = 0
    sprint: int = 0
    quali: int = 0
    fl: int = 0

    def __add__(self, other: "ScoreBreakdown") -> "ScoreBreakdown":
        return ScoreBreakdown(
            gp=self.gp + other.gp,
            sprint=self.sprint + other.sprint,
            quali=self.quali + other.quali,
            fl=self.fl + other.fl,
        )

    @property
    def raw_total(self) -> int:
        return self.gp + self.sprint + self.quali + self.fl


class EventScore(CamelModel):
    total: int = 0
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    penalty_points: int = 0


class UsageRollup(CamelModel):
    teams: Dict[str, int] = Field(default_factory=dict)
    drivers: Dict[str, int] = Field(default_factory=dict)


__all__ = [
    "CamelModel",
    "Constructor",
    "DEFAULT_POINTS_SCHEDULE",
    "Driver",
    "EventResult",
    "EventScore",
    "LeagueEntities",
    "PickSelection",
    "PointsSchedule",
    "ScoreBreakdown",
    "ScoringProfile",
    "ScoringSettings",
    "UsageRollup",
]
