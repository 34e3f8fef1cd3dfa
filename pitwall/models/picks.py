"""Database model for participant picks."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class Picks(SQLModel, table=True):
    """One participant's selections for one event."""

    user_id: str = ORMField(primary_key=True)
    event_id: str = ORMField(primary_key=True)
    a_teams_json: str = "[]"
    b_team: Optional[str] = None
    a_drivers_json: str = "[]"
    b_drivers_json: str = "[]"
    fastest_lap: Optional[str] = None
    penalty: Optional[float] = None
    penalty_reason: Optional[str] = None
    updated_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["Picks"]
