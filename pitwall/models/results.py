"""Database models for event results and league-wide configuration."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class EventResultRecord(SQLModel, table=True):
    """Published result of one event, stored as its JSON payload."""

    __tablename__ = "event_result"

    event_id: str = ORMField(primary_key=True)
    payload_json: str
    updated_at: datetime = ORMField(default_factory=utcnow)


class LeagueConfig(SQLModel, table=True):
    """Administrator-maintained documents such as scoring rules and the roster."""

    __tablename__ = "league_config"

    key: str = ORMField(primary_key=True)
    payload_json: str
    updated_at: datetime = ORMField(default_factory=utcnow)


SCORING_CONFIG_KEY = "scoring_config"
ENTITIES_KEY = "entities"


__all__ = ["ENTITIES_KEY", "EventResultRecord", "LeagueConfig", "SCORING_CONFIG_KEY"]
