"""Database model for the public leaderboard record."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel


class PublicUser(SQLModel, table=True):
    """Publicly readable per-participant standing, rewritten by every rollup."""

    __tablename__ = "public_user"

    user_id: str = ORMField(primary_key=True)
    display_name: Optional[str] = None
    total_points: int = 0
    breakdown_json: str = "{}"
    rank: Optional[int] = ORMField(default=None, index=True)
    last_updated: Optional[datetime] = None


__all__ = ["PublicUser"]
