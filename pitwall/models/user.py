"""Database models for league participants."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class User(SQLModel, table=True):
    """Private participant record; the admin flag lives here."""

    __tablename__ = "league_user"

    id: str = ORMField(
        default_factory=lambda: uuid.uuid4().hex, primary_key=True, nullable=False
    )
    email: str = ORMField(index=True, unique=True)
    display_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: bool = False
    dues_paid: bool = False
    invitation_code: Optional[str] = None
    provider: str = ORMField(default="email")
    provider_sub: Optional[str] = ORMField(default=None, index=True)
    created_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["User"]
