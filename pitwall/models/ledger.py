"""Database models for rate-limit counters and single-use codes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class RateLimitCounter(SQLModel, table=True):
    """Fixed-window attempt counter; times are epoch seconds."""

    __tablename__ = "rate_limit_counter"

    key: str = ORMField(primary_key=True)
    count: int = 0
    reset_at: Optional[float] = None


class EmailCooldown(SQLModel, table=True):
    """Last verification-code issuance per email address."""

    __tablename__ = "email_cooldown"

    email: str = ORMField(primary_key=True)
    last_attempt: float = 0.0


class InvitationStatus(str, Enum):
    ACTIVE = "active"
    RESERVED = "reserved"
    USED = "used"


class InvitationCode(SQLModel, table=True):
    """Invitation code ledger entry."""

    __tablename__ = "invitation_code"

    code: str = ORMField(primary_key=True)
    status: str = ORMField(default=InvitationStatus.ACTIVE.value, index=True)
    created_by: Optional[str] = None
    created_at: datetime = ORMField(default_factory=utcnow)
    reserved_at: Optional[datetime] = None
    used_by: Optional[str] = None
    used_by_email: Optional[str] = None
    used_at: Optional[datetime] = None


class EmailVerification(SQLModel, table=True):
    """Pending six-digit verification code for an email address."""

    __tablename__ = "email_verification"

    email: str = ORMField(primary_key=True)
    code: str
    expires_at: float
    created_at: datetime = ORMField(default_factory=utcnow)


__all__ = [
    "EmailCooldown",
    "EmailVerification",
    "InvitationCode",
    "InvitationStatus",
    "RateLimitCounter",
]
