"""Single-use code ledgers: invitation codes and email verification codes.

Every state transition is one conditional statement (compare-and-set), so of
several concurrent callers claiming the same code exactly one succeeds.
"""

from __future__ import annotations

import logging
import secrets
import string
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from ..core.database import insert_if_absent
from ..core.errors import AlreadyUsed, Expired, Mismatch, NotFound, RateLimited
from ..core.time import Clock, system_clock, utcnow
from ..models import EmailCooldown, EmailVerification, InvitationCode, InvitationStatus

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def generate_invitation_code(year: Optional[int] = None) -> str:
    """Return a code shaped like ``FF1-2026-K3ZQ8A``."""

    year = year or utcnow().year
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
    return f"FF1-{year}-{suffix}"


def generate_verification_code() -> str:
    """Six decimal digits, never starting with zero."""

    return str(100000 + secrets.randbelow(900000))


class InvitationLedger:
    """Invitation codes move active -> reserved -> used, each step once."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def reserve(self, code: str) -> None:
        """Claim an active code; raises NotFound or AlreadyUsed otherwise."""

        table = InvitationCode.__table__
        with Session(self.engine) as session:
            claimed = session.execute(
                update(table)
                .where(
                    table.c.code == code,
                    table.c.status == InvitationStatus.ACTIVE.value,
                )
                .values(status=InvitationStatus.RESERVED.value, reserved_at=utcnow())
            )
            if claimed.rowcount == 1:
                session.commit()
                logger.info("Invitation code %s reserved.", code)
                return
            exists = session.get(InvitationCode, code) is not None
            session.rollback()

        if not exists:
            raise NotFound("Invalid code")
        raise AlreadyUsed("Code used")

    def mark_used(self, session: Session, code: str, user_id: str, email: str) -> None:
        """Finish a reserved code inside the caller's signup transaction."""

        table = InvitationCode.__table__
        finished = session.execute(
            update(table)
            .where(
                table.c.code == code,
                table.c.status == InvitationStatus.RESERVED.value,
            )
            .values(
                status=InvitationStatus.USED.value,
                used_by=user_id,
                used_by_email=email,
                used_at=utcnow(),
            )
        )
        if finished.rowcount == 1:
            return
        if session.get(InvitationCode, code) is None:
            raise NotFound("Invalid code")
        raise AlreadyUsed("Code used")

    def create(self, created_by: str) -> str:
        return self.create_bulk(created_by, 1)[0]

    def create_bulk(self, created_by: str, count: int) -> List[str]:
        table = InvitationCode.__table__
        codes: List[str] = []
        with Session(self.engine) as session:
            while len(codes) < count:
                code = generate_invitation_code()
                inserted = insert_if_absent(
                    session,
                    table,
                    {
                        "code": code,
                        "status": InvitationStatus.ACTIVE.value,
                        "created_by": created_by,
                        "created_at": utcnow(),
                    },
                )
                if not inserted:
                    logger.warning("Invitation code collision detected, regenerating: %s", code)
                    continue
                codes.append(code)
            session.commit()
        logger.info("Created %d invitation code(s) for %s.", len(codes), created_by)
        return codes

    def list_codes(self) -> List[InvitationCode]:
        with Session(self.engine) as session:
            return list(
                session.exec(
                    select(InvitationCode).order_by(col(InvitationCode.created_at).desc())
                ).all()
            )

    def delete(self, code: str) -> None:
        with Session(self.engine) as session:
            row = session.get(InvitationCode, code)
            if not row:
                raise NotFound("Invitation code not found")
            session.delete(row)
            session.commit()


class VerificationCodes:
    """Six-digit email codes: throttled issuance, single-use verification."""

    def __init__(
        self,
        engine: Engine,
        clock: Clock = system_clock,
        ttl_seconds: int = 600,
        cooldown_seconds: int = 60,
    ):
        self.engine = engine
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self.cooldown_seconds = cooldown_seconds

    def issue(self, email: str) -> str:
        """Store a fresh code for ``email`` and return it.

        Raises :class:`RateLimited` when a code was issued for the same
        address less than ``cooldown_seconds`` ago.
        """

        key = normalize_email(email)
        now = self.clock()
        cooldown = EmailCooldown.__table__
        with Session(self.engine) as session:
            first_attempt = insert_if_absent(
                session, cooldown, {"email": key, "last_attempt": now}
            )
            if not first_attempt:
                touched = session.execute(
                    update(cooldown)
                    .where(
                        cooldown.c.email == key,
                        cooldown.c.last_attempt <= now - self.cooldown_seconds,
                    )
                    .values(last_attempt=now)
                )
                if touched.rowcount != 1:
                    last = session.get(EmailCooldown, key)
                    last_attempt = last.last_attempt if last else now
                    session.rollback()
                    raise RateLimited(
                        retry_after_seconds=last_attempt + self.cooldown_seconds - now,
                        message="Too many attempts. Please wait 1 minute.",
                    )

            code = generate_verification_code()
            record = session.get(EmailVerification, key)
            if record is None:
                record = EmailVerification(email=key, code=code, expires_at=0.0)
            record.code = code
            record.expires_at = now + self.ttl_seconds
            record.created_at = utcnow()
            session.add(record)
            session.commit()

        logger.info("Issued verification code for %s.", key)
        return code

    def verify(self, email: str, code: str) -> None:
        """Consume the code for ``email``.

        Raises NotFound, Expired or Mismatch; on success the record is gone.
        """

        key = normalize_email(email)
        now = self.clock()
        table = EmailVerification.__table__
        with Session(self.engine) as session:
            record = session.get(EmailVerification, key)
            if record is None:
                raise NotFound("Code not found")
            if now > record.expires_at:
                raise Expired("Code expired")
            if record.code != code:
                raise Mismatch("Invalid code")

            consumed = session.execute(
                delete(table).where(
                    table.c.email == key,
                    table.c.code == code,
                    table.c.expires_at >= now,
                )
            )
            if consumed.rowcount != 1:
                session.rollback()
                raise NotFound("Code not found")
            session.commit()


__all__ = [
    "InvitationLedger",
    "VerificationCodes",
    "generate_invitation_code",
    "generate_verification_code",
    "normalize_email",
]
