"""Fixed-window rate limiting backed by the database.

Counters are changed only through conditional UPDATE statements, so two
requests racing on the same key cannot both observe free capacity.
"""

from __future__ import annotations

import logging
import re

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..core.database import insert_if_absent
from ..core.errors import RateLimited
from ..core.time import Clock, system_clock
from ..models import RateLimitCounter

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9]")


def client_identity(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, else the peer address, else ``unknown``.

    Every caller without a resolvable address shares the ``unknown`` bucket.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def limiter_key(operation: str, identity: str) -> str:
    return f"{operation}_{_UNSAFE_KEY_CHARS.sub('_', identity)}"


class RateLimiter:
    """Keyed attempt counter with a fixed window per key."""

    def __init__(self, engine: Engine, clock: Clock = system_clock):
        self.engine = engine
        self.clock = clock

    def check_and_consume(self, key: str, limit: int, window_seconds: int) -> None:
        """Count one attempt against ``key`` or raise :class:`RateLimited`."""

        now = self.clock()
        table = RateLimitCounter.__table__
        with Session(self.engine) as session:
            insert_if_absent(session, table, {"key": key, "count": 0, "reset_at": None})

            restarted = session.execute(
                update(table)
                .where(
                    table.c.key == key,
                    (table.c.reset_at.is_(None)) | (table.c.reset_at < now),
                )
                .values(count=1, reset_at=now + window_seconds)
            )
            if restarted.rowcount == 1:
                session.commit()
                return

            counted = session.execute(
                update(table)
                .where(table.c.key == key, table.c.count < limit)
                .values(count=table.c.count + 1)
            )
            if counted.rowcount == 1:
                session.commit()
                return

            reset_at = session.get(RateLimitCounter, key).reset_at
            session.rollback()

        retry_after = reset_at - now
        logger.warning("Rate limit hit for %s (limit %d/%ds).", key, limit, window_seconds)
        raise RateLimited(retry_after_seconds=retry_after)

    def check_request(
        self, request: Request, operation: str, limit: int, window_seconds: int
    ) -> None:
        """Apply the limit to the calling client's identity for ``operation``."""

        key = limiter_key(operation, client_identity(request))
        self.check_and_consume(key, limit, window_seconds)

    def count(self, key: str) -> int:
        with Session(self.engine) as session:
            counter = session.get(RateLimitCounter, key)
            return counter.count if counter else 0


__all__ = [
    "RateLimiter",
    "UNKNOWN_CLIENT",
    "client_identity",
    "limiter_key",
]
