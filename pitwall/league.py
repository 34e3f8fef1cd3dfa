"""Wiring of the league components around one engine and clock."""

from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .core.config import Settings
from .core.time import Clock, system_clock
from .schemas import DEFAULT_POINTS_SCHEDULE, PointsSchedule
from .services.ledger import InvitationLedger, VerificationCodes
from .services.mail import MailSender, build_mail_sender
from .services.ratelimit import RateLimiter
from .services.results import ResultEvents, ResultsStore, rollup_on_result_change
from .services.rollup import LeagueRollup

# (operation, limit, window seconds) per client identity
VALIDATE_INVITATION_LIMIT = ("validate_invitation", 5, 600)
SEND_AUTH_CODE_LIMIT = ("send_auth_code", 3, 600)
MANUAL_SYNC_LIMIT = ("manual_sync", 5, 300)


@dataclass
class League:
    settings: Settings
    engine: Engine
    clock: Clock
    mail: MailSender
    rate_limiter: RateLimiter
    invitations: InvitationLedger
    verification_codes: VerificationCodes
    rollup: LeagueRollup
    result_events: ResultEvents
    results: ResultsStore


def build_league(
    settings: Settings,
    engine: Engine,
    *,
    clock: Clock = system_clock,
    mail: Optional[MailSender] = None,
    executor: Optional[Executor] = None,
    default_schedule: PointsSchedule = DEFAULT_POINTS_SCHEDULE,
) -> League:
    """Build every component and subscribe the rollup to result changes."""

    rollup = LeagueRollup(engine, default_schedule=default_schedule)
    events = ResultEvents(executor=executor)
    events.subscribe(rollup_on_result_change(rollup))

    return League(
        settings=settings,
        engine=engine,
        clock=clock,
        mail=mail if mail is not None else build_mail_sender(settings),
        rate_limiter=RateLimiter(engine, clock=clock),
        invitations=InvitationLedger(engine),
        verification_codes=VerificationCodes(engine, clock=clock),
        rollup=rollup,
        result_events=events,
        results=ResultsStore(engine, events, default_schedule=default_schedule),
    )


__all__ = [
    "League",
    "MANUAL_SYNC_LIMIT",
    "SEND_AUTH_CODE_LIMIT",
    "VALIDATE_INVITATION_LIMIT",
    "build_league",
]
