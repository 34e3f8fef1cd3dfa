"""Service layer helpers."""

from .ledger import InvitationLedger, VerificationCodes
from .mail import MailSender, build_mail_sender
from .ratelimit import RateLimiter, client_identity, limiter_key
from .results import ResultChanged, ResultEvents, ResultsStore, rollup_on_result_change
from .rollup import LeagueRollup, load_standings
from .scoring import active_schedule, score_event, usage_rollup
from .validation import validate_display_name, validate_real_name

__all__ = [
    "InvitationLedger",
    "LeagueRollup",
    "MailSender",
    "RateLimiter",
    "ResultChanged",
    "ResultEvents",
    "ResultsStore",
    "VerificationCodes",
    "active_schedule",
    "build_mail_sender",
    "client_identity",
    "limiter_key",
    "load_standings",
    "rollup_on_result_change",
    "score_event",
    "usage_rollup",
    "validate_display_name",
    "validate_real_name",
]
