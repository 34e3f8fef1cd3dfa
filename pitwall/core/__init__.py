"""Core configuration and infrastructure helpers."""

from .config import Settings, load_settings
from .database import create_db_engine, get_session, insert_if_absent, upsert
from .errors import (
    AlreadyUsed,
    Expired,
    FailedPrecondition,
    Internal,
    InvalidArgument,
    LeagueError,
    Mismatch,
    NotFound,
    PermissionDenied,
    RateLimited,
    Unauthenticated,
    league_error_handler,
)
from .logging import configure_logging
from .time import Clock, system_clock, utcnow

__all__ = [
    "AlreadyUsed",
    "Clock",
    "Expired",
    "FailedPrecondition",
    "Internal",
    "InvalidArgument",
    "LeagueError",
    "Mismatch",
    "NotFound",
    "PermissionDenied",
    "RateLimited",
    "Settings",
    "Unauthenticated",
    "configure_logging",
    "create_db_engine",
    "get_session",
    "insert_if_absent",
    "league_error_handler",
    "load_settings",
    "system_clock",
    "upsert",
    "utcnow",
]
