"""Database model exports."""

from .leaderboard import PublicUser
from .ledger import (
    EmailCooldown,
    EmailVerification,
    InvitationCode,
    InvitationStatus,
    RateLimitCounter,
)
from .picks import Picks
from .results import ENTITIES_KEY, SCORING_CONFIG_KEY, EventResultRecord, LeagueConfig
from .user import User

__all__ = [
    "ENTITIES_KEY",
    "EmailCooldown",
    "EmailVerification",
    "EventResultRecord",
    "InvitationCode",
    "InvitationStatus",
    "LeagueConfig",
    "Picks",
    "PublicUser",
    "RateLimitCounter",
    "SCORING_CONFIG_KEY",
    "User",
]
