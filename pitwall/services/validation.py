"""Rules for names stored on participant records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# Reserved words and common profanity kept off the public leaderboard.
BLACKLIST = (
    "admin", "administrator", "mod", "moderator", "system", "root", "support",
    "fuck", "shit", "piss", "cunt", "bitch", "asshole", "dick", "cock", "pussy",
    "nigger", "faggot", "whore", "slut",
)

_DISPLAY_NAME_RE = re.compile(r"^[a-zA-Z0-9 _\-.]+$")
_REAL_NAME_RE = re.compile(r"^[a-zA-ZÀ-ÿ '.\-]+$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def validate_display_name(name: str) -> ValidationResult:
    sanitized = (name or "").strip()

    if not sanitized:
        return ValidationResult(False, "Display name cannot be empty.")
    if len(sanitized) > 20:
        return ValidationResult(False, "Display name must be 20 characters or less.")
    if len(sanitized) < 3:
        return ValidationResult(False, "Display name must be at least 3 characters.")
    if not _DISPLAY_NAME_RE.match(sanitized):
        return ValidationResult(False, "Display name contains invalid characters.")

    lower = sanitized.lower()
    if any(word in lower for word in BLACKLIST):
        return ValidationResult(False, "Display name contains restricted words.")

    return ValidationResult(True)


def validate_real_name(name: str, label: str) -> ValidationResult:
    sanitized = (name or "").strip()

    if not sanitized:
        return ValidationResult(False, f"{label} cannot be empty.")
    if len(sanitized) > 50:
        return ValidationResult(False, f"{label} must be 50 characters or less.")
    # Letters incl. Latin-1 accents, spaces, apostrophes, dots and hyphens.
    if not _REAL_NAME_RE.match(sanitized):
        return ValidationResult(False, f"{label} contains invalid characters.")

    return ValidationResult(True)


__all__ = ["BLACKLIST", "ValidationResult", "validate_display_name", "validate_real_name"]
