"""Application settings and environment helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from dotenv import load_dotenv

load_dotenv(override=False)


_PLACEHOLDER_EMAIL_USER = "your-email@gmail.com"
_PLACEHOLDER_EMAIL_PASS = "your-app-password"

_LOCAL_DEV_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _require_env(name: str) -> str:
    """Return a required environment variable or raise an error."""

    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


@dataclass(frozen=True)
class Settings:
    """Runtime configuration handed to the app factory and its components."""

    secret_key: str
    database_url: str = "sqlite:///./data/pitwall.db"
    app_env: str = "development"
    log_level: str = "INFO"

    frontend_origins: List[str] = field(default_factory=list)
    allowed_cors_origins: List[str] = field(default_factory=list)
    cookie_domain: Optional[str] = None
    cookie_secure: bool = False
    cookie_samesite: str = "lax"
    db_reset: bool = False

    super_user_emails: List[str] = field(default_factory=list)

    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    oauth_redirect_url: str = "http://127.0.0.1:3000/auth/google/callback"

    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    email_user: str = _PLACEHOLDER_EMAIL_USER
    email_pass: str = _PLACEHOLDER_EMAIL_PASS
    email_from_name: str = "F1 Fantasy League"
    enable_demo_mode: bool = False

    @property
    def frontend_origin(self) -> str:
        return self.frontend_origins[0] if self.frontend_origins else ""

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def demo_mode(self) -> bool:
        """Verification codes are echoed back instead of mailed."""

        return self.enable_demo_mode and not self.is_production

    @property
    def mail_configured(self) -> bool:
        return (
            bool(self.email_user)
            and bool(self.email_pass)
            and self.email_user != _PLACEHOLDER_EMAIL_USER
            and self.email_pass != _PLACEHOLDER_EMAIL_PASS
        )


def load_settings() -> Settings:
    """Build settings from the process environment."""

    # FRONTEND_ORIGIN can contain a comma-separated list for multi-domain deploys.
    frontend_origins = _split_csv(os.getenv("FRONTEND_ORIGIN"))
    additional_origins = _split_csv(os.getenv("ADDITIONAL_ALLOWED_ORIGINS"))

    return Settings(
        secret_key=_require_env("SECRET_KEY"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./data/pitwall.db"),
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        frontend_origins=frontend_origins,
        allowed_cors_origins=_unique(
            [*frontend_origins, *additional_origins, *_LOCAL_DEV_ORIGINS]
        ),
        cookie_domain=os.getenv("COOKIE_DOMAIN") or None,
        cookie_secure=_env_bool("COOKIE_SECURE", False),
        cookie_samesite=os.getenv("COOKIE_SAMESITE", "lax"),
        db_reset=_env_bool("DB_RESET", False),
        super_user_emails=_unique(
            email.lower() for email in _split_csv(os.getenv("SUPER_USER_EMAILS"))
        ),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID") or None,
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET") or None,
        oauth_redirect_url=os.getenv(
            "OAUTH_REDIRECT_URL", "http://127.0.0.1:3000/auth/google/callback"
        ),
        email_host=os.getenv("EMAIL_HOST", "smtp.gmail.com"),
        email_port=_env_int("EMAIL_PORT", 587),
        email_user=os.getenv("EMAIL_USER", _PLACEHOLDER_EMAIL_USER),
        email_pass=os.getenv("EMAIL_PASS", _PLACEHOLDER_EMAIL_PASS),
        email_from_name=os.getenv("EMAIL_FROM_NAME", "F1 Fantasy League"),
        enable_demo_mode=_env_bool("ENABLE_DEMO_MODE", False),
    )


__all__ = ["Settings", "load_settings"]
