"""Authentication routes: email codes, signup and Google OAuth."""

from __future__ import annotations

import logging
import smtplib
import uuid
from typing import Any, Dict, Optional

from authlib.integrations.starlette_client import OAuth
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlmodel import Session, func, select

from ...core import (
    AlreadyUsed,
    Expired,
    FailedPrecondition,
    Internal,
    InvalidArgument,
    Mismatch,
    NotFound,
    Settings,
    Unauthenticated,
    get_session,
)
from ...league import SEND_AUTH_CODE_LIMIT, League
from ...models import PublicUser, User
from ...services.ledger import normalize_email
from ...services.mail import verification_email
from ...services.validation import validate_display_name, validate_real_name
from ..deps import get_league

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def build_oauth(settings: Settings) -> OAuth:
    oauth = OAuth()
    oauth.register(
        name="google",
        client_id=settings.google_client_id or "dummy",
        client_secret=settings.google_client_secret or "dummy",
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )
    return oauth


def _fallback_display_name(candidate: Optional[str]) -> str:
    name = (candidate or "").strip()[:20]
    if validate_display_name(name).valid:
        return name
    return f"Player-{uuid.uuid4().hex[:6]}"


def _upsert_google_user(
    session: Session,
    settings: Settings,
    *,
    email: str,
    sub: str,
    name: Optional[str],
) -> User:
    normalized_email = normalize_email(email)
    is_admin = normalized_email in settings.super_user_emails

    user = session.exec(
        select(User).where(func.lower(User.email) == normalized_email)
    ).first()
    if user:
        changed = False
        if not user.provider_sub:
            user.provider_sub = sub
            changed = True
        if is_admin and not user.is_admin:
            user.is_admin = True
            changed = True
        if changed:
            session.add(user)
            session.commit()
            session.refresh(user)
        return user

    display_name = _fallback_display_name(name.split(" ")[0] if name else None)
    user = User(
        email=normalized_email,
        display_name=display_name,
        provider="google",
        provider_sub=sub,
        is_admin=is_admin,
    )
    session.add(user)
    session.add(PublicUser(user_id=user.id, display_name=display_name))
    session.commit()
    session.refresh(user)
    return user


def _start_session(request: Request, user: User) -> None:
    request.session["uid"] = user.id
    request.session["name"] = user.display_name
    request.session["email"] = user.email


@router.post("/auth/code/send")
def send_auth_code(
    request: Request,
    body: Dict[str, Any],
    league: League = Depends(get_league),
):
    """Issue a six-digit verification code and email it."""

    email = normalize_email(str(body.get("email") or ""))
    if not email:
        raise InvalidArgument("Email is required")
    if "@" not in email:
        raise InvalidArgument("Email is invalid")

    operation, limit, window = SEND_AUTH_CODE_LIMIT
    league.rate_limiter.check_request(request, operation, limit, window)

    code = league.verification_codes.issue(email)

    if league.settings.demo_mode:
        logger.warning("Demo mode: returning verification code for %s in response.", email)
        return {"success": True, "demoMode": True, "code": code}

    if not league.mail.configured:
        raise FailedPrecondition("Email service not configured.")

    subject, html = verification_email(code)
    try:
        league.mail.send(email, subject, html)
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("Failed to deliver verification code to %s", email)
        raise Internal("Could not send verification email.") from exc

    return {"success": True}


@router.post("/auth/code/verify")
def verify_auth_code(
    request: Request,
    body: Dict[str, Any],
    league: League = Depends(get_league),
):
    """Check a verification code; failures are reported, not raised."""

    email = normalize_email(str(body.get("email") or ""))
    code = str(body.get("code") or "").strip()
    if not email or not code:
        return {"valid": False, "message": "Missing data"}

    try:
        league.verification_codes.verify(email, code)
    except (NotFound, Expired, Mismatch) as exc:
        return {"valid": False, "message": exc.message}

    request.session["verified_email"] = email
    return {"valid": True}


@router.post("/auth/register")
def register(
    request: Request,
    body: Dict[str, Any],
    session: Session = Depends(get_session),
    league: League = Depends(get_league),
):
    """Create the participant for a verified email address."""

    email = request.session.get("verified_email")
    if not email:
        raise Unauthenticated("Verify your email address first.")

    display_name = str(body.get("displayName") or "").strip()
    first_name = str(body.get("firstName") or "").strip()
    last_name = str(body.get("lastName") or "").strip()
    invitation_code = str(body.get("invitationCode") or "").strip()
    if not invitation_code:
        raise InvalidArgument("Code required")

    checks = (
        validate_display_name(display_name),
        validate_real_name(first_name, "First name"),
        validate_real_name(last_name, "Last name"),
    )
    for check in checks:
        if not check.valid:
            raise InvalidArgument(check.error)

    existing = session.exec(
        select(User).where(func.lower(User.email) == email)
    ).first()
    if existing:
        raise AlreadyUsed("An account already exists for this email.")

    user = User(
        email=email,
        display_name=display_name,
        first_name=first_name,
        last_name=last_name,
        invitation_code=invitation_code,
    )
    session.add(user)
    session.add(PublicUser(user_id=user.id, display_name=display_name))
    league.invitations.mark_used(session, invitation_code, user.id, email)
    session.commit()
    session.refresh(user)

    request.session.pop("verified_email", None)
    _start_session(request, user)
    logger.info("Registered participant %s", user.id)
    return {"ok": True, "user": {"id": user.id, "displayName": user.display_name}}


@router.get("/auth/google/start")
async def auth_google_start(request: Request, next: str | None = None):
    settings: Settings = request.app.state.settings
    if not settings.google_client_id or not settings.google_client_secret:
        raise HTTPException(
            status_code=500,
            detail="Google OAuth not configured. Check GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET.",
        )

    if next:
        request.session["next"] = next
    return await request.app.state.oauth.google.authorize_redirect(
        request, settings.oauth_redirect_url
    )


@router.get("/auth/google/callback")
async def auth_google_callback(
    request: Request, session: Session = Depends(get_session)
):
    settings: Settings = request.app.state.settings
    oauth = request.app.state.oauth
    token = await oauth.google.authorize_access_token(request)
    userinfo = token.get("userinfo") or await oauth.google.parse_id_token(request, token)
    email = userinfo.get("email")
    sub = userinfo.get("sub")
    if not email or not sub:
        raise HTTPException(status_code=400, detail="Unable to read Google profile.")

    user = _upsert_google_user(
        session, settings, email=email, sub=sub, name=userinfo.get("name")
    )
    _start_session(request, user)

    frontend_origin = settings.frontend_origin
    next_url = request.session.pop("next", None) or frontend_origin
    if not str(next_url).startswith(frontend_origin):
        next_url = frontend_origin
    return RedirectResponse(next_url or "/", status_code=302)


@router.post("/auth/logout")
def auth_logout(request: Request):
    request.session.clear()
    return JSONResponse({"ok": True})


@router.get("/me")
def me(request: Request, session: Session = Depends(get_session)):
    uid = request.session.get("uid")
    if not uid:
        return JSONResponse({"user": None})
    user = session.get(User, str(uid))
    if not user:
        request.session.clear()
        return JSONResponse({"user": None})
    return JSONResponse(
        {
            "user": {
                "id": user.id,
                "email": user.email,
                "displayName": user.display_name,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "isAdmin": user.is_admin,
                "duesPaid": user.dues_paid,
            }
        }
    )


__all__ = ["build_oauth", "router"]
