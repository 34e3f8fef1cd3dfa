"""Request dependencies shared by the routers."""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlmodel import Session

from ..core import PermissionDenied, Unauthenticated, get_session
from ..league import League
from ..models import User

logger = logging.getLogger(__name__)


def get_league(request: Request) -> League:
    return request.app.state.league


def current_user(request: Request, session: Session = Depends(get_session)) -> User:
    """The logged-in participant, identified by the session ``uid``.

    A ``uid`` whose participant record is gone is refused as forbidden.
    """

    uid = request.session.get("uid")
    if not uid:
        raise Unauthenticated("Login required.")
    user = session.get(User, str(uid))
    if not user:
        request.session.clear()
        raise PermissionDenied("Participant record not found.")
    return user


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        logger.error("Unauthorized admin request from %s", user.id)
        raise PermissionDenied("Only admins can perform this action.")
    return user


__all__ = ["current_user", "get_league", "require_admin"]
