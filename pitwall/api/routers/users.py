"""User profile and maintenance endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from ...core import InvalidArgument, NotFound, get_session
from ...models import PublicUser, User
from ...services.validation import validate_display_name, validate_real_name
from ..deps import current_user, require_admin

router = APIRouter(tags=["users"])


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "isAdmin": user.is_admin,
        "duesPaid": user.dues_paid,
        "invitationCode": user.invitation_code,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@router.patch("/me/profile")
def update_my_profile(
    body: Dict[str, Any],
    user: User = Depends(current_user),
    session: Session = Depends(get_session),
):
    """Update names; the display name is mirrored to the public record."""

    if "displayName" in body:
        display_name = str(body.get("displayName") or "").strip()
        check = validate_display_name(display_name)
        if not check.valid:
            raise InvalidArgument(check.error)
        user.display_name = display_name

        public = session.get(PublicUser, user.id) or PublicUser(user_id=user.id)
        public.display_name = display_name
        session.add(public)

    for field, attr, label in (
        ("firstName", "first_name", "First name"),
        ("lastName", "last_name", "Last name"),
    ):
        if field in body:
            value = str(body.get(field) or "").strip()
            check = validate_real_name(value, label)
            if not check.valid:
                raise InvalidArgument(check.error)
            setattr(user, attr, value)

    session.add(user)
    session.commit()
    session.refresh(user)
    return {"ok": True, "user": user_to_dict(user)}


@router.get("/admin/users")
def list_users(
    admin: User = Depends(require_admin), session: Session = Depends(get_session)
):
    users = session.exec(select(User).order_by(User.display_name)).all()
    return {"users": [user_to_dict(user) for user in users]}


@router.patch("/admin/users/{user_id}")
def update_user_flags(
    user_id: str,
    body: Dict[str, Any],
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Toggle a participant's admin role or dues status."""

    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    if "isAdmin" in body:
        if user.id == admin.id and not body["isAdmin"]:
            raise HTTPException(400, "Cannot remove your own admin role")
        user.is_admin = bool(body["isAdmin"])
    if "duesPaid" in body:
        user.dues_paid = bool(body["duesPaid"])

    session.add(user)
    session.commit()
    session.refresh(user)
    return {"ok": True, "user": user_to_dict(user)}


__all__ = ["router"]
