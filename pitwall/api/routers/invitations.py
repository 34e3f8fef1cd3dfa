"""Invitation code endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ...core import InvalidArgument
from ...league import VALIDATE_INVITATION_LIMIT, League
from ...models import InvitationCode, User
from ..deps import get_league, require_admin

router = APIRouter(tags=["invitations"])

_MAX_BULK_CODES = 100


def invitation_to_dict(row: InvitationCode) -> Dict[str, Any]:
    return {
        "code": row.code,
        "status": row.status,
        "createdBy": row.created_by,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
        "reservedAt": row.reserved_at.isoformat() if row.reserved_at else None,
        "usedBy": row.used_by,
        "usedByEmail": row.used_by_email,
        "usedAt": row.used_at.isoformat() if row.used_at else None,
    }


@router.post("/invitations/validate")
def validate_invitation_code(
    request: Request,
    body: Dict[str, Any],
    league: League = Depends(get_league),
):
    """Reserve an invitation code for the signup in progress."""

    code = str(body.get("code") or "").strip()
    if not code:
        raise InvalidArgument("Code required")

    operation, limit, window = VALIDATE_INVITATION_LIMIT
    league.rate_limiter.check_request(request, operation, limit, window)

    league.invitations.reserve(code)
    return {"valid": True}


@router.get("/admin/invitations")
def list_invitation_codes(
    admin: User = Depends(require_admin), league: League = Depends(get_league)
):
    return {"codes": [invitation_to_dict(row) for row in league.invitations.list_codes()]}


@router.post("/admin/invitations")
def create_invitation_codes(
    body: Dict[str, Any],
    admin: User = Depends(require_admin),
    league: League = Depends(get_league),
):
    """Create one or more active invitation codes."""

    try:
        count = int(body.get("count", 1))
    except (TypeError, ValueError) as exc:
        raise InvalidArgument("count must be an integer") from exc
    if count < 1 or count > _MAX_BULK_CODES:
        raise InvalidArgument(f"count must be between 1 and {_MAX_BULK_CODES}")

    codes = league.invitations.create_bulk(admin.id, count)
    return {"ok": True, "codes": codes}


@router.delete("/admin/invitations/{code}")
def delete_invitation_code(
    code: str,
    admin: User = Depends(require_admin),
    league: League = Depends(get_league),
):
    league.invitations.delete(code)
    return {"ok": True, "deleted": code}


__all__ = ["router"]
