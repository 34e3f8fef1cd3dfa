"""Participant picks endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from ...core import InvalidArgument, NotFound, get_session
from ...core.time import utcnow
from ...models import Picks, User
from ...schemas import PickSelection
from ...services.league import apply_selection, selection_from_picks
from ...services.scoring import usage_rollup
from ..deps import current_user, require_admin

router = APIRouter(tags=["picks"])


@router.get("/picks")
def get_my_picks(
    user: User = Depends(current_user), session: Session = Depends(get_session)
):
    """The caller's picks for every event plus team/driver usage counts."""

    rows = session.exec(select(Picks).where(Picks.user_id == user.id)).all()
    season = {row.event_id: selection_from_picks(row) for row in rows}
    return {
        "picks": {event_id: picks.to_json_dict() for event_id, picks in season.items()},
        "usage": usage_rollup(season).to_json_dict(),
    }


@router.put("/picks/{event_id}")
def save_my_picks(
    event_id: str,
    picks: PickSelection,
    user: User = Depends(current_user),
    session: Session = Depends(get_session),
):
    """Create or replace the caller's picks for one event."""

    row = session.get(Picks, (user.id, event_id))
    if row is None:
        row = Picks(user_id=user.id, event_id=event_id)
    apply_selection(row, picks)
    session.add(row)
    session.commit()
    session.refresh(row)
    return {"ok": True, "eventId": event_id, "picks": selection_from_picks(row).to_json_dict()}


@router.put("/admin/picks/{user_id}/{event_id}/penalty")
def set_pick_penalty(
    user_id: str,
    event_id: str,
    body: Dict[str, Any],
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Apply a fractional penalty (0.2 = 20%) to one event's score."""

    try:
        penalty = float(body.get("penalty", 0))
    except (TypeError, ValueError) as exc:
        raise InvalidArgument("penalty must be a number") from exc
    if not 0 <= penalty < 1:
        raise InvalidArgument("penalty must be in [0, 1)")

    row = session.get(Picks, (user_id, event_id))
    if row is None:
        raise NotFound(f"No picks for {user_id} at {event_id}")

    row.penalty = penalty or None
    row.penalty_reason = (str(body.get("reason") or "").strip() or None) if penalty else None
    row.updated_at = utcnow()
    session.add(row)
    session.commit()
    return {"ok": True, "penalty": row.penalty, "reason": row.penalty_reason}


__all__ = ["router"]
