"""Leaderboard endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from ...core import Internal, get_session
from ...league import MANUAL_SYNC_LIMIT, League
from ...models import User
from ...services.rollup import load_standings
from ..deps import get_league, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard")
def get_leaderboard(session: Session = Depends(get_session)):
    """Get the persisted standings ordered by rank."""

    return {"entries": load_standings(session)}


@router.post("/admin/leaderboard/sync")
def manual_leaderboard_sync(
    request: Request,
    admin: User = Depends(require_admin),
    league: League = Depends(get_league),
):
    """Recalculate the whole league on demand."""

    operation, limit, window = MANUAL_SYNC_LIMIT
    league.rate_limiter.check_request(request, operation, limit, window)

    try:
        count = league.rollup.recalculate_all()
    except Exception as exc:
        logger.exception("Manual leaderboard sync by %s failed.", admin.id)
        raise Internal("Recalculation failed on server.") from exc

    return {"success": True, "usersProcessed": count}


__all__ = ["router"]
