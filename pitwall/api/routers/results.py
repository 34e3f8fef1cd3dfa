"""Event results, scoring rules and roster administration."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import ValidationError
from sqlmodel import Session

from ...core import InvalidArgument, get_session
from ...league import League
from ...models import ENTITIES_KEY, SCORING_CONFIG_KEY, User
from ...schemas import EventResult, LeagueEntities, PointsSchedule, ScoringSettings
from ...services.league import load_entities, load_scoring_config, save_config
from ...services.scoring import active_schedule
from ..deps import get_league, require_admin

router = APIRouter(tags=["results"])


@router.get("/results")
def list_results(league: League = Depends(get_league)):
    """All published results keyed by event id."""

    return {
        event_id: result.to_json_dict()
        for event_id, result in sorted(league.results.all().items())
    }


@router.put("/admin/results/{event_id}")
def save_event_result(
    event_id: str,
    result: EventResult,
    admin: User = Depends(require_admin),
    league: League = Depends(get_league),
):
    """Publish a result; the leaderboard is recalculated automatically."""

    stored = league.results.save(event_id, result)
    return {"ok": True, "eventId": event_id, "result": stored.to_json_dict()}


@router.delete("/admin/results/{event_id}")
def delete_event_result(
    event_id: str,
    admin: User = Depends(require_admin),
    league: League = Depends(get_league),
):
    league.results.delete(event_id)
    return {"ok": True, "deleted": event_id}


@router.get("/admin/scoring")
def get_scoring_settings(
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
    league: League = Depends(get_league),
) -> Dict[str, Any]:
    """Stored scoring document plus the schedule currently in force."""

    config = load_scoring_config(session)
    active = active_schedule(config, league.rollup.default_schedule)
    return {"config": config, "active": active.to_json_dict()}


@router.put("/admin/scoring")
def save_scoring_settings(
    body: Dict[str, Any],
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Replace the scoring document (named profiles or a flat schedule)."""

    try:
        settings = (
            ScoringSettings.model_validate(body)
            if "profiles" in body
            else PointsSchedule.model_validate(body)
        )
    except ValidationError as exc:
        raise InvalidArgument(f"Invalid scoring settings: {exc.error_count()} error(s)") from exc

    if isinstance(settings, ScoringSettings):
        profile_ids = {profile.id for profile in settings.profiles}
        if settings.active_profile_id not in profile_ids:
            raise InvalidArgument("activeProfileId must match one of the profiles")

    save_config(session, SCORING_CONFIG_KEY, settings.to_json_dict())
    session.commit()
    return {"ok": True}


@router.get("/entities")
def get_entities(session: Session = Depends(get_session)):
    return load_entities(session).to_json_dict()


@router.put("/admin/entities")
def save_entities(
    entities: LeagueEntities,
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Replace the driver and constructor roster."""

    save_config(session, ENTITIES_KEY, entities.to_json_dict())
    session.commit()
    return {"ok": True, "drivers": len(entities.drivers), "constructors": len(entities.constructors)}


__all__ = ["router"]
