"""Helpers for reading and writing league documents."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlmodel import Session, select

from ..core.time import utcnow
from ..models import (
    ENTITIES_KEY,
    SCORING_CONFIG_KEY,
    EventResultRecord,
    LeagueConfig,
    Picks,
    PublicUser,
)
from ..schemas import EventResult, LeagueEntities, PickSelection, ScoreBreakdown

logger = logging.getLogger(__name__)


def selection_from_picks(row: Picks) -> PickSelection:
    """Build a :class:`PickSelection` from its stored row."""

    return PickSelection(
        a_teams=json.loads(row.a_teams_json or "[]"),
        b_team=row.b_team,
        a_drivers=json.loads(row.a_drivers_json or "[]"),
        b_drivers=json.loads(row.b_drivers_json or "[]"),
        fastest_lap=row.fastest_lap,
        penalty=row.penalty,
        penalty_reason=row.penalty_reason,
    )


def apply_selection(row: Picks, picks: PickSelection) -> Picks:
    """Copy selections onto a stored row, leaving any penalty untouched."""

    row.a_teams_json = json.dumps(picks.a_teams)
    row.b_team = picks.b_team
    row.a_drivers_json = json.dumps(picks.a_drivers)
    row.b_drivers_json = json.dumps(picks.b_drivers)
    row.fastest_lap = picks.fastest_lap
    row.updated_at = utcnow()
    return row


def result_from_record(record: EventResultRecord) -> Optional[EventResult]:
    """Parse a stored result; unreadable payloads are skipped with a warning."""

    try:
        return EventResult.model_validate(json.loads(record.payload_json or "{}"))
    except (ValueError, ValidationError):
        logger.warning("Ignoring malformed result payload for event %s", record.event_id)
        return None


def load_results(session: Session) -> Dict[str, EventResult]:
    results: Dict[str, EventResult] = {}
    for record in session.exec(select(EventResultRecord)).all():
        parsed = result_from_record(record)
        if parsed is not None:
            results[record.event_id] = parsed
    return results


def load_config(session: Session, key: str) -> Optional[Dict[str, Any]]:
    row = session.get(LeagueConfig, key)
    if not row:
        return None
    try:
        return json.loads(row.payload_json or "null")
    except ValueError:
        logger.warning("Ignoring malformed league config document %r", key)
        return None


def save_config(session: Session, key: str, payload: Dict[str, Any]) -> LeagueConfig:
    """Overwrite a league config document; the caller commits."""

    row = session.get(LeagueConfig, key)
    if row is None:
        row = LeagueConfig(key=key, payload_json=json.dumps(payload))
    else:
        row.payload_json = json.dumps(payload)
        row.updated_at = utcnow()
    session.add(row)
    return row


def load_scoring_config(session: Session) -> Optional[Dict[str, Any]]:
    return load_config(session, SCORING_CONFIG_KEY)


def load_entities(session: Session) -> LeagueEntities:
    payload = load_config(session, ENTITIES_KEY)
    if not payload:
        return LeagueEntities()
    try:
        return LeagueEntities.model_validate(payload)
    except ValidationError:
        logger.warning("Roster document is malformed; treating roster as empty.")
        return LeagueEntities()


def public_user_to_dict(row: PublicUser) -> Dict[str, Any]:
    """Serialise a leaderboard record to an API-friendly dict."""

    breakdown = ScoreBreakdown.model_validate(json.loads(row.breakdown_json or "{}"))
    return {
        "userId": row.user_id,
        "displayName": row.display_name,
        "totalPoints": row.total_points,
        "breakdown": breakdown.to_json_dict(),
        "rank": row.rank,
        "lastUpdated": row.last_updated.isoformat() if row.last_updated else None,
    }


__all__ = [
    "apply_selection",
    "load_config",
    "load_entities",
    "load_results",
    "load_scoring_config",
    "public_user_to_dict",
    "result_from_record",
    "save_config",
    "selection_from_picks",
]
