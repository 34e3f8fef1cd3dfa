"""Per-event scoring of a participant's picks."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from ..schemas import (
    Driver,
    EventResult,
    EventScore,
    PickSelection,
    PointsSchedule,
    ScoreBreakdown,
    ScoringSettings,
    UsageRollup,
)

logger = logging.getLogger(__name__)


def points_at(points: Optional[Sequence[int]], position: int) -> int:
    """Points for a zero-based finishing position, zero past the schedule."""

    if not points or position >= len(points):
        return 0
    return points[position] or 0


def driver_points(
    driver_id: Optional[str],
    order: Optional[Sequence[Optional[str]]],
    points: Optional[Sequence[int]],
) -> int:
    """Points a single driver earned in one classified order."""

    if not driver_id or not order:
        return 0
    try:
        position = list(order).index(driver_id)
    except ValueError:
        return 0
    return points_at(points, position)


def resolve_schedule(result: EventResult, active: PointsSchedule) -> PointsSchedule:
    """Prefer the schedule frozen into the result over the live one."""

    return result.scoring_snapshot or active


def active_schedule(
    config: Optional[Mapping[str, Any]], default: PointsSchedule
) -> PointsSchedule:
    """Pick the league-wide schedule out of the stored scoring config.

    The document is either a named-profiles structure with an active profile
    id, or a flat schedule. Anything unusable falls back to ``default``.
    """

    if not config:
        return default

    if "profiles" in config:
        try:
            settings = ScoringSettings.model_validate(config)
        except ValidationError:
            logger.warning("Scoring config has malformed profiles; using default schedule.")
            return default
        for profile in settings.profiles:
            if profile.id == settings.active_profile_id:
                return profile.config
        logger.warning(
            "Active scoring profile %r not found; using default schedule.",
            settings.active_profile_id,
        )
        return default

    try:
        return PointsSchedule.model_validate(config)
    except ValidationError:
        logger.warning("Flat scoring config is malformed; using default schedule.")
        return default


def score_event(
    picks: Optional[PickSelection],
    result: Optional[EventResult],
    schedule: PointsSchedule,
    roster: Iterable[Driver] = (),
) -> EventScore:
    """Score one participant's picks against one event result.

    Team picks earn every point scored by drivers resolved to that team;
    driver picks earn that driver's points in every classified order. GP and
    sprint qualifying both land in the ``quali`` bucket. A penalty fraction
    reduces only the reported total, never the buckets.
    """

    if picks is None or result is None:
        return EventScore()

    schedule = resolve_schedule(result, schedule)
    roster_teams: Dict[str, Optional[str]] = {driver.id: driver.constructor_id for driver in roster}
    snapshot_teams = result.driver_teams or {}

    def team_of(driver_id: str) -> Optional[str]:
        return snapshot_teams.get(driver_id) or roster_teams.get(driver_id)

    categories = (
        ("gp", result.grand_prix_finish, schedule.grand_prix_finish),
        ("sprint", result.sprint_finish, schedule.sprint_finish),
        ("quali", result.gp_qualifying, schedule.gp_qualifying),
        ("quali", result.sprint_qualifying, schedule.sprint_qualifying),
    )

    picked_teams = {team for team in [*picks.a_teams, picks.b_team] if team}
    picked_drivers: List[str] = [
        driver for driver in [*picks.a_drivers, *picks.b_drivers] if driver
    ]

    buckets = {"gp": 0, "sprint": 0, "quali": 0, "fl": 0}
    for bucket, order, points in categories:
        if not order:
            continue
        for position, driver_id in enumerate(order):
            if driver_id and team_of(driver_id) in picked_teams:
                buckets[bucket] += points_at(points, position)
        for driver_id in picked_drivers:
            buckets[bucket] += driver_points(driver_id, order, points)

    if picks.fastest_lap and picks.fastest_lap == result.fastest_lap:
        buckets["fl"] += schedule.fastest_lap or 0

    breakdown = ScoreBreakdown(**buckets)
    total = breakdown.raw_total
    penalty_points = 0
    if picks.penalty and picks.penalty > 0:
        penalty_points = math.ceil(total * picks.penalty)
        total -= penalty_points

    return EventScore(total=total, breakdown=breakdown, penalty_points=penalty_points)


def usage_rollup(
    season_picks: Mapping[str, PickSelection],
    event_ids: Optional[Iterable[str]] = None,
) -> UsageRollup:
    """Count how often each team and driver has been picked this season."""

    allowed = set(event_ids) if event_ids is not None else None
    teams: Dict[str, int] = {}
    drivers: Dict[str, int] = {}
    for event_id, picks in season_picks.items():
        if allowed is not None and event_id not in allowed:
            continue
        for team_id in [*picks.a_teams, picks.b_team]:
            if team_id:
                teams[team_id] = teams.get(team_id, 0) + 1
        for driver_id in [*picks.a_drivers, *picks.b_drivers]:
            if driver_id:
                drivers[driver_id] = drivers.get(driver_id, 0) + 1
    return UsageRollup(teams=teams, drivers=drivers)


__all__ = [
    "active_schedule",
    "driver_points",
    "points_at",
    "resolve_schedule",
    "score_event",
    "usage_rollup",
]
