"""League-wide score recalculation.

Every rollup reads all results and all picks, rescores everything, ranks the
whole population and overwrites the public leaderboard in one commit. Running
it again with unchanged data produces the same totals and ranks.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from ..core.database import upsert
from ..core.time import utcnow
from ..models import Picks, PublicUser, User
from ..schemas import (
    DEFAULT_POINTS_SCHEDULE,
    Driver,
    EventResult,
    PickSelection,
    PointsSchedule,
    ScoreBreakdown,
)
from .league import (
    load_entities,
    load_results,
    load_scoring_config,
    public_user_to_dict,
    selection_from_picks,
)
from .scoring import active_schedule, score_event

logger = logging.getLogger(__name__)


@dataclass
class Standing:
    user_id: str
    total_points: int = 0
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    rank: int = 0


def score_participant(
    user_id: str,
    season_picks: Mapping[str, PickSelection],
    results: Mapping[str, EventResult],
    schedule: PointsSchedule,
    roster: Iterable[Driver],
) -> Standing:
    """Sum one participant's scores over every event that has a result."""

    roster = list(roster)
    standing = Standing(user_id=user_id)
    for event_id, picks in season_picks.items():
        result = results.get(event_id)
        if result is None:
            continue
        score = score_event(picks, result, schedule, roster)
        standing.total_points += score.total
        standing.breakdown = standing.breakdown + score.breakdown
    return standing


def rank_standings(standings: Iterable[Standing]) -> List[Standing]:
    """Order by total points descending, ties by participant id, ranks from 1."""

    ordered = sorted(standings, key=lambda s: (-s.total_points, s.user_id))
    for index, standing in enumerate(ordered):
        standing.rank = index + 1
    return ordered


class LeagueRollup:
    """Recomputes and persists the ranked leaderboard."""

    def __init__(
        self,
        engine: Engine,
        default_schedule: PointsSchedule = DEFAULT_POINTS_SCHEDULE,
    ):
        self.engine = engine
        self.default_schedule = default_schedule

    def recalculate_all(self) -> int:
        """Rescore every participant; returns how many were written."""

        logger.info("Starting league recalculation.")
        with Session(self.engine) as session:
            results = load_results(session)
            if not results:
                logger.warning("Recalculation aborted: no race results found.")
                return 0

            roster = load_entities(session).drivers
            schedule = active_schedule(load_scoring_config(session), self.default_schedule)
            season = self._season_picks(session)

            ranked = rank_standings(
                score_participant(user_id, picks, results, schedule, roster)
                for user_id, picks in season.items()
            )

            try:
                self._persist(session, ranked)
                session.commit()
            except Exception:
                session.rollback()
                logger.exception("Leaderboard write failed; no standings were changed.")
                raise

        logger.info("League recalculation complete. Processed %d users.", len(ranked))
        return len(ranked)

    def standings(self) -> List[Dict[str, object]]:
        with Session(self.engine) as session:
            return load_standings(session)

    @staticmethod
    def _season_picks(session: Session) -> Dict[str, Dict[str, PickSelection]]:
        season: Dict[str, Dict[str, PickSelection]] = {
            user_id: {} for user_id in session.exec(select(User.id)).all()
        }
        for row in session.exec(select(Picks)).all():
            season.setdefault(row.user_id, {})[row.event_id] = selection_from_picks(row)
        return season

    @staticmethod
    def _persist(session: Session, ranked: List[Standing]) -> None:
        names = {
            user.id: user.display_name for user in session.exec(select(User)).all()
        }
        stamp = utcnow()
        table = PublicUser.__table__
        # A concurrent run may create the same rows; existing names are kept.
        for standing in ranked:
            upsert(
                session,
                table,
                {
                    "user_id": standing.user_id,
                    "display_name": names.get(standing.user_id),
                    "total_points": standing.total_points,
                    "breakdown_json": json.dumps(standing.breakdown.to_json_dict()),
                    "rank": standing.rank,
                    "last_updated": stamp,
                },
                update_columns=("total_points", "breakdown_json", "rank", "last_updated"),
            )


def load_standings(session: Session) -> List[Dict[str, object]]:
    """Persisted leaderboard ordered by rank; unranked records last."""

    rows = session.exec(
        select(PublicUser).order_by(
            col(PublicUser.rank).is_(None), col(PublicUser.rank), col(PublicUser.user_id)
        )
    ).all()
    return [public_user_to_dict(row) for row in rows]


__all__ = [
    "LeagueRollup",
    "Standing",
    "load_standings",
    "rank_standings",
    "score_participant",
]
