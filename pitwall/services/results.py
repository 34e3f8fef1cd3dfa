"""Event results store and its change notifications.

Writers go through :class:`ResultsStore`, which publishes a
:class:`ResultChanged` on :class:`ResultEvents` after each commit. The
leaderboard subscribes to those notifications instead of polling.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..core.errors import NotFound
from ..core.time import utcnow
from ..models import EventResultRecord
from ..schemas import DEFAULT_POINTS_SCHEDULE, EventResult, PointsSchedule
from .league import load_entities, load_results, load_scoring_config
from .rollup import LeagueRollup
from .scoring import active_schedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultChanged:
    event_id: str
    deleted: bool = False


ResultHandler = Callable[[ResultChanged], None]


class ResultEvents:
    """Subscription point for result writes.

    Handlers run inline, or on ``executor`` when one is given.
    """

    def __init__(self, executor: Optional[Executor] = None):
        self.executor = executor
        self._handlers: List[ResultHandler] = []

    def subscribe(self, handler: ResultHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: ResultChanged) -> None:
        for handler in list(self._handlers):
            if self.executor is not None:
                self.executor.submit(handler, event)
            else:
                handler(event)


def rollup_on_result_change(rollup: LeagueRollup) -> ResultHandler:
    """Subscriber that recalculates the league; failures are only logged."""

    def handle(event: ResultChanged) -> None:
        logger.info("Auto-sync triggered by results update for %s.", event.event_id)
        try:
            rollup.recalculate_all()
        except Exception:
            logger.exception("Automatic leaderboard sync failed after %s changed.", event.event_id)

    return handle


class ResultsStore:
    """Reads and writes event results, announcing every committed change."""

    def __init__(
        self,
        engine: Engine,
        events: ResultEvents,
        default_schedule: PointsSchedule = DEFAULT_POINTS_SCHEDULE,
    ):
        self.engine = engine
        self.events = events
        self.default_schedule = default_schedule

    def all(self) -> Dict[str, EventResult]:
        with Session(self.engine) as session:
            return load_results(session)

    def save(self, event_id: str, result: EventResult) -> EventResult:
        """Store a result, freezing the current roster and schedule into it."""

        result = result.model_copy(deep=True)
        with Session(self.engine) as session:
            if result.driver_teams is None:
                drivers = load_entities(session).drivers
                result.driver_teams = {
                    driver.id: driver.constructor_id
                    for driver in drivers
                    if driver.constructor_id
                }
            if result.scoring_snapshot is None:
                result.scoring_snapshot = active_schedule(
                    load_scoring_config(session), self.default_schedule
                )

            payload = json.dumps(result.to_json_dict())
            record = session.get(EventResultRecord, event_id)
            if record is None:
                record = EventResultRecord(event_id=event_id, payload_json=payload)
            else:
                record.payload_json = payload
                record.updated_at = utcnow()
            session.add(record)
            session.commit()

        logger.info("Saved results for %s.", event_id)
        self.events.publish(ResultChanged(event_id=event_id))
        return result

    def delete(self, event_id: str) -> None:
        with Session(self.engine) as session:
            record = session.get(EventResultRecord, event_id)
            if record is None:
                raise NotFound(f"No results for event {event_id}")
            session.delete(record)
            session.commit()

        logger.info("Deleted results for %s.", event_id)
        self.events.publish(ResultChanged(event_id=event_id, deleted=True))


__all__ = [
    "ResultChanged",
    "ResultEvents",
    "ResultHandler",
    "ResultsStore",
    "rollup_on_result_change",
]
