"""SQLModel implementation of the counter event log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from ...constants import EventType
from ...models.counter_event import CounterEvent


class SQLModelCounterEventRepository:
    """Append-only counter event log."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, event: CounterEvent) -> CounterEvent:
        self.session.add(event)
        self.session.flush()
        self.session.refresh(event)
        return event

    def offline_id_exists(self, user_id: str, offline_id: str) -> bool:
        statement = select(CounterEvent.id).where(
            CounterEvent.user_id == user_id,
            CounterEvent.offline_id == offline_id,
        )
        return self.session.exec(statement.limit(1)).first() is not None

    def tap_volume_between(self, user_id: str, since: datetime, until: datetime) -> int:
        statement = select(func.coalesce(func.sum(func.abs(CounterEvent.delta)), 0)).where(
            CounterEvent.user_id == user_id,
            CounterEvent.event_type == EventType.TAP.value,
            CounterEvent.at_ts >= since,
            CounterEvent.at_ts <= until,
        )
        return int(self.session.exec(statement).one())

    def taps_between(self, user_id: str, start: datetime, end: datetime) -> list[CounterEvent]:
        statement = (
            select(CounterEvent)
            .where(CounterEvent.user_id == user_id)
            .where(CounterEvent.event_type == EventType.TAP.value)
            .where(CounterEvent.at_ts >= start)
            .where(CounterEvent.at_ts < end)
            .order_by(CounterEvent.at_ts)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())


__all__ = ["SQLModelCounterEventRepository"]
