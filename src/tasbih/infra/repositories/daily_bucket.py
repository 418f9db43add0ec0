"""SQLModel implementation of the daily bucket repository."""

from __future__ import annotations

import operator
from datetime import datetime
from functools import reduce
from typing import Optional

from sqlalchemy import and_, case, insert, update
from sqlmodel import Session, select

from ...constants import SEGMENT_FIELDS
from ...errors import ValidationError
from ...models.daily_bucket import DailyBucket


class SQLModelDailyBucketRepository:
    """Daily bucket storage.

    ``apply_delta`` rewrites the segment, ``total`` and ``is_complete`` in one UPDATE,
    so ``total`` equals the segment sum under any interleaving of writers.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str, date_local: str) -> Optional[DailyBucket]:
        statement = (
            select(DailyBucket)
            .where(DailyBucket.user_id == user_id, DailyBucket.date_local == date_local)
            .execution_options(populate_existing=True)
        )
        return self.session.exec(statement).first()

    def get_or_create(
        self, user_id: str, date_local: str, *, now: datetime
    ) -> tuple[DailyBucket, bool]:
        existing = self.get(user_id, date_local)
        if existing is not None:
            return existing, False
        created = self._insert_if_absent(user_id, date_local, now=now)
        bucket = self.get(user_id, date_local)
        if bucket is None:  # pragma: no cover - insert just succeeded or collided
            raise RuntimeError(f"daily bucket {user_id}/{date_local} missing after insert")
        return bucket, created

    def _insert_if_absent(self, user_id: str, date_local: str, *, now: datetime) -> bool:
        values = {name: 0 for name in SEGMENT_FIELDS}
        values.update(
            user_id=user_id,
            date_local=date_local,
            total=0,
            is_complete=False,
            updated_at=now,
        )
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        elif dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        else:
            # No portable upsert; a concurrent insert surfaces as IntegrityError.
            self.session.exec(insert(DailyBucket).values(**values))
            return True

        statement = (
            dialect_insert(DailyBucket)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["user_id", "date_local"])
        )
        return self.session.exec(statement).rowcount == 1

    def apply_delta(
        self,
        user_id: str,
        date_local: str,
        segment: str,
        delta: int,
        *,
        segment_target: int,
        now: datetime,
    ) -> DailyBucket:
        if segment not in SEGMENT_FIELDS:
            raise ValidationError(
                f"Unknown prayer segment: {segment}",
                {"prayer_segment": [f"must be one of {', '.join(SEGMENT_FIELDS)}"]},
            )

        raw = getattr(DailyBucket, segment) + delta
        new_values = {
            name: case((raw < 0, 0), else_=raw) if name == segment else getattr(DailyBucket, name)
            for name in SEGMENT_FIELDS
        }
        total = reduce(operator.add, new_values.values())
        complete = case(
            (and_(*(expr >= segment_target for expr in new_values.values())), True),
            else_=False,
        )
        statement = (
            update(DailyBucket)
            .where(DailyBucket.user_id == user_id, DailyBucket.date_local == date_local)
            .values(
                {segment: new_values[segment], "total": total, "is_complete": complete, "updated_at": now}
            )
            .execution_options(synchronize_session=False)
        )
        self.session.exec(statement)
        bucket = self.get(user_id, date_local)
        if bucket is None:
            raise RuntimeError(f"daily bucket {user_id}/{date_local} vanished during update")
        return bucket


__all__ = ["SQLModelDailyBucketRepository"]
