"""SQLModel implementation of the calculation job repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session

from ...models.calculation_job import CalculationJob


class SQLModelCalculationJobRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, job_id: str) -> Optional[CalculationJob]:
        return self.session.get(CalculationJob, job_id)

    def save(self, job: CalculationJob) -> CalculationJob:
        self.session.add(job)
        self.session.flush()
        self.session.refresh(job)
        return job


__all__ = ["SQLModelCalculationJobRepository"]
