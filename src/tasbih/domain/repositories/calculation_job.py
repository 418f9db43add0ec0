"""Calculation job repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.calculation_job import CalculationJob


class CalculationJobRepository(Protocol):
    def get(self, job_id: str) -> Optional[CalculationJob]:
        ...

    def save(self, job: CalculationJob) -> CalculationJob:
        ...
