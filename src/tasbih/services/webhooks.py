"""Inbound calculation-job webhook handling."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping

from ..constants import JobStatus
from ..domain.repositories import CalculationJobRepository
from ..errors import UnknownEventType, ValidationError
from ..logging_config import get_logger
from ..models.calculation_job import CalculationJob

logger = get_logger("webhooks")

COMPLETED_EVENTS = frozenset({"calculation.completed", "done", "success"})
FAILED_EVENTS = frozenset({"calculation.failed", "error", "failed"})
PROGRESS_EVENTS = frozenset({"calculation.progress", "progress"})


def acknowledgement(status: str, **extra: Any) -> dict[str, Any]:
    """Body returned to the sender; every acknowledgement is sent with HTTP 200."""

    return {"received": True, "status": status, **extra}


class CalculationWebhookProcessor:
    """Applies job callbacks idempotently by ``job_id``.

    Senders retry on anything but 200, so unknown jobs and unknown event types are
    acknowledged rather than rejected.
    """

    def __init__(self, jobs: CalculationJobRepository, *, clock: Callable[[], datetime]) -> None:
        self.jobs = jobs
        self._clock = clock

    def process(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        job_id = payload.get("job_id") or payload.get("calculation_id")
        if not job_id:
            raise ValidationError("job_id required", {"job_id": ["Field required"]})
        job_id = str(job_id)
        event_type = payload.get("event_type") or payload.get("type")

        job = self.jobs.get(job_id)
        if job is None:
            logger.warning("Webhook for unknown job %s", job_id)
            return acknowledgement("job_not_found", job_id=job_id)

        try:
            handler = self._handler_for(event_type)
        except UnknownEventType as exc:
            logger.info("Unknown webhook event type %r for job %s", exc.event_type, job_id)
            return acknowledgement(exc.code, job_id=job_id)

        if job.status == JobStatus.DONE.value:
            logger.info("Job %s already done; ignoring %s", job_id, event_type)
            return acknowledgement("already_processed", job_id=job_id)

        return handler(job, payload)

    def _handler_for(
        self, event_type: Any
    ) -> Callable[[CalculationJob, Mapping[str, Any]], dict[str, Any]]:
        if event_type in COMPLETED_EVENTS:
            return self._completed
        if event_type in FAILED_EVENTS:
            return self._failed
        if event_type in PROGRESS_EVENTS:
            return self._progress
        raise UnknownEventType(event_type)

    def _completed(self, job: CalculationJob, payload: Mapping[str, Any]) -> dict[str, Any]:
        now = self._clock()
        result = payload.get("result") or payload.get("data") or payload.get("calculation")
        job.status = JobStatus.DONE.value
        job.result = result
        job.progress = 100
        job.error = None
        job.completed_at = now
        job.updated_at = now
        self.jobs.save(job)
        logger.info("Job %s completed", job.job_id, extra={"job_id": job.job_id})
        return acknowledgement("processed", job_id=job.job_id)

    def _failed(self, job: CalculationJob, payload: Mapping[str, Any]) -> dict[str, Any]:
        now = self._clock()
        message = payload.get("error") or payload.get("message") or "Calculation failed"
        job.status = JobStatus.ERROR.value
        job.error = str(message)[:255]
        job.completed_at = now
        job.updated_at = now
        self.jobs.save(job)
        logger.warning("Job %s failed: %s", job.job_id, job.error, extra={"job_id": job.job_id})
        return acknowledgement("error_processed", job_id=job.job_id)

    def _progress(self, job: CalculationJob, payload: Mapping[str, Any]) -> dict[str, Any]:
        raw = payload.get("progress") or payload.get("percentage") or 0
        try:
            progress = int(raw)
        except (TypeError, ValueError):
            logger.warning("Job %s sent non-integer progress %r", job.job_id, raw, extra={"job_id": job.job_id})
            return acknowledgement("invalid_progress", job_id=job.job_id)
        job.progress = max(0, min(progress, 100))
        if job.status == JobStatus.PENDING.value:
            job.status = JobStatus.PROCESSING.value
        job.updated_at = self._clock()
        self.jobs.save(job)
        return acknowledgement("progress_updated", job_id=job.job_id, progress=job.progress)


__all__ = ["CalculationWebhookProcessor", "acknowledgement"]
