"""Tests for the calculation job webhook."""

from __future__ import annotations

import pytest

from tasbih.errors import ValidationError
from tasbih.models import CalculationJob


def _process(app_context, payload):
    with app_context.unit_of_work() as services:
        return services.webhooks.process(payload)


def _job(session_factory, job_id: str = "job-1") -> CalculationJob:
    with session_factory() as db:
        return db.get(CalculationJob, job_id)


class TestProcessor:
    def test_completion_stores_result(self, app_context, job_factory, session_factory):
        job_factory()

        ack = _process(
            app_context,
            {"event_type": "calculation.completed", "job_id": "job-1", "result": {"fajr": 120}},
        )

        job = _job(session_factory)
        assert ack == {"received": True, "status": "processed", "job_id": "job-1"}
        assert job.status == "done"
        assert job.result == {"fajr": 120}
        assert job.completed_at is not None

    def test_repeated_completion_is_noop(self, app_context, job_factory, session_factory, clock):
        job_factory()
        _process(app_context, {"type": "done", "job_id": "job-1", "data": {"v": 1}})
        first_completed = _job(session_factory).completed_at

        clock.advance(minutes=3)
        ack = _process(app_context, {"type": "success", "job_id": "job-1", "data": {"v": 2}})

        job = _job(session_factory)
        assert ack["status"] == "already_processed"
        assert job.result == {"v": 1}
        assert job.completed_at == first_completed

    def test_failure(self, app_context, job_factory, session_factory):
        job_factory()

        ack = _process(app_context, {"event_type": "calculation.failed", "calculation_id": "job-1", "message": "bad input"})

        job = _job(session_factory)
        assert ack["status"] == "error_processed"
        assert job.status == "error"
        assert job.error == "bad input"

    def test_progress(self, app_context, job_factory, session_factory):
        job_factory()

        ack = _process(app_context, {"event_type": "progress", "job_id": "job-1", "percentage": 40})

        assert ack["status"] == "progress_updated"
        assert _job(session_factory).progress == 40
        assert _job(session_factory).status == "processing"

    def test_non_integer_progress_acknowledged(self, app_context, job_factory, session_factory):
        job_factory()

        ack = _process(app_context, {"event_type": "progress", "job_id": "job-1", "progress": "half"})

        assert ack == {"received": True, "status": "invalid_progress", "job_id": "job-1"}
        assert _job(session_factory).progress == 0
        assert _job(session_factory).status == "pending"

    def test_unknown_job_acknowledged(self, app_context):
        ack = _process(app_context, {"event_type": "done", "job_id": "ghost"})

        assert ack["received"] is True
        assert ack["status"] == "job_not_found"

    def test_unknown_event_acknowledged(self, app_context, job_factory, session_factory):
        job_factory()

        ack = _process(app_context, {"event_type": "calculation.teleported", "job_id": "job-1"})

        assert ack["status"] == "unknown_event"
        assert _job(session_factory).status == "pending"

    def test_job_id_required(self, app_context):
        with pytest.raises(ValidationError):
            _process(app_context, {"event_type": "done"})


class TestRoute:
    def test_acknowledges_with_200(self, client, job_factory):
        job_factory()

        response = client.post("/webhooks/calculation", json={"event_type": "done", "job_id": "job-1"})

        assert response.status_code == 200
        assert response.get_json()["status"] == "processed"

    def test_bad_progress_is_still_200(self, client, job_factory):
        job_factory()

        response = client.post(
            "/webhooks/calculation", json={"event_type": "progress", "job_id": "job-1", "progress": [50]}
        )

        assert response.status_code == 200
        assert response.get_json()["status"] == "invalid_progress"

    def test_missing_job_id_is_400(self, client):
        response = client.post("/webhooks/calculation", json={"event_type": "done"})

        assert response.status_code == 400

    def test_internal_error_still_acknowledged(self, client, job_factory, monkeypatch):
        from tasbih.services.webhooks import CalculationWebhookProcessor

        job_factory()

        def explode(self, payload):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(CalculationWebhookProcessor, "process", explode)
        response = client.post("/webhooks/calculation", json={"event_type": "done", "job_id": "job-1"})

        assert response.status_code == 200
        assert response.get_json() == {"received": True, "status": "error_logged"}

    def test_secret_enforced(self, app, client, job_factory):
        app.config["TASBIH_CONFIG"].WEBHOOK_SECRET = "s3cret"
        job_factory()
        payload = {"event_type": "done", "job_id": "job-1"}

        denied = client.post("/webhooks/calculation", json=payload)
        allowed = client.post("/webhooks/calculation", json=payload, headers={"X-Webhook-Secret": "s3cret"})

        assert denied.status_code == 401
        assert allowed.status_code == 200
