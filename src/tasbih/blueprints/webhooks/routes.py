"""Calculation job callbacks."""

from __future__ import annotations

import hmac

from flask import jsonify, request

from ...errors import IdentityError, ValidationError
from ...extensions import get_context
from ...logging_config import get_logger
from ...services.webhooks import acknowledgement
from . import bp

logger = get_logger("webhooks.routes")

SECRET_HEADER = "X-Webhook-Secret"


@bp.post("/calculation")
def calculation_webhook():
    """Apply a job callback; anything past validation is acknowledged with 200."""

    context = get_context()
    secret = context.config.WEBHOOK_SECRET
    if secret and not hmac.compare_digest(request.headers.get(SECRET_HEADER, ""), secret):
        raise IdentityError("Invalid webhook secret")

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object", {"__root__": ["expected object"]})

    try:
        with context.unit_of_work() as services:
            body = services.webhooks.process(payload)
    except ValidationError:
        raise
    except Exception:
        # The sender retries on non-200; a failure here must not cause a retry storm.
        logger.exception("Webhook processing failed for job %s", payload.get("job_id"))
        body = acknowledgement("error_logged")
    return jsonify(body), 200
