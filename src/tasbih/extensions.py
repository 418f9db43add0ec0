"""Flask wiring for the application context, caller identity and request metrics."""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Iterator

from flask import Flask, current_app, g, request

from .context import AppContext, CoreServices
from .errors import IdentityError

EXTENSION_KEY = "tasbih"
USER_HEADER = "X-User-Id"
REQUEST_ID_HEADER = "X-Request-Id"


def init_app_context(app: Flask, context: AppContext) -> None:
    """Attach ``context`` to the app and time every request through its metrics store."""

    app.extensions[EXTENSION_KEY] = context

    @app.before_request
    def _start_timer() -> None:
        g.request_started = time.perf_counter()
        g.request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex
        g.user_id = _peek_user_id()

    @app.after_request
    def _record_metric(response):
        if "request_id" in g:
            response.headers[REQUEST_ID_HEADER] = g.request_id
        started = g.pop("request_started", None)
        if started is not None:
            rule = request.url_rule.rule if request.url_rule is not None else request.path
            context.metrics.record(
                rule,
                request.method,
                (time.perf_counter() - started) * 1000,
                response.status_code,
                user_id=g.get("user_id"),
                error=g.pop("request_error", None),
            )
        return response


def get_context() -> AppContext:
    """Return the context attached to the current app."""

    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError as exc:  # pragma: no cover - misconfigured app
        raise RuntimeError("Application context not initialized") from exc


@contextmanager
def unit_of_work() -> Iterator[CoreServices]:
    """Services for the current request, committed as one transaction."""

    with get_context().unit_of_work() as services:
        yield services


def _peek_user_id() -> str | None:
    user_id = (request.headers.get(USER_HEADER) or "").strip()
    if user_id:
        return user_id
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def current_user_id() -> str:
    """Caller identity, resolved upstream and forwarded as a header."""

    user_id = _peek_user_id()
    if not user_id:
        raise IdentityError("Missing caller identity")
    return user_id


__all__ = ["current_user_id", "get_context", "init_app_context", "unit_of_work"]
