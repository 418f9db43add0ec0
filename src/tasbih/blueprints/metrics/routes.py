"""Aggregated request metrics."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import get_context
from ...schemas import MetricsQuery, parse_payload
from . import bp


@bp.get("/metrics")
def metrics():
    """Grouped latency statistics for the requested window (minutes)."""

    context = get_context()
    args = request.args.to_dict()
    args.setdefault("window", str(context.config.METRICS_DEFAULT_WINDOW_MINUTES))
    query = parse_payload(MetricsQuery, args)
    aggregated = context.metrics.aggregate(query.endpoint, query.method, query.window)
    return jsonify(
        {
            "window_minutes": query.window,
            "metrics": [entry.to_dict() for entry in aggregated],
        }
    )
