"""JSON routes for the counting core."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import current_user_id, get_context, unit_of_work
from ...schemas import (
    DailyReportQuery,
    EndSessionRequest,
    GoalRequest,
    LearnMarkRequest,
    StartSessionRequest,
    SyncRequest,
    TapRequest,
    parse_payload,
)
from ...services.bootstrap import build_bootstrap
from ...services.sync import OfflineSyncReconciler
from . import bp


def _json_body():
    return request.get_json(silent=True)


@bp.get("/bootstrap")
def bootstrap():
    """Profile, active goal, today's bucket and recent items."""

    user_id = current_user_id()
    with unit_of_work() as services:
        payload = build_bootstrap(services, user_id)
    return jsonify(payload)


@bp.post("/goals")
def upsert_goal():
    user_id = current_user_id()
    payload = parse_payload(GoalRequest, _json_body())
    with unit_of_work() as services:
        goal = services.goals.upsert(user_id, payload)
        body = goal.to_dict()
    return jsonify({"goal": body})


@bp.post("/sessions/start")
def start_session():
    user_id = current_user_id()
    payload = parse_payload(StartSessionRequest, _json_body())
    segment = payload.prayer_segment.value if payload.prayer_segment else None
    with unit_of_work() as services:
        session = services.sessions.start(user_id, payload.goal_id, segment)
        body = session.to_dict()
    return jsonify({"session": body}), 201


@bp.post("/sessions/end")
def end_session():
    user_id = current_user_id()
    payload = parse_payload(EndSessionRequest, _json_body())
    with unit_of_work() as services:
        body = services.sessions.end(user_id, payload.session_id).to_dict()
    return jsonify({"session": body})


@bp.post("/counter/tap")
def counter_tap():
    """Apply one signed delta; the response carries the advisory ``suspected`` flag."""

    user_id = current_user_id()
    payload = parse_payload(TapRequest, _json_body())
    with unit_of_work() as services:
        result = services.counter.tap(
            user_id,
            payload.session_id,
            payload.delta,
            payload.event_type.value,
            offline_id=payload.offline_id,
            prayer_segment=payload.prayer_segment.value if payload.prayer_segment else None,
        )
        body = result.to_dict()
    return jsonify(body)


@bp.post("/learn/mark")
def learn_mark():
    user_id = current_user_id()
    payload = parse_payload(LearnMarkRequest, _json_body())
    with unit_of_work() as services:
        goal = services.goals.mark_learned(user_id, payload.goal_id)
        body = goal.to_dict()
    return jsonify({"goal": body})


@bp.get("/reports/daily")
def daily_report():
    user_id = current_user_id()
    query = parse_payload(DailyReportQuery, request.args.to_dict())
    with unit_of_work() as services:
        report = services.reports.daily_report(user_id, query.date)
    return jsonify(report.to_dict())


@bp.post("/sync/offline")
def sync_offline():
    """Replay queued events; each event commits or fails on its own."""

    user_id = current_user_id()
    payload = parse_payload(SyncRequest, _json_body())
    reconciler = OfflineSyncReconciler(get_context().unit_of_work)
    results = reconciler.sync(user_id, payload.events)
    return jsonify({"results": [result.to_dict() for result in results]})
