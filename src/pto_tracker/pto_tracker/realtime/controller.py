from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.serialization import json_ready
from ..core.enums import Role
from ..core.exceptions import NotReadyError
from ..identity.controller import login_required, role_required
from .queries import ALL_NOTIFICATIONS, ALL_PTO_REQUESTS, COMPANY_ATTENDANCE, MY_ATTENDANCE_WEEK
from .session import ViewSession


def current_view_session(container) -> ViewSession:
    """The signed-in identity's views, reopened from its profile after idle eviction."""

    user_id = session["user_id"]
    view_session = container.view_sessions.get(user_id)
    if view_session is None:
        profile = container.profile_service.get(user_id)
        if profile is None:
            raise NotReadyError("Complete profile setup before loading data")
        view_session = container.view_sessions.open(user_id, profile.role)
    return view_session


def register(app: Flask, container) -> None:
    def _session() -> ViewSession:
        return current_view_session(container)

    @app.route("/views/<name>", methods=["GET"], endpoint="get_view")
    @login_required
    def get_view(name: str):
        view = _session().view(name)
        state = view.state
        return jsonify(
            {
                "name": view.name,
                "items": [json_ready(item.to_dict()) for item in view.items],
                "loaded": state.loaded,
                "degraded": state.degraded,
                "error": state.error,
            }
        )

    @app.route("/reports/daily", methods=["GET"], endpoint="daily_report")
    @role_required(Role.MANAGEMENT)
    def daily_report():
        raw = request.args.get("date") or now_local().date().isoformat()
        report_date = parse_iso_date(raw)
        groups = container.report_service.build_daily_report(_session().view(COMPANY_ATTENDANCE).items, report_date)
        return jsonify({"date": report_date.isoformat(), "employees": [asdict(g) for g in groups]})

    @app.route("/reports/weekly-receipt", methods=["GET"], endpoint="weekly_receipt")
    @role_required(Role.EMPLOYEE)
    def weekly_receipt():
        receipt = container.report_service.weekly_receipt(_session().view(MY_ATTENDANCE_WEEK).items)
        return jsonify(
            {
                "activities": [json_ready(r.to_dict()) for r in receipt.activities],
                "pto_activities": [json_ready(r.to_dict()) for r in receipt.pto_activities],
                "total_pto_hours": receipt.total_pto_hours,
            }
        )

    @app.route("/dashboard", methods=["GET"], endpoint="dashboard")
    @role_required(Role.MANAGEMENT)
    def dashboard():
        view_session = _session()
        summary = container.report_service.dashboard_summary(
            view_session.view(ALL_PTO_REQUESTS).items,
            view_session.view(ALL_NOTIFICATIONS).items,
        )
        return jsonify(asdict(summary))
