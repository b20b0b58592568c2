from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..attendance.model import AttendanceRecord, AttendanceReportInput
from ..common.serialization import json_ready
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..identity.controller import role_required
from ..pto.allocation import suggested_hours
from ..pto.model import PtoRequestInput
from ..realtime.controller import current_view_session
from ..realtime.queries import ALL_PTO_REQUESTS


def register(app: Flask, container) -> None:
    def _load_record(employee_id: str, record_id: str) -> AttendanceRecord:
        doc = container.store.get(container.scopes.attendance(employee_id), record_id)
        if doc is None:
            raise NotFoundError(f"Attendance record {record_id} not found")
        return AttendanceRecord.from_document(doc)

    def _pto_view():
        return current_view_session(container).views.get(ALL_PTO_REQUESTS)

    @app.route("/attendance/reports", methods=["POST"], endpoint="submit_report")
    @role_required(Role.EMPLOYEE)
    def submit_report():
        report = AttendanceReportInput.from_mapping(request.get_json(silent=True) or {})
        result = container.workflow_service.submit_attendance_report(session["user_id"], report)
        return jsonify(
            {
                "record_id": result.record_id,
                "notification_id": result.notification_id,
                "warnings": list(result.warnings),
            }
        ), 201

    @app.route("/pto/requests", methods=["POST"], endpoint="submit_pto_request")
    @role_required(Role.EMPLOYEE)
    def submit_pto_request():
        pto_input = PtoRequestInput.from_mapping(request.get_json(silent=True) or {})
        result = container.workflow_service.submit_pto_request(session["user_id"], pto_input)
        return jsonify(
            {
                "request_id": result.record_id,
                "notification_id": result.notification_id,
                "warnings": list(result.warnings),
            }
        ), 201

    @app.route("/pto/requests/<request_id>/decision", methods=["POST"], endpoint="decide_pto_request")
    @role_required(Role.MANAGEMENT)
    def decide_pto_request(request_id: str):
        data = request.get_json(silent=True) or {}
        result = container.workflow_service.decide_pto_request(
            request_id,
            data.get("decision"),
            session.get("role"),
            known_requests=_pto_view(),
        )
        return jsonify(
            {
                "request_id": result.request_id,
                "status": result.status.value,
                "notification_id": result.notification_id,
                "warnings": list(result.warnings),
            }
        )

    @app.route("/attendance/<employee_id>/<record_id>/pto-allocation", methods=["GET"], endpoint="pto_allocation_form")
    @role_required(Role.MANAGEMENT)
    def pto_allocation_form(employee_id: str, record_id: str):
        record = _load_record(employee_id, record_id)
        return jsonify(
            {
                "record": json_ready(record.to_dict()),
                "qualifies": record.pto_allocated,
                "hours": suggested_hours(record),
            }
        )

    @app.route("/attendance/<employee_id>/<record_id>/pto-allocation", methods=["POST"], endpoint="allocate_pto")
    @role_required(Role.MANAGEMENT)
    def allocate_pto(employee_id: str, record_id: str):
        data = request.get_json(silent=True) or {}
        record = _load_record(employee_id, record_id)
        result = container.allocation_service.allocate_pto_for_call_out(
            record,
            data.get("qualifies"),
            data.get("hours", suggested_hours(record)),
        )
        return jsonify(
            {
                "record": json_ready(result.record.to_dict()),
                "handled_notification_ids": list(result.handled_notification_ids),
                "warnings": list(result.warnings),
            }
        )
