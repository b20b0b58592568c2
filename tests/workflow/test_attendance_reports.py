from __future__ import annotations

from datetime import datetime

import pytest

from src.pto_tracker.pto_tracker.attendance.model import AttendanceRecord, AttendanceReportInput
from src.pto_tracker.pto_tracker.core.enums import Role
from src.pto_tracker.pto_tracker.core.exceptions import NotReadyError, PersistenceError, ValidationError
from src.pto_tracker.pto_tracker.profiles.model import Profile
from src.pto_tracker.pto_tracker.profiles.store_profile_repository import StoreProfileRepository
from src.pto_tracker.pto_tracker.store.memory_store import InMemoryRecordStore
from src.pto_tracker.pto_tracker.store.model import Query
from src.pto_tracker.pto_tracker.store.scopes import ScopeFactory
from src.pto_tracker.pto_tracker.workflow.service import WorkflowService

scopes = ScopeFactory(org_id="acme")


class NotificationWriteFailsStore(InMemoryRecordStore):
    """Accepts every write except notifications."""

    def create(self, scope, document, *, doc_id=None, cancel=None):
        if scope == scopes.notifications():
            raise PersistenceError("quota exceeded")
        return super().create(scope, document, doc_id=doc_id, cancel=cancel)


def make_service(store=None):
    store = store or InMemoryRecordStore(clock=lambda: datetime(2024, 3, 4, 8, 0))
    profiles = StoreProfileRepository(store, scopes)
    profiles.save_profile(
        "e1",
        Profile(
            user_id="e1",
            name="Ana",
            role=Role.EMPLOYEE,
            company_name="Acme Brews",
            title="Brewer",
            manager="Bob",
        ),
    )
    return WorkflowService(store, profiles, scopes), store


def attendance_docs(store, employee_id="e1"):
    return store.list(Query(scopes.attendance(employee_id)))


def notification_docs(store):
    return store.list(Query(scopes.notifications()))


@pytest.mark.parametrize(
    "report",
    [
        AttendanceReportInput(report_type="call_out", report_date="2024-03-04", reason="flu"),
        AttendanceReportInput(report_type="late", report_date="2024-03-04", report_time="09:20", lateness_duration="0-15min"),
        AttendanceReportInput(report_type="early_leave", report_date="2024-03-04", report_time="15:00", early_leave_reason="dentist"),
    ],
)
def test_valid_report_creates_one_record_and_one_linked_notification(report):
    svc, store = make_service()

    result = svc.submit_attendance_report("e1", report)

    records = attendance_docs(store)
    notifications = notification_docs(store)
    assert len(records) == 1
    assert len(notifications) == 1
    assert notifications[0].get("attendanceRecordId") == records[0].id == result.record_id
    assert result.notification_id == notifications[0].id
    assert result.complete


def test_late_report_scenario():
    svc, store = make_service()

    svc.submit_attendance_report(
        "e1",
        AttendanceReportInput.from_mapping(
            {"type": "late", "date": "2024-03-04", "latenessDuration": "20-30min", "reason": "traffic"}
        ),
    )

    record = AttendanceRecord.from_document(attendance_docs(store)[0])
    assert record.report_type.value == "late"
    assert record.lateness_duration.value == "20-30min"
    assert record.reason == "traffic"
    assert record.pto_hours == 0
    assert record.pto_allocated is False
    assert record.notification_handled is False
    assert record.employee_name == "Ana"
    assert record.manager == "Bob"
    assert record.timestamp is not None

    message = notification_docs(store)[0].get("message")
    assert "late" in message
    assert "20-30min" in message
    assert message == "Employee Ana reported late for 2024-03-04. Duration: 20-30min."


def test_record_only_keeps_fields_of_its_type():
    svc, store = make_service()

    svc.submit_attendance_report(
        "e1",
        AttendanceReportInput(
            report_type="call_out",
            report_date="2024-03-04",
            report_time="09:00",
            reason="sick",
            lateness_duration="0-15min",
            early_leave_reason="ignored",
        ),
    )

    data = attendance_docs(store)[0].data
    assert data["reason"] == "sick"
    assert "latenessDuration" not in data
    assert "earlyLeaveReason" not in data
    assert "time" not in data


def test_early_leave_reason_of_exactly_twenty_words_is_accepted():
    svc, store = make_service()
    reason = "  ".join(["word"] * 20) + "   "

    svc.submit_attendance_report(
        "e1", AttendanceReportInput(report_type="early_leave", report_date="2024-03-04", early_leave_reason=reason)
    )

    assert len(attendance_docs(store)) == 1


def test_early_leave_reason_over_twenty_words_is_rejected_before_persistence():
    svc, store = make_service()
    reason = " ".join(["word"] * 21)

    with pytest.raises(ValidationError):
        svc.submit_attendance_report(
            "e1", AttendanceReportInput(report_type="early_leave", report_date="2024-03-04", early_leave_reason=reason)
        )

    assert attendance_docs(store) == []
    assert notification_docs(store) == []


@pytest.mark.parametrize(
    "report",
    [
        AttendanceReportInput(report_type="call_out", report_date="", reason="flu"),
        AttendanceReportInput(report_type="vacation", report_date="2024-03-04", reason="flu"),
        AttendanceReportInput(report_type="call_out", report_date="2024-03-04", reason="   "),
        AttendanceReportInput(report_type="late", report_date="2024-03-04"),
        AttendanceReportInput(report_type="late", report_date="2024-03-04", lateness_duration="45min"),
        AttendanceReportInput(report_type="early_leave", report_date="2024-03-04"),
        AttendanceReportInput(report_type="late", report_date="2024-03-04", lateness_duration="0-15min", report_time="9am"),
    ],
)
def test_invalid_reports_are_rejected_without_writes(report):
    svc, store = make_service()

    with pytest.raises(ValidationError):
        svc.submit_attendance_report("e1", report)

    assert attendance_docs(store) == []


def test_submission_requires_identity_and_store():
    svc, _ = make_service()
    report = AttendanceReportInput(report_type="call_out", report_date="2024-03-04", reason="flu")

    with pytest.raises(NotReadyError):
        svc.submit_attendance_report("", report)

    no_store = WorkflowService(None, StoreProfileRepository(InMemoryRecordStore(), scopes), scopes)
    with pytest.raises(NotReadyError):
        no_store.submit_attendance_report("e1", report)


def test_notification_failure_keeps_record_and_reports_warning():
    svc, store = make_service(NotificationWriteFailsStore())

    result = svc.submit_attendance_report(
        "e1", AttendanceReportInput(report_type="call_out", report_date="2024-03-04", reason="flu")
    )

    assert [d.id for d in attendance_docs(store)] == [result.record_id]
    assert notification_docs(store) == []
    assert result.notification_id is None
    assert not result.complete
    assert len(result.warnings) == 1
    assert "quota exceeded" in result.warnings[0]


def test_missing_profile_falls_back_to_default_name():
    svc, store = make_service()

    svc.submit_attendance_report(
        "e9", AttendanceReportInput(report_type="call_out", report_date="2024-03-04", reason="flu")
    )

    assert attendance_docs(store, "e9")[0].get("employeeName") == "Employee"
    assert notification_docs(store)[0].get("message") == "Employee Employee reported call out for 2024-03-04. Reason: flu."


@pytest.mark.parametrize(
    "body, field",
    [
        ({"type": "call_out", "date": "2024-03-04", "reason": 123}, "Reason"),
        ({"type": "late", "date": "2024-03-04", "latenessDuration": "0-15min", "reason": ["x"]}, "Reason"),
        ({"type": "early_leave", "date": "2024-03-04", "earlyLeaveReason": {"why": "dentist"}}, "Early leave reason"),
        ({"type": "late", "date": "2024-03-04", "latenessDuration": "0-15min", "time": 930}, "Time"),
    ],
)
def test_non_text_fields_are_validation_errors(body, field):
    svc, store = make_service()

    with pytest.raises(ValidationError, match=field):
        svc.submit_attendance_report("e1", AttendanceReportInput.from_mapping(body))

    assert attendance_docs(store) == []
    assert notification_docs(store) == []
