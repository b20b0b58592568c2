from __future__ import annotations

from datetime import datetime

import pytest

from src.pto_tracker.pto_tracker.attendance.model import AttendanceRecord, AttendanceReportInput
from src.pto_tracker.pto_tracker.core.enums import ReportType
from src.pto_tracker.pto_tracker.core.exceptions import PersistenceError, PreconditionError, ValidationError
from src.pto_tracker.pto_tracker.profiles.store_profile_repository import StoreProfileRepository
from src.pto_tracker.pto_tracker.pto.allocation import (
    PtoAllocationService,
    evaluate_call_out_allocation,
    suggested_hours,
)
from src.pto_tracker.pto_tracker.store.memory_store import InMemoryRecordStore
from src.pto_tracker.pto_tracker.store.model import Query
from src.pto_tracker.pto_tracker.store.scopes import ScopeFactory
from src.pto_tracker.pto_tracker.workflow.service import WorkflowService

scopes = ScopeFactory(org_id="acme")


class NotificationUpdateFailsStore(InMemoryRecordStore):
    def update(self, scope, doc_id, fields, *, expected=None, cancel=None):
        if scope == scopes.notifications():
            raise PersistenceError("connection reset")
        return super().update(scope, doc_id, fields, expected=expected, cancel=cancel)


def setup(store=None, report_type="call_out"):
    store = store or InMemoryRecordStore(clock=lambda: datetime(2024, 3, 4, 8, 0))
    workflow = WorkflowService(store, StoreProfileRepository(store, scopes), scopes)
    report = {
        "call_out": AttendanceReportInput(report_type="call_out", report_date="2024-03-04", reason="flu"),
        "late": AttendanceReportInput(report_type="late", report_date="2024-03-04", lateness_duration="1hour+"),
    }[report_type]
    result = workflow.submit_attendance_report("e1", report)
    record = AttendanceRecord.from_document(store.get(scopes.attendance("e1"), result.record_id))
    return PtoAllocationService(store, scopes), store, record, result.notification_id


def test_non_qualifying_call_out_always_zeroes_allocation():
    svc, store, record, _ = setup()

    result = svc.allocate_pto_for_call_out(record, False, 5)

    assert result.record.pto_allocated is False
    assert result.record.pto_hours == 0
    stored = store.get(scopes.attendance("e1"), record.record_id)
    assert stored.get("ptoAllocated") is False
    assert stored.get("ptoHours") == 0


@pytest.mark.parametrize("hours", [-1, "abc", None, float("nan"), float("inf"), True])
def test_qualifying_call_out_rejects_bad_hours(hours):
    svc, store, record, _ = setup()

    with pytest.raises(ValidationError):
        svc.allocate_pto_for_call_out(record, True, hours)

    assert store.get(scopes.attendance("e1"), record.record_id).get("ptoAllocated") is False


def test_qualifying_call_out_with_zero_hours_succeeds():
    svc, _, record, _ = setup()

    result = svc.allocate_pto_for_call_out(record, True, 0)

    assert result.record.pto_allocated is True
    assert result.record.pto_hours == 0


def test_allocation_updates_record_and_marks_notification_handled():
    svc, store, record, notification_id = setup()

    result = svc.allocate_pto_for_call_out(record, True, "8")

    stored = store.get(scopes.attendance("e1"), record.record_id)
    assert stored.get("ptoAllocated") is True
    assert stored.get("ptoHours") == 8.0
    assert result.handled_notification_ids == (notification_id,)
    assert store.get(scopes.notifications(), notification_id).get("notificationHandled") is True
    assert result.warnings == ()


def test_allocation_without_matching_notification_is_not_an_error():
    svc, store, record, notification_id = setup()
    svc.allocate_pto_for_call_out(record, True, 8)

    # Second pass: the notification is already handled, nothing left to mark.
    result = svc.allocate_pto_for_call_out(record, True, 4)

    assert result.handled_notification_ids == ()
    assert store.get(scopes.attendance("e1"), record.record_id).get("ptoHours") == 4.0


def test_non_call_out_record_is_a_precondition_error():
    svc, _, record, _ = setup(report_type="late")

    with pytest.raises(PreconditionError):
        svc.allocate_pto_for_call_out(record, True, 8)


def test_notification_mark_failure_is_a_warning():
    svc, store, record, _ = setup(store=NotificationUpdateFailsStore())

    result = svc.allocate_pto_for_call_out(record, True, 6)

    assert result.record.pto_hours == 6.0
    assert store.get(scopes.attendance("e1"), record.record_id).get("ptoHours") == 6.0
    assert len(result.warnings) == 1
    unhandled = store.list(Query(scopes.notifications()).where("notificationHandled", "==", False))
    assert len(unhandled) == 1


def test_rule_ignores_hours_when_not_qualifying():
    assert evaluate_call_out_allocation(ReportType.CALL_OUT, False, -50) == (False, 0.0)
    assert evaluate_call_out_allocation(ReportType.CALL_OUT, True, 12.5) == (True, 12.5)


def test_suggested_hours_defaults_to_a_standard_shift():
    _, _, record, _ = setup()
    assert suggested_hours(record) == 8.0

    svc, store, record, _ = setup()
    allocated = svc.allocate_pto_for_call_out(record, True, 4).record
    assert suggested_hours(allocated) == 4.0


def test_text_false_does_not_qualify():
    svc, store, record, _ = setup()

    result = svc.allocate_pto_for_call_out(record, "false", 5)

    assert result.record.pto_allocated is False
    assert result.record.pto_hours == 0
    assert store.get(scopes.attendance("e1"), record.record_id).get("ptoHours") == 0
    assert evaluate_call_out_allocation(ReportType.CALL_OUT, " TRUE ", "5") == (True, 5.0)


@pytest.mark.parametrize("qualifies", [None, 1, 0, "no", "", [True]])
def test_qualifies_must_be_a_boolean(qualifies):
    svc, store, record, _ = setup()

    with pytest.raises(ValidationError):
        svc.allocate_pto_for_call_out(record, qualifies, 5)

    stored = store.get(scopes.attendance("e1"), record.record_id)
    assert stored.get("ptoAllocated") is False
    assert stored.get("notificationHandled") is False
