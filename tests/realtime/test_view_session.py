from __future__ import annotations

from datetime import date, datetime

from src.pto_tracker.pto_tracker.attendance.model import AttendanceReportInput
from src.pto_tracker.pto_tracker.core.enums import RequestStatus, Role
from src.pto_tracker.pto_tracker.profiles.store_profile_repository import StoreProfileRepository
from src.pto_tracker.pto_tracker.pto.model import PtoRequestInput
from src.pto_tracker.pto_tracker.realtime.queries import (
    ALL_NOTIFICATIONS,
    ALL_PTO_REQUESTS,
    COMPANY_ATTENDANCE,
    MY_ATTENDANCE_WEEK,
    MY_PTO_REQUESTS,
)
from src.pto_tracker.pto_tracker.realtime.session import ViewSession, ViewSessionRegistry
from src.pto_tracker.pto_tracker.store.memory_store import InMemoryRecordStore
from src.pto_tracker.pto_tracker.store.scopes import ScopeFactory
from src.pto_tracker.pto_tracker.workflow.service import WorkflowService

scopes = ScopeFactory(org_id="acme")
TODAY = date(2024, 3, 6)  # Wednesday; week is Sun 3 Mar .. Sat 9 Mar


def make_world(clock_value=datetime(2024, 3, 6, 9, 0)):
    store = InMemoryRecordStore(clock=lambda: clock_value)
    workflow = WorkflowService(store, StoreProfileRepository(store, scopes), scopes)
    return store, workflow


def test_employee_and_management_views_follow_writes():
    store, workflow = make_world()
    employee = ViewSession(store, scopes, today=lambda: TODAY)
    manager = ViewSession(store, scopes, today=lambda: TODAY)
    employee.start("e1", Role.EMPLOYEE)
    manager.start("m1", Role.MANAGEMENT)

    assert set(employee.views) == {MY_ATTENDANCE_WEEK, MY_PTO_REQUESTS}
    assert set(manager.views) == {ALL_PTO_REQUESTS, ALL_NOTIFICATIONS, COMPANY_ATTENDANCE}

    workflow.submit_attendance_report(
        "e1", AttendanceReportInput(report_type="call_out", report_date="2024-03-06", reason="flu")
    )
    request_id = workflow.submit_pto_request(
        "e1", PtoRequestInput(start_date="2024-04-01", end_date="2024-04-03", leave_type="vacation")
    ).record_id

    assert len(employee.view(MY_ATTENDANCE_WEEK)) == 1
    assert len(manager.view(COMPANY_ATTENDANCE)) == 1
    assert len(manager.view(ALL_NOTIFICATIONS)) == 2
    assert employee.view(MY_PTO_REQUESTS).find(request_id).status == RequestStatus.PENDING

    workflow.decide_pto_request(
        request_id, "approved", Role.MANAGEMENT, known_requests=manager.view(ALL_PTO_REQUESTS)
    )

    assert employee.view(MY_PTO_REQUESTS).find(request_id).status == RequestStatus.APPROVED
    assert manager.view(ALL_NOTIFICATIONS).items[0].type.value == "pto_status_update"


def test_week_view_excludes_reports_from_other_weeks():
    store, workflow = make_world(clock_value=datetime(2024, 2, 20, 9, 0))
    workflow.submit_attendance_report(
        "e1", AttendanceReportInput(report_type="call_out", report_date="2024-02-20", reason="flu")
    )
    session = ViewSession(store, scopes, today=lambda: TODAY)
    session.start("e1", Role.EMPLOYEE)

    assert session.view(MY_ATTENDANCE_WEEK).state.loaded
    assert len(session.view(MY_ATTENDANCE_WEEK)) == 0


def test_my_pto_requests_only_shows_own_requests():
    store, workflow = make_world()
    session = ViewSession(store, scopes, today=lambda: TODAY)
    session.start("e1", Role.EMPLOYEE)

    workflow.submit_pto_request("e2", PtoRequestInput(start_date="2024-04-01", end_date="2024-04-01", leave_type="sick"))

    assert len(session.view(MY_PTO_REQUESTS)) == 0


def test_close_releases_every_subscription():
    store, _ = make_world()
    session = ViewSession(store, scopes, today=lambda: TODAY)
    session.start("m1", Role.MANAGEMENT)
    assert store.subscription_count == 3

    session.close()
    session.close()

    assert store.subscription_count == 0
    assert session.views == {}
    assert session.identity_id is None


def test_starting_for_another_identity_releases_previous_listeners_first():
    store, workflow = make_world()
    session = ViewSession(store, scopes, today=lambda: TODAY)
    session.start("e1", Role.EMPLOYEE)
    old_view = session.view(MY_PTO_REQUESTS)

    session.start("e2", Role.EMPLOYEE)
    workflow.submit_pto_request("e1", PtoRequestInput(start_date="2024-04-01", end_date="2024-04-01", leave_type="sick"))

    assert store.subscription_count == 2
    assert session.identity_id == "e2"
    assert len(old_view) == 0
    assert len(session.view(MY_PTO_REQUESTS)) == 0


def test_registry_closes_session_on_sign_out():
    store, _ = make_world()
    registry = ViewSessionRegistry(store, scopes)

    first = registry.open("e1", Role.EMPLOYEE)
    assert registry.open("e1", Role.EMPLOYEE) is first
    registry.open("m1", Role.MANAGEMENT)
    assert store.subscription_count == 5

    registry.close("e1")
    assert registry.get("e1") is None
    assert store.subscription_count == 3

    registry.close_all()
    assert store.subscription_count == 0


def test_week_view_moves_to_the_new_week_on_restart():
    now = [datetime(2024, 3, 4, 9, 0)]
    store = InMemoryRecordStore(clock=lambda: now[0])
    workflow = WorkflowService(store, StoreProfileRepository(store, scopes), scopes)
    session = ViewSession(store, scopes, today=lambda: now[0].date())
    session.start("e1", Role.EMPLOYEE)

    now[0] = datetime(2024, 3, 12, 9, 0)
    session.start("e1", Role.EMPLOYEE)
    workflow.submit_attendance_report(
        "e1", AttendanceReportInput(report_type="call_out", report_date="2024-03-12", reason="flu")
    )

    assert len(session.view(MY_ATTENDANCE_WEEK)) == 1
    assert store.subscription_count == 2


def test_week_view_lookup_rolls_over_without_restart():
    now = [datetime(2024, 3, 8, 9, 0)]
    store = InMemoryRecordStore(clock=lambda: now[0])
    workflow = WorkflowService(store, StoreProfileRepository(store, scopes), scopes)
    session = ViewSession(store, scopes, today=lambda: now[0].date())
    session.start("e1", Role.EMPLOYEE)
    workflow.submit_attendance_report(
        "e1", AttendanceReportInput(report_type="call_out", report_date="2024-03-08", reason="flu")
    )
    assert len(session.view(MY_ATTENDANCE_WEEK)) == 1

    now[0] = datetime(2024, 3, 10, 9, 0)

    assert len(session.view(MY_ATTENDANCE_WEEK)) == 0
    assert store.subscription_count == 2


def test_registry_evicts_idle_sessions_on_next_open():
    store, _ = make_world()
    ticks = [0.0]
    registry = ViewSessionRegistry(store, scopes, idle_seconds=60, clock=lambda: ticks[0], today=lambda: TODAY)

    registry.open("e1", Role.EMPLOYEE)
    registry.open("m1", Role.MANAGEMENT)
    ticks[0] = 50.0
    registry.get("m1")

    ticks[0] = 100.0
    registry.open("e2", Role.EMPLOYEE)

    assert registry.get("e1") is None
    assert registry.get("m1") is not None
    assert len(registry) == 2
    assert store.subscription_count == 5


def test_registry_without_idle_limit_keeps_sessions():
    store, _ = make_world()
    ticks = [0.0]
    registry = ViewSessionRegistry(store, scopes, clock=lambda: ticks[0])

    registry.open("e1", Role.EMPLOYEE)
    ticks[0] = 10_000.0

    assert registry.evict_idle() == 0
    assert registry.get("e1") is not None
