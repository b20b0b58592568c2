"""Example: drive the service layer directly (no Flask), on the in-memory store."""

from datetime import date

from src.pto_tracker.pto_tracker.attendance.model import AttendanceReportInput
from src.pto_tracker.pto_tracker.container import build_container
from src.pto_tracker.pto_tracker.identity.provider import StaticIdentityProvider, require_identity
from src.pto_tracker.pto_tracker.realtime.queries import ALL_NOTIFICATIONS


def main():
    container = build_container(org_id="example-org")
    employee_id = require_identity(StaticIdentityProvider("e1"))
    container.profile_service.setup_profile(
        user_id=employee_id, name="Ana", role="employee", company_name="Acme", title="Nurse", manager="Bo"
    )
    manager_views = container.view_sessions.open("m1", "management")

    result = container.workflow_service.submit_attendance_report(
        employee_id, AttendanceReportInput(report_type="call_out", report_date=date.today(), reason="Fever")
    )
    print("record", result.record_id, "warnings", result.warnings)

    for notification in manager_views.view(ALL_NOTIFICATIONS):
        print(notification.type.value, notification.message)

    container.shutdown()


if __name__ == "__main__":
    main()
