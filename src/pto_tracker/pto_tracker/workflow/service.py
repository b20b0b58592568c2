from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Protocol

from ..attendance.model import AttendanceRecord, AttendanceReportInput
from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.validators import coerce_enum, optional_text, require_max_words, require_non_empty
from ..core.constants import DEFAULT_EMPLOYEE_NAME, EARLY_LEAVE_MAX_WORDS
from ..core.enums import LatenessDuration, LeaveType, NotificationType, ReportType, RequestStatus, Role
from ..core.exceptions import (
    InvalidStateError,
    NotFoundError,
    NotReadyError,
    PersistenceError,
    ValidationError,
)
from ..notifications.messages import attendance_report_message, pto_request_message, pto_status_message
from ..notifications.model import Notification
from ..profiles.model import Profile
from ..profiles.repository import ProfileProvider
from ..pto.model import PtoRequest, PtoRequestInput
from ..store.model import SERVER_TIMESTAMP
from ..store.repository import RecordStore
from ..store.scopes import ScopeFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of the record + notification two-step write.

    The primary record is always persisted when a result is returned; the
    derived notification may be missing, in which case `warnings` says why.
    """

    record_id: str
    notification_id: Optional[str]
    warnings: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return self.notification_id is not None


@dataclass(frozen=True)
class DecisionResult:
    request_id: str
    status: RequestStatus
    notification_id: Optional[str]
    warnings: tuple[str, ...] = ()


class RequestLookup(Protocol):
    """The caller's current view of PTO requests (e.g. a materialized view)."""

    def find(self, item_id: str) -> Optional[PtoRequest]:
        raise NotImplementedError


class WorkflowService:
    """Attendance reports, PTO requests and PTO decisions.

    Each submission is a two-step saga: the primary document is written first,
    then the derived notification. There is no multi-document transaction, so
    a notification failure leaves the primary write in place and is reported
    as a warning. Writes are never retried here.
    """

    def __init__(self, store: Optional[RecordStore], profiles: ProfileProvider, scopes: ScopeFactory):
        self._store = store
        self._profiles = profiles
        self._scopes = scopes

    # -------- Attendance reports --------
    def submit_attendance_report(
        self,
        employee_id: str,
        report: AttendanceReportInput,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> SubmissionResult:
        store = self._require_store()
        employee_id = self._require_identity(employee_id)

        record = self.validate_attendance_report(employee_id, report)
        profile = self._profiles.get_profile(employee_id)
        record = self._with_profile_snapshot(record, profile)

        doc = record.to_document()
        doc["timestamp"] = SERVER_TIMESTAMP
        record_id = store.create(self._scopes.attendance(employee_id), doc, cancel=cancel)

        notification = Notification(
            notification_id="",
            type=NotificationType(record.report_type.value),
            employee_id=employee_id,
            employee_name=record.employee_name,
            message=attendance_report_message(record.employee_name, record),
            attendance_record_id=record_id,
        )
        notification_id, warnings = self._derive_notification(notification, cancel=cancel)
        return SubmissionResult(record_id=record_id, notification_id=notification_id, warnings=warnings)

    def validate_attendance_report(self, employee_id: str, report: AttendanceReportInput) -> AttendanceRecord:
        """Build the (unsaved) record or raise ValidationError. Nothing is written."""

        report_type = coerce_enum(ReportType, report.report_type, "Report type")
        report_date = parse_iso_date(report.report_date, "Date")

        report_time = None
        reason = None
        lateness = None
        early_leave_reason = None

        if report_type == ReportType.CALL_OUT:
            reason = require_non_empty(report.reason, "Reason")
        elif report_type == ReportType.LATE:
            if report.lateness_duration in (None, ""):
                raise ValidationError("Lateness duration is required")
            lateness = coerce_enum(LatenessDuration, report.lateness_duration, "Lateness duration")
            reason = optional_text(report.reason, "Reason")
            report_time = parse_hhmm(report.report_time)
        else:
            early_leave_reason = require_max_words(
                require_non_empty(report.early_leave_reason, "Early leave reason"),
                "Early leave reason",
                EARLY_LEAVE_MAX_WORDS,
            )
            report_time = parse_hhmm(report.report_time)

        return AttendanceRecord(
            record_id="",
            employee_id=employee_id,
            report_type=report_type,
            report_date=report_date,
            report_time=report_time,
            reason=reason,
            lateness_duration=lateness,
            early_leave_reason=early_leave_reason,
            employee_name=DEFAULT_EMPLOYEE_NAME,
            company_name="",
            title="",
            manager="",
        )

    # -------- PTO requests --------
    def submit_pto_request(
        self,
        employee_id: str,
        request: PtoRequestInput,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> SubmissionResult:
        store = self._require_store()
        employee_id = self._require_identity(employee_id)

        start_date = parse_iso_date(request.start_date, "Start date")
        end_date = parse_iso_date(request.end_date, "End date")
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        leave_type = coerce_enum(LeaveType, request.leave_type, "Leave type")

        profile = self._profiles.get_profile(employee_id)
        name = (profile.name if profile else "") or DEFAULT_EMPLOYEE_NAME

        pto_request = PtoRequest(
            request_id="",
            requester_id=employee_id,
            requester_name=name,
            start_date=start_date,
            end_date=end_date,
            leave_type=leave_type,
            notes=optional_text(request.notes, "Notes"),
            status=RequestStatus.PENDING,
        )
        doc = pto_request.to_document()
        doc["createdAt"] = SERVER_TIMESTAMP
        request_id = store.create(self._scopes.pto_requests(), doc, cancel=cancel)

        notification = Notification(
            notification_id="",
            type=NotificationType.PTO_REQUEST,
            employee_id=employee_id,
            employee_name=name,
            message=pto_request_message(name, start_date, end_date),
        )
        notification_id, warnings = self._derive_notification(notification, cancel=cancel)
        return SubmissionResult(record_id=request_id, notification_id=notification_id, warnings=warnings)

    def decide_pto_request(
        self,
        request_id: str,
        decision: Any,
        actor_role: Any,
        *,
        known_requests: Optional[RequestLookup] = None,
        cancel: Optional[threading.Event] = None,
    ) -> DecisionResult:
        """pending -> approved | rejected, exactly once.

        The status write is conditioned on the stored status still being
        `pending`, so of two concurrent decisions only one succeeds.
        """

        decision = coerce_enum(RequestStatus, decision, "Decision")
        if not decision.is_terminal:
            raise ValidationError("Decision must be approved or rejected")
        if coerce_enum(Role, actor_role, "Role") != Role.MANAGEMENT:
            raise InvalidStateError("Only management can decide PTO requests")

        store = self._require_store()
        scope = self._scopes.pto_requests()
        doc = store.get(scope, request_id, cancel=cancel)
        if doc is None:
            raise NotFoundError(f"PTO request {request_id} not found")

        current = RequestStatus(doc.get("status", RequestStatus.PENDING.value))
        if current.is_terminal:
            raise InvalidStateError(f"PTO request {request_id} is already {current.value}")

        store.update(
            scope,
            request_id,
            {"status": decision.value, "decidedAt": SERVER_TIMESTAMP},
            expected={"status": RequestStatus.PENDING.value},
            cancel=cancel,
        )

        warnings: list[str] = []
        requester_id: Optional[str] = None
        requester_name: Optional[str] = None
        try:
            requester_id, requester_name = self._resolve_requester(request_id, doc.data, known_requests)
        except NotFoundError as e:
            logger.warning("Decision applied without a notification target: %s", e)
            warnings.append(str(e))

        notification = Notification(
            notification_id="",
            type=NotificationType.PTO_STATUS_UPDATE,
            employee_id=requester_id,
            employee_name=requester_name,
            message=pto_status_message(requester_name, request_id, decision),
        )
        notification_id, notify_warnings = self._derive_notification(notification, cancel=cancel)
        return DecisionResult(
            request_id=request_id,
            status=decision,
            notification_id=notification_id,
            warnings=tuple(warnings) + notify_warnings,
        )

    # -------- Helpers --------
    def _require_store(self) -> RecordStore:
        if self._store is None:
            raise NotReadyError("Record store is not available")
        return self._store

    @staticmethod
    def _require_identity(employee_id: Optional[str]) -> str:
        if not employee_id or not str(employee_id).strip():
            raise NotReadyError("Not signed in")
        return str(employee_id)

    @staticmethod
    def _with_profile_snapshot(record: AttendanceRecord, profile: Optional[Profile]) -> AttendanceRecord:
        if profile is None:
            return record
        return replace(
            record,
            employee_name=profile.name or DEFAULT_EMPLOYEE_NAME,
            company_name=profile.company_name,
            title=profile.title,
            manager=profile.manager,
        )

    @staticmethod
    def _resolve_requester(
        request_id: str,
        stored: Mapping[str, Any],
        known_requests: Optional[RequestLookup],
    ) -> tuple[Optional[str], Optional[str]]:
        if known_requests is None:
            return stored.get("requesterId"), stored.get("requesterName")
        req = known_requests.find(request_id)
        if req is None:
            raise NotFoundError(f"PTO request {request_id} is not in the current view; requester unknown")
        return req.requester_id, req.requester_name

    def _derive_notification(
        self,
        notification: Notification,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> tuple[Optional[str], tuple[str, ...]]:
        doc = notification.to_document()
        doc["timestamp"] = SERVER_TIMESTAMP
        try:
            return self._store.create(self._scopes.notifications(), doc, cancel=cancel), ()
        except (PersistenceError, NotReadyError) as e:
            logger.warning("Primary write kept but %s notification failed: %s", notification.type.value, e)
            return None, (f"Saved, but the {notification.type.value} notification could not be created: {e}",)
