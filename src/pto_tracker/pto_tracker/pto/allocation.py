from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Optional

from ..attendance.model import AttendanceRecord
from ..common.validators import parse_flag, parse_hours
from ..core.constants import DEFAULT_CALL_OUT_PTO_HOURS
from ..core.enums import ReportType
from ..core.exceptions import NotFoundError, NotReadyError, PersistenceError, PreconditionError
from ..store.model import Query
from ..store.repository import RecordStore
from ..store.scopes import ScopeFactory

logger = logging.getLogger(__name__)


def evaluate_call_out_allocation(report_type: ReportType, qualifies: Any, hours: Any) -> tuple[bool, float]:
    """Return (pto_allocated, pto_hours) for a manager's call-out decision.

    Non-qualification always zeroes the allocation, whatever `hours` says.
    The employee's PTO balance is deliberately not consulted.
    """

    if report_type != ReportType.CALL_OUT:
        raise PreconditionError(f"PTO can only be allocated for call-outs, not {report_type.value}")
    if not parse_flag(qualifies, "Qualifies"):
        return False, 0.0
    return True, parse_hours(hours, "PTO hours")


def suggested_hours(record: AttendanceRecord) -> float:
    """Pre-filled value for the allocation form: current hours, else one standard shift."""
    return record.pto_hours if record.pto_hours > 0 else DEFAULT_CALL_OUT_PTO_HOURS


@dataclass(frozen=True)
class AllocationResult:
    record: AttendanceRecord
    handled_notification_ids: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


class PtoAllocationService:
    def __init__(self, store: RecordStore, scopes: ScopeFactory):
        self._store = store
        self._scopes = scopes

    def allocate_pto_for_call_out(
        self,
        record: AttendanceRecord,
        qualifies: Any,
        hours: Any = DEFAULT_CALL_OUT_PTO_HOURS,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> AllocationResult:
        allocated, pto_hours = evaluate_call_out_allocation(record.report_type, qualifies, hours)

        self._store.update(
            self._scopes.attendance(record.employee_id),
            record.record_id,
            {"ptoAllocated": allocated, "ptoHours": pto_hours, "notificationHandled": True},
            cancel=cancel,
        )
        updated = replace(record, pto_allocated=allocated, pto_hours=pto_hours, notification_handled=True)

        handled: list[str] = []
        warnings: list[str] = []
        try:
            handled = self._mark_notifications_handled(record.record_id, cancel=cancel)
        except (PersistenceError, NotReadyError, NotFoundError) as e:
            logger.warning("PTO allocated for %s but notification not marked handled: %s", record.record_id, e)
            warnings.append(f"Allocation saved, but the call-out notification could not be marked handled: {e}")

        return AllocationResult(record=updated, handled_notification_ids=tuple(handled), warnings=tuple(warnings))

    def _mark_notifications_handled(self, record_id: str, *, cancel: Optional[threading.Event]) -> list[str]:
        scope = self._scopes.notifications()
        query = (
            Query(scope)
            .where("attendanceRecordId", "==", record_id)
            .where("notificationHandled", "==", False)
        )
        handled: list[str] = []
        for doc in self._store.list(query, cancel=cancel):
            self._store.update(scope, doc.id, {"notificationHandled": True}, cancel=cancel)
            handled.append(doc.id)
        return handled
