from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import require_non_empty
from ..core.constants import WFH_REQUEST_EXPIRY_DAYS
from ..core.enums import EventKind, RequestStatus, Urgency
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, QuotaExceededError, ValidationError
from ..notifications.model import NotificationEvent
from ..notifications.notifier import LoggingNotifier, Notifier, publish_safely
from ..users.repository import EmployeeRepository
from .repository import WFHRequestRepository
from .tracker import WFHEligibilityTracker

logger = logging.getLogger(__name__)


class WFHApprovalService:
    """Manager approval flow for WFH days."""

    def __init__(
        self,
        requests: WFHRequestRepository,
        employees: EmployeeRepository,
        *,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        tracker: Optional[WFHEligibilityTracker] = None,
        expiry_days: int = WFH_REQUEST_EXPIRY_DAYS,
    ):
        self._requests = requests
        self._employees = employees
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or SystemClock()
        self._tracker = tracker
        self._expiry_days = int(expiry_days)

    def submit(self, *, user_id: int, requested_for: date, reason: str, urgency: str = Urgency.NORMAL.value) -> int:
        employee = self._employees.get_by_id(int(user_id))
        if not employee or not employee.is_active:
            raise NotFoundError("Employee does not exist")

        now = self._clock.now()
        if requested_for < now.date():
            raise ValidationError("Cannot request WFH for a past date")
        reason = require_non_empty(reason, "Reason")
        try:
            level = Urgency(urgency)
        except ValueError:
            raise ValidationError(f"Unknown urgency: {urgency!r}")

        open_states = {RequestStatus.PENDING, RequestStatus.APPROVED}
        if any(r.status in open_states for r in self._requests.find_for_user_and_date(int(user_id), requested_for)):
            raise ConflictError("A WFH request for this date already exists")

        if self._tracker is not None:
            used = self._tracker.used_days(employee.user_id, requested_for)
            if used >= employee.max_wfh_days_per_month:
                raise QuotaExceededError(
                    "Monthly WFH quota already used", used=used, maximum=employee.max_wfh_days_per_month
                )

        return self._requests.create(
            user_id=int(user_id),
            requested_for=requested_for,
            reason=reason,
            urgency=level,
            created_at=now,
        )

    def approve(self, *, approver_id: int, request_id: int, note: str = "") -> None:
        self._decide(approver_id=approver_id, request_id=request_id, status=RequestStatus.APPROVED, note=note)

    def deny(self, *, approver_id: int, request_id: int, note: str = "") -> None:
        self._decide(approver_id=approver_id, request_id=request_id, status=RequestStatus.DENIED, note=note)

    def _decide(self, *, approver_id: int, request_id: int, status: RequestStatus, note: str) -> None:
        approver = self._employees.get_by_id(int(approver_id))
        if not approver or not approver.may_authorize:
            raise AuthorizationError("Only managers can decide WFH requests")

        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Request does not exist")
        if req.user_id == approver.user_id:
            raise AuthorizationError("Cannot decide your own WFH request")
        if req.status != RequestStatus.PENDING:
            raise ConflictError("Request was already decided")

        now = self._clock.now()
        decided = self._requests.decide(
            request_id=req.request_id,
            status=status,
            decided_by=approver.user_id,
            decided_at=now,
            manager_note=(note or "").strip() or None,
        )
        if not decided:
            raise ConflictError("Request was already decided")

        publish_safely(
            self._notifier,
            NotificationEvent(
                kind=EventKind.WFH_REQUEST_DECIDED,
                user_id=req.user_id,
                created_at=now,
                payload={
                    "request_id": req.request_id,
                    "requested_for": req.requested_for.isoformat(),
                    "status": status.value,
                },
            ),
        )

    def has_approval(self, user_id: int, on_day: date) -> bool:
        return any(
            r.status == RequestStatus.APPROVED for r in self._requests.find_for_user_and_date(int(user_id), on_day)
        )

    def expire_stale(self) -> int:
        now = self._clock.now()
        cutoff = now.date() - timedelta(days=self._expiry_days)
        expired = self._requests.expire_pending_before(cutoff, at=now)
        if expired:
            logger.info("Expired %d pending WFH requests older than %s", expired, cutoff)
        return expired
