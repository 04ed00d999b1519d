from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock, to_local_naive
from ..common.locks import KeyedLocks
from ..common.retry import call_with_retry
from ..config.settings import EngineSettings
from ..core.constants import DEFAULT_HISTORY_LIMIT, SELF_DECLARED_CONFIDENCE
from ..core.enums import DenialReason, EventKind, VerificationMethod, WorkStatus
from ..core.exceptions import ConflictError, DuplicateRecordError, NotFoundError, ValidationError
from ..notifications.model import NotificationEvent
from ..notifications.notifier import LoggingNotifier, Notifier, publish_safely
from ..offices.repository import OfficeLocationRepository
from ..users.model import Employee
from ..users.repository import EmployeeRepository
from ..verification.arbiter import VerificationArbiter
from ..verification.verifiers.token_verifier import TokenVerifier
from ..wfh.approval_service import WFHApprovalService
from ..wfh.model import EligibilityDecision
from ..wfh.tracker import WFHEligibilityTracker
from .model import AttendanceRecord, CheckInAttempt, CheckInOutcome
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

MAX_CLAIM_SKEW = timedelta(minutes=5)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        offices: OfficeLocationRepository,
        arbiter: VerificationArbiter,
        *,
        tracker: Optional[WFHEligibilityTracker] = None,
        approvals: Optional[WFHApprovalService] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLocks] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._offices = offices
        self._arbiter = arbiter
        self._tracker = tracker or WFHEligibilityTracker(attendance)
        self._approvals = approvals
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or SystemClock()
        self._settings = settings or EngineSettings()
        self._locks = locks or KeyedLocks(timeout=self._settings.lock_timeout_s)

    def _read(self, fn, *args, **kwargs):
        return call_with_retry(
            fn,
            *args,
            attempts=self._settings.store_retry_attempts,
            delay=self._settings.store_retry_delay_s,
            **kwargs,
        )

    def _get_employee(self, user_id: int) -> Employee:
        employee = self._read(self._employees.get_by_id, int(user_id))
        if not employee or not employee.is_active:
            raise NotFoundError("Employee does not exist")
        return employee

    def _resolve_time(self, claimed_at: Optional[datetime]) -> datetime:
        now = self._clock.now()
        if claimed_at is not None and abs(to_local_naive(claimed_at) - now) > MAX_CLAIM_SKEW:
            raise ValidationError("Claimed check-in time is too far from server time")
        return now

    def check_in(self, attempt: CheckInAttempt) -> CheckInOutcome:
        """Decide and, when admitted, persist the day's attendance record.

        Nothing is written before the decision; a denial leaves no trace in
        the store.
        """
        employee = self._get_employee(attempt.user_id)
        now = self._resolve_time(attempt.claimed_at)
        today = now.date()

        # Serializes a user's check-ins for the month: the WFH count-then-insert
        # and the one-record-per-day rule both depend on it.
        with self._locks.hold(("attendance", employee.user_id, today.year, today.month)):
            if self._read(self._attendance.get_for_user_and_date, employee.user_id, today):
                raise DuplicateRecordError("Already checked in today")

            if attempt.status == WorkStatus.OFFICE:
                return self._check_in_office(employee, attempt, now)
            if attempt.status == WorkStatus.WFH:
                return self._check_in_wfh(employee, attempt, now)
            if attempt.status == WorkStatus.LEAVE:
                return self._check_in_leave(employee, attempt, now)
            raise ValidationError(f"Unsupported status: {attempt.status!r}")

    def _check_in_office(self, employee: Employee, attempt: CheckInAttempt, now: datetime) -> CheckInOutcome:
        if attempt.office_id is None:
            raise ValidationError("Office check-in needs an office")
        office = self._read(self._offices.get, int(attempt.office_id))
        if not office or not office.is_active:
            raise NotFoundError("Office does not exist")

        decision = self._arbiter.decide(attempt.payload, office, now=now)
        if not decision.admitted:
            logger.info(
                "Check-in denied user=%s office=%s method=%s reason=%s",
                employee.user_id,
                office.office_id,
                decision.method.value,
                decision.reason.value if decision.reason else None,
            )
            return CheckInOutcome(
                admitted=False,
                reason=decision.reason.value if decision.reason else None,
                detail=decision.detail,
            )

        # Single-use tokens are consumed before the record exists; the
        # conditional update lets exactly one concurrent scan through.
        token = None
        if decision.method == VerificationMethod.QR_CODE:
            token = office.find_token(decision.detail.get("token", ""))
            if token is not None and token.single_use and not TokenVerifier.consume(self._offices, token, now=now):
                logger.info(
                    "Check-in denied user=%s office=%s token=%s already used",
                    employee.user_id,
                    office.office_id,
                    token.code,
                )
                return CheckInOutcome(
                    admitted=False,
                    reason=DenialReason.TOKEN_INVALID.value,
                    detail={"token_state": "already-used"},
                )

        record = self._attendance.insert(
            AttendanceRecord(
                attendance_id=None,
                user_id=employee.user_id,
                work_date=now.date(),
                status=WorkStatus.OFFICE,
                method=decision.method,
                confidence=decision.confidence,
                check_in_time=now,
                office_id=office.office_id,
                note=attempt.note,
            )
        )

        if token is not None and not token.single_use:
            TokenVerifier.record_use(self._offices, token, now=now)

        logger.info(
            "Check-in admitted user=%s office=%s method=%s confidence=%.2f",
            employee.user_id,
            office.office_id,
            decision.method.value,
            decision.confidence,
        )
        return CheckInOutcome(admitted=True, record=record, detail=decision.detail)

    def _check_in_wfh(self, employee: Employee, attempt: CheckInAttempt, now: datetime) -> CheckInOutcome:
        today = now.date()
        used = self._read(self._tracker.used_days, employee.user_id, today)
        eligibility = self._tracker.evaluate(employee, used)
        if not eligibility.allowed:
            logger.info("WFH denied user=%s reason=%s", employee.user_id, eligibility.reason.value)
            return CheckInOutcome(admitted=False, reason=eligibility.reason.value, detail=eligibility.to_dict())

        if self._settings.wfh_requires_approval:
            if self._approvals is None or not self._approvals.has_approval(employee.user_id, today):
                return CheckInOutcome(
                    admitted=False,
                    reason=DenialReason.APPROVAL_REQUIRED.value,
                    detail=eligibility.to_dict(),
                )

        record = self._attendance.insert(
            AttendanceRecord(
                attendance_id=None,
                user_id=employee.user_id,
                work_date=today,
                status=WorkStatus.WFH,
                method=VerificationMethod.SELF_DECLARED,
                confidence=SELF_DECLARED_CONFIDENCE,
                check_in_time=now,
                note=attempt.note,
            )
        )

        remaining = max(0, eligibility.quota.monthly_max - (used + 1))
        if remaining <= self._settings.wfh_near_limit_threshold:
            publish_safely(
                self._notifier,
                NotificationEvent(
                    kind=EventKind.WFH_QUOTA_NEAR_LIMIT,
                    user_id=employee.user_id,
                    created_at=now,
                    payload={
                        "used_days": used + 1,
                        "monthly_max": eligibility.quota.monthly_max,
                        "remaining": remaining,
                    },
                ),
            )
        return CheckInOutcome(
            admitted=True,
            record=record,
            detail={"used_days": used + 1, "monthly_max": eligibility.quota.monthly_max, "remaining": remaining},
        )

    def _check_in_leave(self, employee: Employee, attempt: CheckInAttempt, now: datetime) -> CheckInOutcome:
        if not attempt.note or not attempt.note.strip():
            raise ValidationError("A leave reason is required")
        record = self._attendance.insert(
            AttendanceRecord(
                attendance_id=None,
                user_id=employee.user_id,
                work_date=now.date(),
                status=WorkStatus.LEAVE,
                method=VerificationMethod.SELF_DECLARED,
                confidence=SELF_DECLARED_CONFIDENCE,
                check_in_time=now,
                note=attempt.note.strip(),
            )
        )
        return CheckInOutcome(admitted=True, record=record)

    def check_out(self, user_id: int) -> AttendanceRecord:
        now = self._clock.now()
        record = self._read(self._attendance.get_for_user_and_date, int(user_id), now.date())
        if not record:
            raise NotFoundError("No check-in for today")
        if record.status == WorkStatus.LEAVE:
            raise ValidationError("Leave days have no check-out")
        if record.check_out_time is not None:
            raise ConflictError("Already checked out")

        if not self._attendance.update_checkout(attendance_id=record.attendance_id, check_out_time=now):
            raise ConflictError("Already checked out")
        return record.with_checkout(now)

    def wfh_quota(self, user_id: int, on_day: Optional[date] = None) -> EligibilityDecision:
        """Advisory eligibility for UI display."""
        employee = self._get_employee(user_id)
        day = on_day or self._clock.now().date()
        return self._read(self._tracker.advisory, employee, day)

    def get_today_record(self, user_id: int) -> Optional[AttendanceRecord]:
        return self._read(self._attendance.get_for_user_and_date, int(user_id), self._clock.now().date())

    def history(self, user_id: int, *, days: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        today = self._clock.now().date()
        return self._read(self._attendance.list_for_user_between, int(user_id), today - timedelta(days=days), today)
