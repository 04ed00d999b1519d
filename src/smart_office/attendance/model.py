from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import VerificationMethod, WorkStatus
from ..verification.model import VerificationPayload


@dataclass(frozen=True)
class CheckInAttempt:
    """Ephemeral check-in claim; only its outcome is persisted."""

    user_id: int
    office_id: Optional[int]
    claimed_at: datetime
    status: WorkStatus
    payload: Optional[VerificationPayload] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """At most one record per user per work_date.

    The verification outcome (status, method, confidence) is fixed at creation;
    only check_out_time is filled in later.
    """

    attendance_id: Optional[int]
    user_id: int
    work_date: date
    status: WorkStatus
    method: VerificationMethod
    confidence: float
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    office_id: Optional[int] = None
    note: Optional[str] = None

    def with_id(self, attendance_id: int) -> "AttendanceRecord":
        return replace(self, attendance_id=attendance_id)

    def with_checkout(self, check_out_time: datetime) -> "AttendanceRecord":
        return replace(self, check_out_time=check_out_time)

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "work_date": self.work_date.isoformat(),
            "status": self.status.value,
            "method": self.method.value,
            "confidence": self.confidence,
            "check_in_time": self.check_in_time.isoformat(),
            "check_out_time": self.check_out_time.isoformat() if self.check_out_time else None,
            "office_id": self.office_id,
            "note": self.note,
        }


@dataclass(frozen=True)
class CheckInOutcome:
    admitted: bool
    record: Optional[AttendanceRecord] = None
    reason: Optional[str] = None
    detail: Optional[dict] = None

    def to_dict(self) -> dict:
        data = {"admitted": self.admitted, "reason": self.reason, "detail": self.detail or {}}
        if self.record is not None:
            data["record"] = self.record.to_dict()
        return data
