from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.enums import DenialReason, WorkMode, WorkStatus
from ..attendance.repository import AttendanceRepository
from ..users.model import Employee
from .model import EligibilityDecision, WFHQuota


class WFHEligibilityTracker:
    """Decides whether a user may check in as WFH.

    ``evaluate`` is pure: it only sees the employee settings and the number of
    WFH days already used this month. ``advisory`` reads that count from the
    store for display and must never be relied on to enforce the quota; the
    attendance service repeats the evaluation under a per-user lock right
    before inserting.
    """

    def __init__(self, attendance: Optional[AttendanceRepository] = None):
        self._attendance = attendance

    @staticmethod
    def evaluate(employee: Employee, used_days: int) -> EligibilityDecision:
        quota = WFHQuota(used_days=int(used_days), monthly_max=int(employee.max_wfh_days_per_month))

        if employee.work_mode == WorkMode.IN_OFFICE:
            return EligibilityDecision(allowed=False, quota=quota, reason=DenialReason.MODE_RESTRICTED)
        if not employee.wfh_enabled:
            return EligibilityDecision(allowed=False, quota=quota, reason=DenialReason.NOT_ENABLED)
        if quota.exhausted:
            return EligibilityDecision(allowed=False, quota=quota, reason=DenialReason.QUOTA_EXCEEDED)
        return EligibilityDecision(allowed=True, quota=quota)

    def used_days(self, user_id: int, on_day: date) -> int:
        if self._attendance is None:
            raise RuntimeError("WFHEligibilityTracker needs an attendance repository to count usage")
        return self._attendance.count_by_user_status_month(user_id, WorkStatus.WFH, on_day.year, on_day.month)

    def advisory(self, employee: Employee, on_day: date) -> EligibilityDecision:
        return self.evaluate(employee, self.used_days(employee.user_id, on_day))
