from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import WorkStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def count_by_user_status_month(self, user_id: int, status: WorkStatus, year: int, month: int) -> int:
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        """Persist a new record; raises DuplicateRecordError if (user, date) exists."""

        raise NotImplementedError

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        """Only sets check_out_time, and only while it is still empty."""

        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
