from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import month_bounds
from ..core.enums import VerificationMethod, WorkStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, user_id, work_date, status, method, confidence, check_in_time, check_out_time, office_id, note"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=WorkStatus(r["status"]),
        method=VerificationMethod(r["method"]),
        confidence=float(r["confidence"]),
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        office_id=int(r["office_id"]) if r.get("office_id") is not None else None,
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def count_by_user_status_month(self, user_id: int, status: WorkStatus, year: int, month: int) -> int:
        first, last = month_bounds(year, month)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM attendance_records
                WHERE user_id=%s AND status=%s AND work_date BETWEEN %s AND %s
                """,
                (int(user_id), status.value, first, last),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        # uq_attendance_user_date turns a second insert into DuplicateRecordError (see db_cursor).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, work_date, status, method, confidence,
                                               check_in_time, check_out_time, office_id, note)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.user_id,
                    record.work_date,
                    record.status.value,
                    record.method.value,
                    round(record.confidence, 2),
                    record.check_in_time,
                    record.check_out_time,
                    record.office_id,
                    record.note,
                ),
            )
            return record.with_id(int(cur.lastrowid))

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(user_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]
