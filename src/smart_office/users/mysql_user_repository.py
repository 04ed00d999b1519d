from __future__ import annotations

from typing import Optional

from ..core.enums import Role, WorkMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Employee
from .repository import EmployeeRepository


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, role, work_mode, wfh_enabled,
                       max_wfh_days_per_month, can_approve, is_active
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Employee(
                user_id=int(r["user_id"]),
                full_name=r["full_name"],
                role=Role(r["role"]),
                work_mode=WorkMode(r["work_mode"]),
                wfh_enabled=bool(r["wfh_enabled"]),
                max_wfh_days_per_month=int(r["max_wfh_days_per_month"]),
                can_approve=bool(r["can_approve"]),
                is_active=bool(r["is_active"]),
            )
