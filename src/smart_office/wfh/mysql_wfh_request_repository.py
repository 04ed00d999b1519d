from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus, Urgency
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import WFHRequest
from .repository import WFHRequestRepository

_COLUMNS = "request_id, user_id, requested_for, reason, urgency, status, created_at, decided_by, decided_at, manager_note"


def _to_request(r: dict) -> WFHRequest:
    return WFHRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        requested_for=r["requested_for"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        urgency=Urgency(r["urgency"]),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decided_at=r.get("decided_at"),
        manager_note=r.get("manager_note"),
    )


class MySQLWFHRequestRepository(WFHRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, requested_for: date, reason: str, urgency: Urgency, created_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO wfh_requests(user_id, requested_for, reason, urgency, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), requested_for, reason, urgency.value, RequestStatus.PENDING.value, created_at),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[WFHRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM wfh_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_for_user_and_date(self, user_id: int, requested_for: date) -> Sequence[WFHRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM wfh_requests
                WHERE user_id=%s AND requested_for=%s
                ORDER BY created_at DESC
                """,
                (int(user_id), requested_for),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE wfh_requests
                SET status=%s, decided_by=%s, decided_at=%s, manager_note=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(decided_by), decided_at, manager_note, int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def expire_pending_before(self, cutoff: date, *, at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE wfh_requests
                SET status=%s, decided_at=%s
                WHERE status=%s AND requested_for < %s
                """,
                (RequestStatus.EXPIRED.value, at, RequestStatus.PENDING.value, cutoff),
            )
            return int(cur.rowcount)
