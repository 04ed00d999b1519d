from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import ReservationKind, ReservationStatus
from ..core.exceptions import BookingConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, mysql_time_value, normalize_mysql_time
from .conflicts import BookingConflictDetector
from .model import Reservation
from .repository import ReservationRepository

logger = logging.getLogger(__name__)

_COLUMNS = (
    "reservation_id, kind, resource_id, owner_id, work_date, start_time, end_time, status, attendees, "
    "purpose, created_at, checked_in_at, pending_release_at, closed_at, version"
)


def _to_reservation(r: dict) -> Reservation:
    return Reservation(
        reservation_id=int(r["reservation_id"]),
        kind=ReservationKind(r["kind"]),
        resource_id=int(r["resource_id"]),
        owner_id=int(r["owner_id"]),
        work_date=r["work_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        status=ReservationStatus(r["status"]),
        attendees=int(r["attendees"]),
        purpose=r.get("purpose"),
        created_at=r.get("created_at"),
        checked_in_at=r.get("checked_in_at"),
        pending_release_at=r.get("pending_release_at"),
        closed_at=r.get("closed_at"),
        version=int(r["version"]),
    )


class MySQLReservationRepository(ReservationRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, detector: Optional[BookingConflictDetector] = None):
        self._conn_factory = conn_factory
        self._detector = detector or BookingConflictDetector()

    def get(self, reservation_id: int) -> Optional[Reservation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM reservations WHERE reservation_id=%s", (int(reservation_id),))
            r = fetchone(cur)
            return _to_reservation(r) if r else None

    def list_confirmed(self, kind: ReservationKind, resource_id: int, work_date: date) -> Sequence[Reservation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM reservations
                WHERE kind=%s AND resource_id=%s AND work_date=%s AND status=%s
                ORDER BY start_time
                """,
                (kind.value, int(resource_id), work_date, ReservationStatus.CONFIRMED.value),
            )
            return [_to_reservation(r) for r in fetchall(cur)]

    def list_for_resource_between(
        self, kind: ReservationKind, resource_id: int, start_date: date, end_date: date
    ) -> Sequence[Reservation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM reservations
                WHERE kind=%s AND resource_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date, start_time
                """,
                (kind.value, int(resource_id), start_date, end_date),
            )
            return [_to_reservation(r) for r in fetchall(cur)]

    def list_for_owner(self, owner_id: int, *, since: date) -> Sequence[Reservation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM reservations
                WHERE owner_id=%s AND work_date >= %s
                ORDER BY work_date DESC, start_time DESC
                """,
                (int(owner_id), since),
            )
            return [_to_reservation(r) for r in fetchall(cur)]

    def list_confirmed_until(self, day: date) -> Sequence[Reservation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM reservations
                WHERE status=%s AND work_date <= %s
                ORDER BY work_date, start_time
                """,
                (ReservationStatus.CONFIRMED.value, day),
            )
            return [_to_reservation(r) for r in fetchall(cur)]

    def insert_if_no_conflict(self, reservation: Reservation) -> Reservation:
        # SELECT ... FOR UPDATE takes next-key locks on the (kind, resource_id,
        # work_date, status) range, so a concurrent booker blocks here until we
        # commit and then sees our row.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM reservations
                WHERE kind=%s AND resource_id=%s AND work_date=%s AND status=%s
                FOR UPDATE
                """,
                (reservation.kind.value, reservation.resource_id, reservation.work_date, ReservationStatus.CONFIRMED.value),
            )
            on_resource = [_to_reservation(r) for r in fetchall(cur)]

            for_owner: list[Reservation] = []
            if reservation.kind == ReservationKind.PARKING:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM reservations
                    WHERE kind=%s AND owner_id=%s AND work_date=%s AND status=%s
                    FOR UPDATE
                    """,
                    (reservation.kind.value, reservation.owner_id, reservation.work_date, ReservationStatus.CONFIRMED.value),
                )
                for_owner = [_to_reservation(r) for r in fetchall(cur)]

            report = self._detector.check(reservation, on_resource, for_owner)
            if not report.accepted:
                raise BookingConflictError(f"Reservation conflicts ({report.reason})", report.conflicts)

            cur.execute(
                """
                INSERT INTO reservations(kind, resource_id, owner_id, work_date, start_time, end_time, status,
                                         attendees, purpose, created_at, version)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    reservation.kind.value,
                    reservation.resource_id,
                    reservation.owner_id,
                    reservation.work_date,
                    mysql_time_value(reservation.start_time),
                    mysql_time_value(reservation.end_time),
                    ReservationStatus.CONFIRMED.value,
                    reservation.attendees,
                    reservation.purpose,
                    reservation.created_at,
                ),
            )
            return reservation.with_id(int(cur.lastrowid))

    def transition_status(
        self,
        reservation_id: int,
        from_status: ReservationStatus,
        to_status: ReservationStatus,
        *,
        at: datetime,
        expected_version: Optional[int] = None,
    ) -> bool:
        sql = """
            UPDATE reservations
            SET status=%s, closed_at=%s, version=version+1
            WHERE reservation_id=%s AND status=%s
        """
        params: list[object] = [to_status.value, at, int(reservation_id), from_status.value]
        if expected_version is not None:
            sql += " AND version=%s"
            params.append(int(expected_version))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return cur.rowcount > 0

    def mark_checked_in(self, reservation_id: int, *, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE reservations
                SET checked_in_at=%s, version=version+1
                WHERE reservation_id=%s AND status=%s AND checked_in_at IS NULL
                """,
                (at, int(reservation_id), ReservationStatus.CONFIRMED.value),
            )
            return cur.rowcount > 0

    def mark_release_pending(self, reservation_id: int, *, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE reservations
                SET pending_release_at=%s, version=version+1
                WHERE reservation_id=%s AND status=%s AND pending_release_at IS NULL
                """,
                (at, int(reservation_id), ReservationStatus.CONFIRMED.value),
            )
            return cur.rowcount > 0
