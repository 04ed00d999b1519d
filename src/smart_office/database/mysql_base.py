from __future__ import annotations

from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateRecordError, StoreUnavailable
from .connection import DatabaseConnection

_TRANSIENT_ERRNOS = {
    errorcode.ER_LOCK_WAIT_TIMEOUT,
    errorcode.ER_LOCK_DEADLOCK,
    errorcode.CR_SERVER_LOST,
    errorcode.CR_SERVER_GONE_ERROR,
    errorcode.CR_CONNECTION_ERROR,
}


def _translate(e: mysql.connector.Error) -> Exception:
    if getattr(e, "errno", None) == errorcode.ER_DUP_ENTRY:
        return DuplicateRecordError(str(e))
    if getattr(e, "errno", None) in _TRANSIENT_ERRNOS or isinstance(
        e, (mysql.connector.errors.OperationalError, mysql.connector.errors.InterfaceError)
    ):
        return StoreUnavailable(str(e))
    return e


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on any error.

    Connector errors are mapped onto the domain taxonomy (duplicate key,
    transient unavailability).
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        translated = _translate(e)
        if translated is e:
            raise
        raise translated from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds())
        if total_seconds >= 86400:
            # '24:00:00' marks end of day for whole-day parking windows
            return time.max
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return time(hour=hours, minute=minutes, second=seconds)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hours = int(parts[0])
        if hours >= 24:
            return time.max
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def mysql_time_value(value: time) -> str:
    """Inverse of normalize_mysql_time for whole-day windows."""
    if value == time.max:
        return "24:00:00"
    return value.strftime("%H:%M:%S")
