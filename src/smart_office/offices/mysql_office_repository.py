from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import OfficeLocation, OfficeToken, OperatingHours
from .repository import OfficeLocationRepository


class MySQLOfficeLocationRepository(OfficeLocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, office_id: int) -> Optional[OfficeLocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT office_id, name, latitude, longitude, geofence_radius_m,
                       hours_start, hours_end, hours_days, is_active
                FROM office_locations
                WHERE office_id=%s
                """,
                (int(office_id),),
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute(
                "SELECT ssid FROM office_wifi_networks WHERE office_id=%s AND is_active=1",
                (int(office_id),),
            )
            networks = frozenset(row["ssid"] for row in fetchall(cur))

            cur.execute(
                """
                SELECT code, office_id, expires_at, is_active, single_use, usage_count, last_used_at, description
                FROM office_tokens
                WHERE office_id=%s
                """,
                (int(office_id),),
            )
            tokens = tuple(
                OfficeToken(
                    code=t["code"],
                    office_id=int(t["office_id"]),
                    expires_at=t.get("expires_at"),
                    is_active=bool(t["is_active"]),
                    single_use=bool(t["single_use"]),
                    usage_count=int(t["usage_count"] or 0),
                    last_used_at=t.get("last_used_at"),
                    description=t.get("description"),
                )
                for t in fetchall(cur)
            )

            days = frozenset(d.strip() for d in (r.get("hours_days") or "").split(",") if d.strip())
            return OfficeLocation(
                office_id=int(r["office_id"]),
                name=r["name"],
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                geofence_radius_m=float(r["geofence_radius_m"]),
                wifi_networks=networks,
                tokens=tokens,
                hours=OperatingHours(
                    start=normalize_mysql_time(r["hours_start"]),
                    end=normalize_mysql_time(r["hours_end"]),
                    days=days,
                ),
                is_active=bool(r["is_active"]),
            )

    def record_token_use(self, code: str, used_at: datetime, *, single_use: bool = False) -> bool:
        guard = " AND usage_count=0" if single_use else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE office_tokens
                SET usage_count=usage_count+1, last_used_at=%s
                WHERE code=%s{guard}
                """,
                (used_at, code),
            )
            return cur.rowcount > 0
