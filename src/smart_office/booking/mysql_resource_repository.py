from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import SpotType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ParkingSpot, Room
from .repository import ResourceRepository

_ROOM_COLUMNS = "room_id, name, office_id, capacity, has_av, has_whiteboard, has_teleconference, is_active"
_SPOT_COLUMNS = "spot_id, spot_number, spot_type, office_id, is_active"


def _to_room(r: dict) -> Room:
    amenities = set()
    if r.get("has_av"):
        amenities.add("av")
    if r.get("has_whiteboard"):
        amenities.add("whiteboard")
    if r.get("has_teleconference"):
        amenities.add("teleconference")
    return Room(
        room_id=int(r["room_id"]),
        name=r["name"],
        office_id=int(r["office_id"]),
        capacity=int(r["capacity"]),
        amenities=frozenset(amenities),
        is_active=bool(r["is_active"]),
    )


def _to_spot(r: dict) -> ParkingSpot:
    return ParkingSpot(
        spot_id=int(r["spot_id"]),
        spot_number=int(r["spot_number"]),
        spot_type=SpotType(r["spot_type"]),
        office_id=int(r["office_id"]),
        is_active=bool(r["is_active"]),
    )


class MySQLResourceRepository(ResourceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_room(self, room_id: int) -> Optional[Room]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ROOM_COLUMNS} FROM rooms WHERE room_id=%s", (int(room_id),))
            r = fetchone(cur)
            return _to_room(r) if r else None

    def get_spot(self, spot_id: int) -> Optional[ParkingSpot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SPOT_COLUMNS} FROM parking_spots WHERE spot_id=%s", (int(spot_id),))
            r = fetchone(cur)
            return _to_spot(r) if r else None

    def list_rooms(self, office_id: Optional[int] = None) -> Sequence[Room]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if office_id is not None:
            clauses.append("office_id=%s")
            params.append(int(office_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ROOM_COLUMNS} FROM rooms WHERE {' AND '.join(clauses)} ORDER BY name",
                tuple(params),
            )
            return [_to_room(r) for r in fetchall(cur)]

    def list_spots(self, office_id: Optional[int] = None) -> Sequence[ParkingSpot]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if office_id is not None:
            clauses.append("office_id=%s")
            params.append(int(office_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SPOT_COLUMNS} FROM parking_spots WHERE {' AND '.join(clauses)} "
                "ORDER BY spot_type, spot_number",
                tuple(params),
            )
            return [_to_spot(r) for r in fetchall(cur)]
