from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional, Sequence

from ..booking.model import Reservation, Room
from ..core.enums import ReservationKind, ReservationStatus
from ..offices.model import OperatingHours

WEIGHT_PREFERENCE = 0.40
WEIGHT_CAPACITY = 0.30
WEIGHT_AVAILABILITY = 0.20
WEIGHT_AMENITY = 0.10

# Holds that actually occupied (or still occupy) the room.
_OCCUPYING = {ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED}


def capacity_efficiency(requested: int, capacity: int) -> float:
    if capacity <= 0 or requested <= 0:
        return 0.0
    if requested <= capacity:
        return min(1.0, requested / capacity)
    return (capacity / requested) ** 2


def amenity_match(room: Room, required: Iterable[str]) -> float:
    wanted = {a.strip().lower() for a in required if a and a.strip()}
    if not wanted:
        return 1.0
    return len(wanted & room.amenities) / len(wanted)


def preference_match(room: Room, history: Sequence[Reservation]) -> float:
    """Share of the user's past room bookings that used this room."""
    rooms = Counter(
        r.resource_id for r in history if r.kind == ReservationKind.ROOM and r.status != ReservationStatus.CANCELLED
    )
    total = sum(rooms.values())
    if not total:
        return 0.0
    return rooms[room.room_id] / total


def utilization_rate(
    reservations: Iterable[Reservation],
    hours: OperatingHours,
    start_date: date,
    end_date: date,
) -> float:
    """Reserved minutes over bookable minutes inside operating hours, ``start_date..end_date`` inclusive."""
    bookable = 0.0
    day = start_date
    while day <= end_date:
        if hours.is_open_on(day):
            bookable += hours.open_minutes()
        day += timedelta(days=1)
    if bookable <= 0:
        return 0.0

    reserved = 0.0
    for r in reservations:
        if r.status not in _OCCUPYING or not (start_date <= r.work_date <= end_date):
            continue
        if not hours.is_open_on(r.work_date):
            continue
        open_at = datetime.combine(r.work_date, hours.start)
        close_at = datetime.combine(r.work_date, hours.end)
        overlap = (min(r.ends_at, close_at) - max(r.starts_at, open_at)).total_seconds() / 60.0
        if overlap > 0:
            reserved += overlap
    return min(1.0, reserved / bookable)


@dataclass(frozen=True)
class RoomScore:
    room: Room
    score: float
    preference: float
    capacity_efficiency: float
    utilization: float
    amenity_match: float

    def to_dict(self) -> dict:
        return {
            "room_id": self.room.room_id,
            "name": self.room.name,
            "capacity": self.room.capacity,
            "amenities": sorted(self.room.amenities),
            "score": round(self.score, 4),
            "components": {
                "preference": round(self.preference, 4),
                "capacity_efficiency": round(self.capacity_efficiency, 4),
                "utilization": round(self.utilization, 4),
                "amenity_match": round(self.amenity_match, 4),
            },
        }


class RecommendationScorer:
    """Ranks candidate rooms for a user. Read-only."""

    def score(
        self,
        room: Room,
        *,
        requested_size: int,
        history: Sequence[Reservation] = (),
        utilization: float = 0.0,
        required_amenities: Iterable[str] = (),
    ) -> RoomScore:
        pref = preference_match(room, history)
        cap = capacity_efficiency(requested_size, room.capacity)
        util = min(1.0, max(0.0, utilization))
        amen = amenity_match(room, required_amenities)
        total = (
            WEIGHT_PREFERENCE * pref
            + WEIGHT_CAPACITY * cap
            + WEIGHT_AVAILABILITY * (1.0 - util)
            + WEIGHT_AMENITY * amen
        )
        return RoomScore(
            room=room,
            score=total,
            preference=pref,
            capacity_efficiency=cap,
            utilization=util,
            amenity_match=amen,
        )

    def rank(
        self,
        rooms: Iterable[Room],
        *,
        requested_size: int,
        history: Sequence[Reservation] = (),
        utilization: Optional[Mapping[int, float]] = None,
        required_amenities: Iterable[str] = (),
        limit: Optional[int] = None,
    ) -> list[RoomScore]:
        utilization = utilization or {}
        required = tuple(required_amenities)
        scored = [
            self.score(
                room,
                requested_size=requested_size,
                history=history,
                utilization=utilization.get(room.room_id, 0.0),
                required_amenities=required,
            )
            for room in rooms
        ]
        # Highest score first, then name for a stable order.
        scored.sort(key=lambda s: (-round(s.score, 9), s.room.name))
        return scored[:limit] if limit else scored
