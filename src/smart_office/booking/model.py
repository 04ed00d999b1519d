from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import FrozenSet, Optional, Tuple

from ..core.enums import ReservationKind, ReservationStatus, SpotType

WHOLE_DAY = (time(0, 0), time.max)


@dataclass(frozen=True)
class Room:
    room_id: int
    name: str
    office_id: int
    capacity: int
    amenities: FrozenSet[str] = frozenset()
    is_active: bool = True


@dataclass(frozen=True)
class ParkingSpot:
    spot_id: int
    spot_number: int
    spot_type: SpotType
    office_id: int
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "spot_id": self.spot_id,
            "spot_number": self.spot_number,
            "spot_type": self.spot_type.value,
            "office_id": self.office_id,
        }


@dataclass(frozen=True)
class Reservation:
    """A room booking or a parking reservation.

    Room bookings hold ``[start_time, end_time)`` on ``work_date``; parking
    reservations hold the whole day (end_time == time.max).
    """

    reservation_id: Optional[int]
    kind: ReservationKind
    resource_id: int
    owner_id: int
    work_date: date
    start_time: time
    end_time: time
    status: ReservationStatus = ReservationStatus.CONFIRMED
    attendees: int = 1
    purpose: Optional[str] = None
    created_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    pending_release_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    version: int = 1

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.work_date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        if self.end_time == time.max:
            return datetime.combine(self.work_date + timedelta(days=1), time(0, 0))
        return datetime.combine(self.work_date, self.end_time)

    @property
    def is_confirmed(self) -> bool:
        return self.status == ReservationStatus.CONFIRMED

    def with_id(self, reservation_id: int) -> "Reservation":
        return replace(self, reservation_id=reservation_id)

    def to_dict(self) -> dict:
        return {
            "reservation_id": self.reservation_id,
            "kind": self.kind.value,
            "resource_id": self.resource_id,
            "owner_id": self.owner_id,
            "work_date": self.work_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": "24:00" if self.end_time == time.max else self.end_time.strftime("%H:%M"),
            "status": self.status.value,
            "attendees": self.attendees,
            "purpose": self.purpose,
            "checked_in_at": self.checked_in_at.isoformat() if self.checked_in_at else None,
        }


@dataclass(frozen=True)
class SpotAvailability:
    spot: ParkingSpot
    reservation: Optional[Reservation] = None

    @property
    def is_free(self) -> bool:
        return self.reservation is None

    def to_dict(self) -> dict:
        return {
            **self.spot.to_dict(),
            "available": self.is_free,
            "reserved_by": self.reservation.owner_id if self.reservation else None,
        }


@dataclass(frozen=True)
class RoomAvailability:
    """Whether ``[start_time, end_time)`` is open on the room, and what blocks it if not."""

    room: Room
    work_date: date
    start_time: time
    end_time: time
    conflicts: Tuple[Reservation, ...] = ()

    @property
    def is_free(self) -> bool:
        return not self.conflicts

    def to_dict(self) -> dict:
        return {
            "room_id": self.room.room_id,
            "name": self.room.name,
            "date": self.work_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "available": self.is_free,
            "conflicts": [r.to_dict() for r in self.conflicts],
        }
