from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ReservationKind, ReservationStatus
from .model import ParkingSpot, Reservation, Room


class ReservationRepository(Protocol):
    def get(self, reservation_id: int) -> Optional[Reservation]:
        raise NotImplementedError

    def list_confirmed(self, kind: ReservationKind, resource_id: int, work_date: date) -> Sequence[Reservation]:
        raise NotImplementedError

    def list_for_resource_between(
        self, kind: ReservationKind, resource_id: int, start_date: date, end_date: date
    ) -> Sequence[Reservation]:
        raise NotImplementedError

    def list_for_owner(self, owner_id: int, *, since: date) -> Sequence[Reservation]:
        raise NotImplementedError

    def list_confirmed_until(self, day: date) -> Sequence[Reservation]:
        """Confirmed reservations dated on or before ``day`` (the release sweep's scan)."""

        raise NotImplementedError

    def insert_if_no_conflict(self, reservation: Reservation) -> Reservation:
        """Atomically check for conflicts and insert.

        The only way reservations enter the store. Raises BookingConflictError
        naming the colliding reservations.
        """

        raise NotImplementedError

    def transition_status(
        self,
        reservation_id: int,
        from_status: ReservationStatus,
        to_status: ReservationStatus,
        *,
        at: datetime,
        expected_version: Optional[int] = None,
    ) -> bool:
        """Conditional update; False when the current status is not ``from_status``.

        With ``expected_version`` the row must also be unchanged since it was
        read (a check-in after the sweep's scan bumps the version).
        """

        raise NotImplementedError

    def mark_checked_in(self, reservation_id: int, *, at: datetime) -> bool:
        raise NotImplementedError

    def mark_release_pending(self, reservation_id: int, *, at: datetime) -> bool:
        """Set pending_release_at once; False if already set or no longer confirmed."""

        raise NotImplementedError


class ResourceRepository(Protocol):
    def get_room(self, room_id: int) -> Optional[Room]:
        raise NotImplementedError

    def get_spot(self, spot_id: int) -> Optional[ParkingSpot]:
        raise NotImplementedError

    def list_rooms(self, office_id: Optional[int] = None) -> Sequence[Room]:
        raise NotImplementedError

    def list_spots(self, office_id: Optional[int] = None) -> Sequence[ParkingSpot]:
        """Active spots ordered by type, then number."""

        raise NotImplementedError
