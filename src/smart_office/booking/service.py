from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock
from ..common.retry import call_with_retry
from ..config.settings import EngineSettings
from ..core.enums import EventKind, ReservationKind, ReservationStatus
from ..core.exceptions import (
    AuthorizationError,
    BookingConflictError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..notifications.model import NotificationEvent
from ..notifications.notifier import LoggingNotifier, Notifier, publish_safely
from ..offices.model import OperatingHours
from ..offices.repository import OfficeLocationRepository
from ..recommendation.scorer import RecommendationScorer, RoomScore, utilization_rate
from ..users.model import Employee
from ..users.repository import EmployeeRepository
from .conflicts import intervals_overlap
from .model import WHOLE_DAY, ParkingSpot, Reservation, Room, RoomAvailability, SpotAvailability
from .repository import ReservationRepository, ResourceRepository

logger = logging.getLogger(__name__)

PREFERENCE_LOOKBACK = timedelta(days=90)


class BookingService:
    def __init__(
        self,
        reservations: ReservationRepository,
        resources: ResourceRepository,
        employees: EmployeeRepository,
        offices: OfficeLocationRepository,
        *,
        scorer: Optional[RecommendationScorer] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._reservations = reservations
        self._resources = resources
        self._employees = employees
        self._offices = offices
        self._scorer = scorer or RecommendationScorer()
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or SystemClock()
        self._settings = settings or EngineSettings()

    def _read(self, fn, *args, **kwargs):
        return call_with_retry(
            fn,
            *args,
            attempts=self._settings.store_retry_attempts,
            delay=self._settings.store_retry_delay_s,
            **kwargs,
        )

    def _get_employee(self, user_id: int) -> Employee:
        employee = self._read(self._employees.get_by_id, int(user_id))
        if not employee or not employee.is_active:
            raise NotFoundError("Employee does not exist")
        return employee

    def _get_room(self, room_id: int) -> Room:
        room = self._read(self._resources.get_room, int(room_id))
        if not room:
            raise NotFoundError("Room does not exist")
        if not room.is_active:
            raise ValidationError("Room is not available for booking")
        return room

    def _get_spot(self, spot_id: int) -> ParkingSpot:
        spot = self._read(self._resources.get_spot, int(spot_id))
        if not spot:
            raise NotFoundError("Parking spot does not exist")
        if not spot.is_active:
            raise ValidationError("Parking spot is not available")
        return spot

    def _hours_for(self, office_id: int) -> OperatingHours:
        office = self._read(self._offices.get, int(office_id))
        return office.hours if office else OperatingHours()

    def _insert(self, candidate: Reservation) -> Reservation:
        try:
            saved = self._reservations.insert_if_no_conflict(candidate)
        except BookingConflictError as e:
            logger.info(
                "Booking rejected kind=%s resource=%s date=%s conflicts=%s",
                candidate.kind.value,
                candidate.resource_id,
                candidate.work_date,
                [r.reservation_id for r in e.conflicts],
            )
            raise

        logger.info(
            "Booking confirmed id=%s kind=%s resource=%s owner=%s",
            saved.reservation_id,
            saved.kind.value,
            saved.resource_id,
            saved.owner_id,
        )
        publish_safely(
            self._notifier,
            NotificationEvent(
                kind=EventKind.BOOKING_CONFIRMED,
                user_id=saved.owner_id,
                created_at=self._clock.now(),
                payload=saved.to_dict(),
            ),
        )
        return saved

    def book_room(
        self,
        *,
        owner_id: int,
        room_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        attendees: int = 1,
        purpose: Optional[str] = None,
    ) -> Reservation:
        employee = self._get_employee(owner_id)
        room = self._get_room(room_id)

        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")
        attendees = int(attendees)
        if attendees < 1:
            raise ValidationError("At least one attendee is required")
        if attendees > room.capacity:
            raise ValidationError(f"Room {room.name} holds at most {room.capacity} people")

        now = self._clock.now()
        if work_date < now.date():
            raise ValidationError("Cannot book a past date")
        if datetime.combine(work_date, end_time) <= now:
            raise ValidationError("That time slot has already ended")

        return self._insert(
            Reservation(
                reservation_id=None,
                kind=ReservationKind.ROOM,
                resource_id=room.room_id,
                owner_id=employee.user_id,
                work_date=work_date,
                start_time=start_time,
                end_time=end_time,
                attendees=attendees,
                purpose=(purpose or "").strip() or None,
                created_at=now,
            )
        )

    def reserve_parking(self, *, owner_id: int, spot_id: int, work_date: date, purpose: Optional[str] = None) -> Reservation:
        employee = self._get_employee(owner_id)
        spot = self._get_spot(spot_id)

        now = self._clock.now()
        if work_date < now.date():
            raise ValidationError("Cannot reserve parking for a past date")

        start, end = WHOLE_DAY
        return self._insert(
            Reservation(
                reservation_id=None,
                kind=ReservationKind.PARKING,
                resource_id=spot.spot_id,
                owner_id=employee.user_id,
                work_date=work_date,
                start_time=start,
                end_time=end,
                purpose=(purpose or "").strip() or None,
                created_at=now,
            )
        )

    def cancel(self, *, reservation_id: int, actor_id: int) -> Reservation:
        actor = self._get_employee(actor_id)
        reservation = self._read(self._reservations.get, int(reservation_id))
        if not reservation:
            raise NotFoundError("Reservation does not exist")
        if reservation.owner_id != actor.user_id and not actor.may_authorize:
            raise AuthorizationError("Only the owner or a manager can cancel this reservation")
        if not reservation.is_confirmed:
            raise ConflictError(f"Reservation is already {reservation.status.value}")

        now = self._clock.now()
        changed = self._read(
            self._reservations.transition_status,
            reservation.reservation_id,
            ReservationStatus.CONFIRMED,
            ReservationStatus.CANCELLED,
            at=now,
        )
        if not changed:
            # Lost a race with the release sweep or another cancel.
            current = self._read(self._reservations.get, reservation.reservation_id)
            state = current.status.value if current else "gone"
            raise ConflictError(f"Reservation is already {state}")

        publish_safely(
            self._notifier,
            NotificationEvent(
                kind=EventKind.BOOKING_CANCELLED,
                user_id=reservation.owner_id,
                created_at=now,
                payload={"reservation_id": reservation.reservation_id, "cancelled_by": actor.user_id},
            ),
        )
        logger.info("Reservation %s cancelled by %s", reservation.reservation_id, actor.user_id)
        return self._read(self._reservations.get, reservation.reservation_id)

    def check_in(self, *, reservation_id: int, user_id: int) -> Reservation:
        """Occupancy signal: stops the release sweep from freeing the hold."""
        reservation = self._read(self._reservations.get, int(reservation_id))
        if not reservation:
            raise NotFoundError("Reservation does not exist")
        if reservation.owner_id != int(user_id):
            raise AuthorizationError("Only the owner can check in to this reservation")
        if not reservation.is_confirmed:
            raise ConflictError(f"Reservation is already {reservation.status.value}")
        if reservation.checked_in_at is not None:
            return reservation

        now = self._clock.now()
        opens = reservation.starts_at - timedelta(minutes=self._settings.release_grace_minutes)
        if now < opens or now >= reservation.ends_at:
            raise ValidationError("Check-in is only possible around the reserved time")

        if not self._read(self._reservations.mark_checked_in, reservation.reservation_id, at=now):
            current = self._read(self._reservations.get, reservation.reservation_id)
            if current and current.is_confirmed and current.checked_in_at is not None:
                return current
            raise ConflictError("Reservation is no longer active")
        return self._read(self._reservations.get, reservation.reservation_id)

    def list_for_owner(self, owner_id: int, *, since: Optional[date] = None) -> Sequence[Reservation]:
        since = since or self._clock.now().date()
        return self._read(self._reservations.list_for_owner, int(owner_id), since=since)

    def _room_conflicts(self, room: Room, work_date: date, start_time: time, end_time: time) -> list[Reservation]:
        start = datetime.combine(work_date, start_time)
        end = datetime.combine(work_date, end_time)
        existing = self._read(self._reservations.list_confirmed, ReservationKind.ROOM, room.room_id, work_date)
        return [r for r in existing if intervals_overlap(start, end, r.starts_at, r.ends_at)]

    def _is_free(self, room: Room, work_date: date, start_time: time, end_time: time) -> bool:
        return not self._room_conflicts(room, work_date, start_time, end_time)

    def room_availability(self, *, room_id: int, work_date: date, start_time: time, end_time: time) -> RoomAvailability:
        """Advisory check of one slot; booking still re-checks atomically."""
        room = self._get_room(room_id)
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")
        conflicts = self._room_conflicts(room, work_date, start_time, end_time)
        return RoomAvailability(room, work_date, start_time, end_time, tuple(conflicts))

    def list_parking_spots(self, office_id: Optional[int] = None) -> Sequence[ParkingSpot]:
        return self._read(self._resources.list_spots, office_id)

    def parking_availability(self, *, work_date: date, office_id: Optional[int] = None) -> list[SpotAvailability]:
        availability = []
        for spot in self.list_parking_spots(office_id):
            held = self._read(self._reservations.list_confirmed, ReservationKind.PARKING, spot.spot_id, work_date)
            availability.append(SpotAvailability(spot, held[0] if held else None))
        return availability

    def recommend_rooms(
        self,
        *,
        user_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        attendees: int = 1,
        amenities: Iterable[str] = (),
        office_id: Optional[int] = None,
        exclude_room_id: Optional[int] = None,
        limit: Optional[int] = 5,
    ) -> list[RoomScore]:
        """Free rooms for the slot, best first. Advisory: nothing is held."""
        employee = self._get_employee(user_id)
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")

        candidates = [
            room
            for room in self._read(self._resources.list_rooms, office_id)
            if room.is_active
            and room.room_id != exclude_room_id
            and self._is_free(room, work_date, start_time, end_time)
        ]
        if not candidates:
            return []

        today = self._clock.now().date()
        window_start = today - timedelta(days=self._settings.utilization_window_days)
        window_end = today - timedelta(days=1)
        hours_by_office: Dict[int, OperatingHours] = {}
        utilization: Dict[int, float] = {}
        for room in candidates:
            if room.office_id not in hours_by_office:
                hours_by_office[room.office_id] = self._hours_for(room.office_id)
            booked = self._read(
                self._reservations.list_for_resource_between, ReservationKind.ROOM, room.room_id, window_start, window_end
            )
            utilization[room.room_id] = utilization_rate(booked, hours_by_office[room.office_id], window_start, window_end)

        history = self._read(self._reservations.list_for_owner, employee.user_id, since=today - PREFERENCE_LOOKBACK)
        return self._scorer.rank(
            candidates,
            requested_size=int(attendees),
            history=history,
            utilization=utilization,
            required_amenities=amenities,
            limit=limit,
        )

    def suggest_alternatives(
        self,
        *,
        user_id: int,
        room_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        attendees: int = 1,
        limit: Optional[int] = 3,
    ) -> list[RoomScore]:
        """Other free rooms in the same office that can seat the group."""
        room = self._read(self._resources.get_room, int(room_id))
        ranked = self.recommend_rooms(
            user_id=user_id,
            work_date=work_date,
            start_time=start_time,
            end_time=end_time,
            attendees=attendees,
            amenities=room.amenities if room else (),
            office_id=room.office_id if room else None,
            exclude_room_id=int(room_id),
            limit=None,
        )
        fitting = [s for s in ranked if s.room.capacity >= int(attendees)]
        return fitting[:limit] if limit else fitting
