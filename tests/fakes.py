"""In-memory repositories and helpers shared by the test modules."""

from __future__ import annotations

import threading
import time as _time
from dataclasses import replace
from datetime import date, datetime, time
from typing import Callable, Dict, List, Optional, Sequence

from smart_office.attendance.model import AttendanceRecord
from smart_office.booking.conflicts import BookingConflictDetector
from smart_office.booking.model import ParkingSpot, Reservation, Room
from smart_office.common.locks import KeyedLocks
from smart_office.core.enums import (
    ReservationKind,
    ReservationStatus,
    RequestStatus,
    Role,
    Urgency,
    WorkMode,
    WorkStatus,
)
from smart_office.core.exceptions import BookingConflictError, DuplicateRecordError
from smart_office.notifications.model import NotificationEvent
from smart_office.offices.model import OfficeLocation, OfficeToken, OperatingHours
from smart_office.users.model import Employee
from smart_office.wfh.model import WFHRequest


def make_employee(user_id: int = 1, **overrides) -> Employee:
    values = dict(
        user_id=user_id,
        full_name=f"User {user_id}",
        role=Role.STAFF,
        work_mode=WorkMode.HYBRID,
        wfh_enabled=True,
        max_wfh_days_per_month=10,
        can_approve=False,
        is_active=True,
    )
    values.update(overrides)
    return Employee(**values)


def make_office(office_id: int = 1, **overrides) -> OfficeLocation:
    values = dict(
        office_id=office_id,
        name="HQ",
        latitude=37.7749,
        longitude=-122.4194,
        geofence_radius_m=100.0,
        wifi_networks=frozenset({"Office-5G"}),
        tokens=(OfficeToken(code="HQ-DOOR", office_id=office_id),),
        hours=OperatingHours(start=time(9, 0), end=time(18, 0)),
    )
    values.update(overrides)
    return OfficeLocation(**values)


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self.by_id: Dict[int, Employee] = {e.user_id: e for e in employees}

    def add(self, employee: Employee) -> None:
        self.by_id[employee.user_id] = employee

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        return self.by_id.get(user_id)


class InMemoryOffices:
    """``get_delay`` widens the window between reading a token and using it."""

    def __init__(self, *offices: OfficeLocation, get_delay: float = 0.0):
        self.by_id: Dict[int, OfficeLocation] = {o.office_id: o for o in offices}
        self.token_use_error: Optional[Exception] = None
        self.get_delay = get_delay
        self._lock = threading.Lock()

    def get(self, office_id: int) -> Optional[OfficeLocation]:
        office = self.by_id.get(office_id)
        if self.get_delay:
            _time.sleep(self.get_delay)
        return office

    def record_token_use(self, code: str, used_at: datetime, *, single_use: bool = False) -> bool:
        if self.token_use_error is not None:
            raise self.token_use_error
        with self._lock:
            return self._record_token_use(code, used_at, single_use)

    def _record_token_use(self, code: str, used_at: datetime, single_use: bool) -> bool:
        for office in self.by_id.values():
            token = office.find_token(code)
            if token is None:
                continue
            if single_use and token.usage_count > 0:
                return False
            updated = replace(token, usage_count=token.usage_count + 1, last_used_at=used_at)
            tokens = tuple(updated if t.code == code else t for t in office.tokens)
            self.by_id[office.office_id] = replace(office, tokens=tokens)
            return True
        return False


class InMemoryAttendance:
    """Unique (user_id, work_date) like the MySQL table.

    ``count_delay`` widens the read-then-insert window so races show up in
    threaded tests.
    """

    def __init__(self, *, count_delay: float = 0.0):
        self._lock = threading.Lock()
        self._by_user_date: Dict[tuple, AttendanceRecord] = {}
        self._id = 0
        self.count_delay = count_delay

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        return self.insert(record)

    def all(self) -> List[AttendanceRecord]:
        return list(self._by_user_date.values())

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._by_user_date.get((user_id, work_date))

    def count_by_user_status_month(self, user_id: int, status: WorkStatus, year: int, month: int) -> int:
        count = sum(
            1
            for r in list(self._by_user_date.values())
            if r.user_id == user_id and r.status == status and r.work_date.year == year and r.work_date.month == month
        )
        if self.count_delay:
            _time.sleep(self.count_delay)
        return count

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            key = (record.user_id, record.work_date)
            if key in self._by_user_date:
                raise DuplicateRecordError("Attendance already recorded for this day")
            self._id += 1
            saved = record.with_id(self._id)
            self._by_user_date[key] = saved
            return saved

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        with self._lock:
            for key, r in self._by_user_date.items():
                if r.attendance_id == attendance_id and r.check_out_time is None:
                    self._by_user_date[key] = r.with_checkout(check_out_time)
                    return True
            return False

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        rows = [r for r in self._by_user_date.values() if r.user_id == user_id and start_date <= r.work_date <= end_date]
        return sorted(rows, key=lambda r: r.work_date, reverse=True)


class InMemoryResources:
    def __init__(self, rooms: Sequence[Room] = (), spots: Sequence[ParkingSpot] = ()):
        self.rooms: Dict[int, Room] = {r.room_id: r for r in rooms}
        self.spots: Dict[int, ParkingSpot] = {s.spot_id: s for s in spots}

    def get_room(self, room_id: int) -> Optional[Room]:
        return self.rooms.get(room_id)

    def get_spot(self, spot_id: int) -> Optional[ParkingSpot]:
        return self.spots.get(spot_id)

    def list_rooms(self, office_id: Optional[int] = None) -> Sequence[Room]:
        rooms = [r for r in self.rooms.values() if r.is_active and (office_id is None or r.office_id == office_id)]
        return sorted(rooms, key=lambda r: r.name)

    def list_spots(self, office_id: Optional[int] = None) -> Sequence[ParkingSpot]:
        spots = [s for s in self.spots.values() if s.is_active and (office_id is None or s.office_id == office_id)]
        return sorted(spots, key=lambda s: (s.spot_type.value, s.spot_number))


class InMemoryReservations:
    """Check-then-insert under a per resource/date lock.

    Hooks let tests inject failures (``fail_ids``) or run code between a
    sweep's scan and its update (``before_transition``).
    """

    def __init__(self, *, detector: Optional[BookingConflictDetector] = None, insert_delay: float = 0.0):
        self._detector = detector or BookingConflictDetector()
        self._locks = KeyedLocks(timeout=5.0)
        self._guard = threading.Lock()
        self._rows: Dict[int, Reservation] = {}
        self._id = 0
        self.insert_delay = insert_delay
        self.fail_ids: set[int] = set()
        self.before_transition: Optional[Callable[[int], None]] = None
        self.transition_calls: List[tuple] = []

    def _lock_key(self, r: Reservation) -> tuple:
        if r.kind == ReservationKind.PARKING:
            # One user per day across spots, so lock the whole parking day.
            return (r.kind, r.work_date)
        return (r.kind, r.resource_id, r.work_date)

    def all(self) -> List[Reservation]:
        return list(self._rows.values())

    def get(self, reservation_id: int) -> Optional[Reservation]:
        return self._rows.get(reservation_id)

    def list_confirmed(self, kind: ReservationKind, resource_id: int, work_date: date) -> Sequence[Reservation]:
        return [
            r
            for r in self._rows.values()
            if r.kind == kind and r.resource_id == resource_id and r.work_date == work_date and r.is_confirmed
        ]

    def list_for_resource_between(
        self, kind: ReservationKind, resource_id: int, start_date: date, end_date: date
    ) -> Sequence[Reservation]:
        return [
            r
            for r in self._rows.values()
            if r.kind == kind and r.resource_id == resource_id and start_date <= r.work_date <= end_date
        ]

    def list_for_owner(self, owner_id: int, *, since: date) -> Sequence[Reservation]:
        return [r for r in self._rows.values() if r.owner_id == owner_id and r.work_date >= since]

    def list_confirmed_until(self, day: date) -> Sequence[Reservation]:
        rows = [r for r in self._rows.values() if r.is_confirmed and r.work_date <= day]
        return sorted(rows, key=lambda r: (r.work_date, r.start_time, r.reservation_id))

    def insert_if_no_conflict(self, reservation: Reservation) -> Reservation:
        with self._locks.hold(self._lock_key(reservation)):
            on_resource = self.list_confirmed(reservation.kind, reservation.resource_id, reservation.work_date)
            for_owner = [
                r
                for r in self._rows.values()
                if r.kind == reservation.kind and r.owner_id == reservation.owner_id and r.work_date == reservation.work_date
            ]
            if self.insert_delay:
                _time.sleep(self.insert_delay)
            report = self._detector.check(reservation, on_resource, for_owner)
            if not report.accepted:
                raise BookingConflictError(f"Reservation conflicts ({report.reason})", report.conflicts)
            with self._guard:
                self._id += 1
                saved = reservation.with_id(self._id)
                self._rows[saved.reservation_id] = saved
            return saved

    def seed(self, reservation: Reservation) -> Reservation:
        """Insert without conflict checks (history fixtures)."""
        with self._guard:
            self._id += 1
            saved = reservation.with_id(self._id)
            self._rows[saved.reservation_id] = saved
            return saved

    def _update(self, reservation_id: int, guard: Callable[[Reservation], bool], **changes) -> bool:
        with self._guard:
            current = self._rows.get(reservation_id)
            if current is None or not guard(current):
                return False
            self._rows[reservation_id] = replace(current, version=current.version + 1, **changes)
            return True

    def transition_status(
        self,
        reservation_id: int,
        from_status: ReservationStatus,
        to_status: ReservationStatus,
        *,
        at: datetime,
        expected_version: Optional[int] = None,
    ) -> bool:
        self.transition_calls.append((reservation_id, from_status, to_status))
        if reservation_id in self.fail_ids:
            raise RuntimeError(f"boom on {reservation_id}")
        if self.before_transition is not None:
            self.before_transition(reservation_id)
        return self._update(
            reservation_id,
            lambda r: r.status == from_status and (expected_version is None or r.version == expected_version),
            status=to_status,
            closed_at=at,
        )

    def mark_checked_in(self, reservation_id: int, *, at: datetime) -> bool:
        return self._update(
            reservation_id, lambda r: r.is_confirmed and r.checked_in_at is None, checked_in_at=at
        )

    def mark_release_pending(self, reservation_id: int, *, at: datetime) -> bool:
        return self._update(
            reservation_id, lambda r: r.is_confirmed and r.pending_release_at is None, pending_release_at=at
        )


class InMemoryWFHRequests:
    def __init__(self):
        self._rows: Dict[int, WFHRequest] = {}
        self._id = 0

    def create(self, *, user_id: int, requested_for: date, reason: str, urgency: Urgency, created_at: datetime) -> int:
        self._id += 1
        self._rows[self._id] = WFHRequest(
            request_id=self._id,
            user_id=user_id,
            requested_for=requested_for,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
            urgency=urgency,
        )
        return self._id

    def get(self, request_id: int) -> Optional[WFHRequest]:
        return self._rows.get(request_id)

    def find_for_user_and_date(self, user_id: int, requested_for: date) -> Sequence[WFHRequest]:
        return [r for r in self._rows.values() if r.user_id == user_id and r.requested_for == requested_for]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        manager_note: Optional[str],
    ) -> bool:
        current = self._rows.get(request_id)
        if current is None or current.status != RequestStatus.PENDING:
            return False
        self._rows[request_id] = replace(
            current, status=status, decided_by=decided_by, decided_at=decided_at, manager_note=manager_note
        )
        return True

    def expire_pending_before(self, cutoff: date, *, at: datetime) -> int:
        count = 0
        for rid, r in list(self._rows.items()):
            if r.status == RequestStatus.PENDING and r.requested_for < cutoff:
                self._rows[rid] = replace(r, status=RequestStatus.EXPIRED, decided_at=at)
                count += 1
        return count


class RecordingNotifier:
    def __init__(self):
        self.events: List[NotificationEvent] = []

    def publish(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [e.kind.value for e in self.events]
