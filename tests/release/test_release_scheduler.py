from datetime import date, datetime, time

import pytest

from fakes import (
    InMemoryAttendance,
    InMemoryEmployees,
    InMemoryOffices,
    InMemoryReservations,
    InMemoryResources,
    InMemoryWFHRequests,
    RecordingNotifier,
    make_employee,
    make_office,
)
from smart_office.attendance.model import AttendanceRecord
from smart_office.booking.model import WHOLE_DAY, ParkingSpot, Reservation, Room
from smart_office.common.datetime_utils import FixedClock
from smart_office.config.settings import EngineSettings
from smart_office.core.enums import (
    ReservationKind,
    ReservationStatus,
    SpotType,
    Urgency,
    VerificationMethod,
    WorkStatus,
)
from smart_office.core.exceptions import ConflictError, NotFoundError
from smart_office.release.model import SweepAction
from smart_office.release.scheduler import AutoReleaseScheduler
from smart_office.wfh.approval_service import WFHApprovalService

DAY = date(2025, 3, 3)


def at(h, m=0):
    return datetime(2025, 3, 3, h, m)


class Env:
    def __init__(self, now):
        self.clock = FixedClock(now)
        self.reservations = InMemoryReservations()
        self.attendance = InMemoryAttendance()
        self.requests = InMemoryWFHRequests()
        self.notifier = RecordingNotifier()
        self.approvals = WFHApprovalService(
            self.requests, InMemoryEmployees(make_employee(1)), clock=self.clock, notifier=self.notifier
        )
        self.scheduler = AutoReleaseScheduler(
            self.reservations,
            InMemoryResources([Room(1, "Falcon", 1, capacity=8)], [ParkingSpot(1, 101, SpotType.CAR, 1)]),
            InMemoryOffices(make_office()),
            self.attendance,
            approvals=self.approvals,
            notifier=self.notifier,
            clock=self.clock,
            settings=EngineSettings(store_retry_delay_s=0.0),
        )

    def room(self, start=time(9), end=time(10), owner=1, **kw):
        return self.reservations.seed(
            Reservation(None, ReservationKind.ROOM, 1, owner, DAY, start, end, **kw)
        )

    def parking(self, owner=1, **kw):
        start, end = WHOLE_DAY
        return self.reservations.seed(Reservation(None, ReservationKind.PARKING, 1, owner, DAY, start, end, **kw))

    def status(self, r):
        return self.reservations.get(r.reservation_id).status


def test_scenario_e_unclaimed_booking_is_released_after_threshold():
    env = Env(at(9, 45))
    r = env.room()

    report = env.scheduler.sweep()

    assert report.released == [r.reservation_id]
    assert env.status(r) == ReservationStatus.RELEASED
    assert "release-occurred" in env.notifier.kinds()


def test_booking_inside_grace_period_is_untouched():
    env = Env(at(9, 10))
    r = env.room()

    report = env.scheduler.sweep()

    assert report.candidates == []
    assert env.status(r) == ReservationStatus.CONFIRMED
    assert env.notifier.events == []


def test_warning_is_sent_once_before_release():
    env = Env(at(9, 20))
    r = env.room()

    first = env.scheduler.sweep()
    assert first.pending == [r.reservation_id]
    assert env.reservations.get(r.reservation_id).pending_release_at == at(9, 20)

    env.clock.set(at(9, 25))
    second = env.scheduler.sweep()
    assert second.candidates == []
    assert env.notifier.kinds() == ["release-warning"]

    env.clock.set(at(9, 30))
    third = env.scheduler.sweep()
    assert third.released == [r.reservation_id]
    assert env.notifier.kinds() == ["release-warning", "release-occurred"]


def test_repeated_sweeps_change_nothing_more():
    env = Env(at(9, 45))
    env.room()
    env.scheduler.sweep()
    snapshot = [(r.reservation_id, r.status, r.version) for r in env.reservations.all()]

    again = env.scheduler.sweep()

    assert again.candidates == []
    assert [(r.reservation_id, r.status, r.version) for r in env.reservations.all()] == snapshot


def test_dry_run_reports_without_changing_state():
    env = Env(at(9, 45))
    r = env.room()

    report = env.scheduler.sweep(dry_run=True)

    assert [c.action for c in report.candidates] == [SweepAction.RELEASE]
    assert report.released == []
    assert env.status(r) == ReservationStatus.CONFIRMED
    assert env.reservations.transition_calls == []


def test_reservation_cancelled_mid_sweep_is_skipped():
    env = Env(at(9, 45))
    r = env.room()

    def cancel_first(rid):
        env.reservations.before_transition = None
        env.reservations.transition_status(
            rid, ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, at=at(9, 44)
        )

    env.reservations.before_transition = cancel_first
    report = env.scheduler.sweep()

    assert report.skipped == [r.reservation_id]
    assert report.released == []
    assert env.status(r) == ReservationStatus.CANCELLED
    assert "release-occurred" not in env.notifier.kinds()


def test_check_in_landing_mid_sweep_keeps_the_booking():
    env = Env(at(9, 45))
    r = env.room()

    def check_in_first(rid):
        env.reservations.before_transition = None
        env.reservations.mark_checked_in(rid, at=at(9, 44))

    env.reservations.before_transition = check_in_first
    report = env.scheduler.sweep()

    assert report.skipped == [r.reservation_id]
    assert report.released == []
    stored = env.reservations.get(r.reservation_id)
    assert stored.status == ReservationStatus.CONFIRMED
    assert stored.checked_in_at == at(9, 44)
    assert "release-occurred" not in env.notifier.kinds()


def test_late_booking_counts_from_when_it_was_made():
    env = Env(at(10, 45))
    r = env.room(start=time(10), end=time(11), created_at=at(10, 20))

    assert env.scheduler.sweep().released == []
    assert env.status(r) == ReservationStatus.CONFIRMED

    env.clock.set(at(10, 50))
    assert env.scheduler.sweep().released == [r.reservation_id]


def test_one_failing_item_does_not_stop_the_sweep():
    env = Env(at(11, 0))
    bad = env.room(start=time(9), end=time(9, 30))
    good = env.room(start=time(10), end=time(10, 30))
    env.reservations.fail_ids.add(bad.reservation_id)

    report = env.scheduler.sweep()

    assert report.errors == [bad.reservation_id]
    assert report.released == [good.reservation_id]


def test_parking_is_anchored_on_office_opening():
    env = Env(at(9, 10))
    r = env.parking()
    assert env.scheduler.sweep().candidates == []

    env.clock.set(at(9, 31))
    assert env.scheduler.sweep().released == [r.reservation_id]


def test_office_check_in_keeps_parking():
    env = Env(at(11, 0))
    r = env.parking()
    env.attendance.add(
        AttendanceRecord(None, 1, DAY, WorkStatus.OFFICE, VerificationMethod.GPS, 1.0, at(8, 55), office_id=1)
    )

    report = env.scheduler.sweep()

    assert report.candidates == []
    assert env.status(r) == ReservationStatus.CONFIRMED


def test_checked_in_booking_is_completed_once_over():
    env = Env(at(9, 45))
    r = env.room(checked_in_at=at(9, 5))
    assert env.scheduler.sweep().candidates == []

    env.clock.set(at(10, 30))
    report = env.scheduler.sweep()
    assert report.completed == [r.reservation_id]
    assert env.status(r) == ReservationStatus.COMPLETED
    assert "release-occurred" not in env.notifier.kinds()


def test_sweep_expires_stale_wfh_requests():
    env = Env(at(9, 0))
    env.requests.create(
        user_id=1, requested_for=date(2025, 2, 20), reason="x", urgency=Urgency.NORMAL, created_at=at(8)
    )
    env.requests.create(user_id=1, requested_for=DAY, reason="y", urgency=Urgency.NORMAL, created_at=at(8))

    assert env.scheduler.sweep(dry_run=True).expired_requests == 0
    assert env.scheduler.sweep().expired_requests == 1


def test_release_now():
    env = Env(at(8, 0))
    r = env.room()

    released = env.scheduler.release_now(r.reservation_id)
    assert released.status == ReservationStatus.RELEASED

    with pytest.raises(ConflictError):
        env.scheduler.release_now(r.reservation_id)
    with pytest.raises(NotFoundError):
        env.scheduler.release_now(999)


def test_start_and_shutdown():
    env = Env(at(8, 0))
    env.scheduler.start()
    try:
        assert env.scheduler.running
    finally:
        env.scheduler.shutdown()
    assert not env.scheduler.running
