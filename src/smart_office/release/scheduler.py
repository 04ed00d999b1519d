from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..attendance.repository import AttendanceRepository
from ..booking.model import Reservation
from ..booking.repository import ReservationRepository, ResourceRepository
from ..common.datetime_utils import Clock, SystemClock, minutes_between
from ..common.retry import call_with_retry
from ..config.settings import EngineSettings
from ..core.enums import EventKind, ReservationKind, ReservationStatus, WorkStatus
from ..core.exceptions import ConflictError, NotFoundError
from ..notifications.model import NotificationEvent
from ..notifications.notifier import LoggingNotifier, Notifier, publish_safely
from ..offices.model import OperatingHours
from ..offices.repository import OfficeLocationRepository
from ..wfh.approval_service import WFHApprovalService
from .model import ReleaseCandidate, SweepAction, SweepReport

logger = logging.getLogger(__name__)

JOB_ID = "auto-release-sweep"


class AutoReleaseScheduler:
    """Frees rooms and parking spots that nobody showed up for.

    A confirmed hold with no occupancy signal is flagged once the grace period
    after its anchor passes, and released once the release threshold passes.
    The anchor is the booking start for rooms and the office opening time for
    parking. Every state change is a status-guarded update, so a reservation
    cancelled mid-sweep is skipped rather than released.
    """

    def __init__(
        self,
        reservations: ReservationRepository,
        resources: ResourceRepository,
        offices: OfficeLocationRepository,
        attendance: AttendanceRepository,
        *,
        approvals: Optional[WFHApprovalService] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._reservations = reservations
        self._resources = resources
        self._offices = offices
        self._attendance = attendance
        self._approvals = approvals
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or SystemClock()
        self._settings = settings or EngineSettings()
        self._scheduler: Optional[BackgroundScheduler] = None
        self._sweep_lock = threading.Lock()

    def _read(self, fn, *args, **kwargs):
        return call_with_retry(
            fn,
            *args,
            attempts=self._settings.store_retry_attempts,
            delay=self._settings.store_retry_delay_s,
            **kwargs,
        )

    def _anchor(self, reservation: Reservation, hours_cache: Dict[int, OperatingHours]) -> datetime:
        """Rooms count from their start, parking from office opening.

        A hold booked after that point counts from when it was made.
        """
        if reservation.kind == ReservationKind.ROOM:
            anchor = reservation.starts_at
        else:
            spot = self._read(self._resources.get_spot, reservation.resource_id)
            office_id = spot.office_id if spot else None
            if office_id not in hours_cache:
                office = self._read(self._offices.get, office_id) if office_id is not None else None
                hours_cache[office_id] = office.hours if office else OperatingHours()
            anchor = hours_cache[office_id].opening(reservation.work_date)
        if reservation.created_at is not None and reservation.created_at > anchor:
            return reservation.created_at
        return anchor

    def _occupied(self, reservation: Reservation) -> bool:
        if reservation.checked_in_at is not None:
            return True
        if reservation.kind == ReservationKind.PARKING:
            record = self._read(self._attendance.get_for_user_and_date, reservation.owner_id, reservation.work_date)
            return record is not None and record.status == WorkStatus.OFFICE
        return False

    def _classify(
        self, reservation: Reservation, now: datetime, hours_cache: Dict[int, OperatingHours]
    ) -> Optional[ReleaseCandidate]:
        if not reservation.is_confirmed:
            return None

        anchor = self._anchor(reservation, hours_cache)
        elapsed = minutes_between(anchor, now)

        if self._occupied(reservation):
            if reservation.ends_at <= now:
                return ReleaseCandidate(
                    reservation.reservation_id, reservation.owner_id, SweepAction.COMPLETE, elapsed, reservation.version
                )
            return None

        if elapsed >= self._settings.release_after_minutes:
            return ReleaseCandidate(
                reservation.reservation_id, reservation.owner_id, SweepAction.RELEASE, elapsed, reservation.version
            )
        if elapsed > self._settings.release_grace_minutes and reservation.pending_release_at is None:
            return ReleaseCandidate(
                reservation.reservation_id, reservation.owner_id, SweepAction.WARN, elapsed, reservation.version
            )
        return None

    def sweep(self, *, dry_run: bool = False) -> SweepReport:
        """One pass over confirmed reservations dated today or earlier.

        Safe to run repeatedly; a second pass over the same state changes nothing.
        """
        with self._sweep_lock:
            return self._sweep(dry_run=dry_run)

    def _sweep(self, *, dry_run: bool) -> SweepReport:
        now = self._clock.now()
        report = SweepReport(dry_run=dry_run)
        hours_cache: Dict[int, OperatingHours] = {}

        for reservation in self._read(self._reservations.list_confirmed_until, now.date()):
            try:
                candidate = self._classify(reservation, now, hours_cache)
                if candidate is None:
                    continue
                report.candidates.append(candidate)
                if not dry_run:
                    self._apply(candidate, now, report)
            except Exception:
                logger.exception("Release sweep failed for reservation %s", reservation.reservation_id)
                report.errors.append(reservation.reservation_id)

        if not dry_run and self._approvals is not None:
            try:
                report.expired_requests = self._approvals.expire_stale()
            except Exception:
                logger.exception("Expiring stale WFH requests failed")

        logger.info(
            "Release sweep dry_run=%s candidates=%d pending=%d released=%d completed=%d skipped=%d errors=%d",
            dry_run,
            len(report.candidates),
            len(report.pending),
            len(report.released),
            len(report.completed),
            len(report.skipped),
            len(report.errors),
        )
        return report

    def _apply(self, candidate: ReleaseCandidate, now: datetime, report: SweepReport) -> None:
        rid = candidate.reservation_id
        if candidate.action == SweepAction.WARN:
            if self._read(self._reservations.mark_release_pending, rid, at=now):
                report.pending.append(rid)
                self._publish(EventKind.RELEASE_WARNING, candidate, now)
            else:
                report.skipped.append(rid)
            return

        target = ReservationStatus.RELEASED if candidate.action == SweepAction.RELEASE else ReservationStatus.COMPLETED
        changed = self._read(
            self._reservations.transition_status,
            rid,
            ReservationStatus.CONFIRMED,
            target,
            at=now,
            expected_version=candidate.version,
        )
        if not changed:
            # Cancelled, checked in or released by someone else since the scan.
            report.skipped.append(rid)
            return

        if target == ReservationStatus.RELEASED:
            report.released.append(rid)
            self._publish(EventKind.RELEASE_OCCURRED, candidate, now)
        else:
            report.completed.append(rid)

    def _publish(self, kind: EventKind, candidate: ReleaseCandidate, now: datetime) -> None:
        publish_safely(
            self._notifier,
            NotificationEvent(
                kind=kind,
                user_id=candidate.owner_id,
                created_at=now,
                payload={
                    "reservation_id": candidate.reservation_id,
                    "release_after_minutes": self._settings.release_after_minutes,
                },
            ),
        )

    def release_now(self, reservation_id: int) -> Reservation:
        """Operator trigger: release a confirmed hold immediately."""
        reservation = self._read(self._reservations.get, int(reservation_id))
        if not reservation:
            raise NotFoundError("Reservation does not exist")
        if not reservation.is_confirmed:
            raise ConflictError(f"Reservation is already {reservation.status.value}")

        now = self._clock.now()
        changed = self._read(
            self._reservations.transition_status,
            reservation.reservation_id,
            ReservationStatus.CONFIRMED,
            ReservationStatus.RELEASED,
            at=now,
        )
        if not changed:
            raise ConflictError("Reservation changed state while releasing")

        self._publish(
            EventKind.RELEASE_OCCURRED,
            ReleaseCandidate(reservation.reservation_id, reservation.owner_id, SweepAction.RELEASE, 0.0),
            now,
        )
        logger.info("Reservation %s released manually", reservation.reservation_id)
        return self._read(self._reservations.get, reservation.reservation_id)

    def start(self) -> None:
        if self._scheduler is not None:
            return
        scheduler = BackgroundScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 60,
            }
        )
        scheduler.add_job(
            self.sweep,
            "interval",
            minutes=self._settings.sweep_interval_minutes,
            id=JOB_ID,
            next_run_time=datetime.now() + timedelta(seconds=5),
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Auto-release sweep scheduled every %s minutes", self._settings.sweep_interval_minutes)

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running
