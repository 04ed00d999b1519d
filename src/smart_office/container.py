from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .booking.mysql_reservation_repository import MySQLReservationRepository
from .booking.mysql_resource_repository import MySQLResourceRepository
from .booking.repository import ReservationRepository, ResourceRepository
from .booking.service import BookingService
from .common.datetime_utils import Clock, SystemClock
from .common.locks import KeyedLocks
from .config.settings import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .notifications.notifier import LoggingNotifier, Notifier
from .offices.mysql_office_repository import MySQLOfficeLocationRepository
from .offices.repository import OfficeLocationRepository
from .recommendation.predictor import AttendancePredictor
from .recommendation.scorer import RecommendationScorer
from .release.scheduler import AutoReleaseScheduler
from .users.mysql_user_repository import MySQLEmployeeRepository
from .users.repository import EmployeeRepository
from .verification.arbiter import VerificationArbiter
from .verification.factory import VerifierFactory
from .verification.verifiers.geo_verifier import GeoVerifier
from .verification.verifiers.network_verifier import NetworkVerifier
from .verification.verifiers.override_verifier import ManualOverrideVerifier
from .verification.verifiers.token_verifier import TokenVerifier
from .wfh.approval_service import WFHApprovalService
from .wfh.mysql_wfh_request_repository import MySQLWFHRequestRepository
from .wfh.repository import WFHRequestRepository
from .wfh.tracker import WFHEligibilityTracker


@dataclass(frozen=True)
class Container:
    settings: EngineSettings

    employees_repo: EmployeeRepository
    offices_repo: OfficeLocationRepository
    attendance_repo: AttendanceRepository
    reservations_repo: ReservationRepository
    resources_repo: ResourceRepository
    wfh_requests_repo: WFHRequestRepository

    attendance_service: AttendanceService
    approval_service: WFHApprovalService
    booking_service: BookingService
    release_scheduler: AutoReleaseScheduler
    predictor: AttendancePredictor

    conn: Optional[DatabaseConnection] = None


def build_engine(
    *,
    employees: EmployeeRepository,
    offices: OfficeLocationRepository,
    attendance: AttendanceRepository,
    reservations: ReservationRepository,
    resources: ResourceRepository,
    wfh_requests: WFHRequestRepository,
    settings: Optional[EngineSettings] = None,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, fakes in tests)."""
    settings = settings or EngineSettings()
    clock = clock or SystemClock()
    notifier = notifier or LoggingNotifier()

    factory = VerifierFactory(
        geo=GeoVerifier(accuracy_cap_m=settings.geo_accuracy_cap_m),
        network=NetworkVerifier(),
        token=TokenVerifier(),
        override=ManualOverrideVerifier(employees),
    )
    arbiter = VerificationArbiter(factory, manual_override_confidence=settings.manual_override_confidence)
    tracker = WFHEligibilityTracker(attendance)

    approval_service = WFHApprovalService(
        wfh_requests, employees, notifier=notifier, clock=clock, tracker=tracker
    )
    attendance_service = AttendanceService(
        attendance,
        employees,
        offices,
        arbiter,
        tracker=tracker,
        approvals=approval_service,
        notifier=notifier,
        clock=clock,
        locks=KeyedLocks(timeout=settings.lock_timeout_s),
        settings=settings,
    )
    booking_service = BookingService(
        reservations,
        resources,
        employees,
        offices,
        scorer=RecommendationScorer(),
        notifier=notifier,
        clock=clock,
        settings=settings,
    )
    release_scheduler = AutoReleaseScheduler(
        reservations,
        resources,
        offices,
        attendance,
        approvals=approval_service,
        notifier=notifier,
        clock=clock,
        settings=settings,
    )

    return Container(
        settings=settings,
        employees_repo=employees,
        offices_repo=offices,
        attendance_repo=attendance,
        reservations_repo=reservations,
        resources_repo=resources,
        wfh_requests_repo=wfh_requests,
        attendance_service=attendance_service,
        approval_service=approval_service,
        booking_service=booking_service,
        release_scheduler=release_scheduler,
        predictor=AttendancePredictor(attendance, clock=clock),
        conn=conn,
    )


def build_container(*, db_config: dict, engine: Optional[dict] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_engine(
        employees=MySQLEmployeeRepository(conn),
        offices=MySQLOfficeLocationRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        reservations=MySQLReservationRepository(conn),
        resources=MySQLResourceRepository(conn),
        wfh_requests=MySQLWFHRequestRepository(conn),
        settings=EngineSettings.from_mapping(engine),
        conn=conn,
    )
