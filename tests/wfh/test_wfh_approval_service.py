from datetime import date, datetime, timedelta

import pytest

from fakes import InMemoryAttendance, InMemoryEmployees, InMemoryWFHRequests, RecordingNotifier, make_employee
from smart_office.attendance.model import AttendanceRecord
from smart_office.common.datetime_utils import FixedClock
from smart_office.core.enums import RequestStatus, Role, VerificationMethod, WorkStatus
from smart_office.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from smart_office.wfh.approval_service import WFHApprovalService
from smart_office.wfh.tracker import WFHEligibilityTracker

NOW = datetime(2025, 3, 10, 9, 0)


@pytest.fixture
def setup():
    requests = InMemoryWFHRequests()
    employees = InMemoryEmployees(
        make_employee(1),
        make_employee(2, can_approve=True),
        make_employee(3, role=Role.ADMIN),
    )
    notifier = RecordingNotifier()
    clock = FixedClock(NOW)
    svc = WFHApprovalService(requests, employees, notifier=notifier, clock=clock)
    return svc, requests, notifier, clock


def test_submit_and_approve(setup):
    svc, requests, notifier, _ = setup
    rid = svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="delivery", urgency="urgent")

    svc.approve(approver_id=2, request_id=rid, note="ok")

    req = requests.get(rid)
    assert req.status == RequestStatus.APPROVED
    assert req.decided_by == 2
    assert req.manager_note == "ok"
    assert svc.has_approval(1, date(2025, 3, 12)) is True
    assert notifier.kinds() == ["wfh-request-decided"]
    assert notifier.events[0].payload["status"] == "approved"


def test_deny(setup):
    svc, requests, _, _ = setup
    rid = svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="delivery")
    svc.deny(approver_id=3, request_id=rid)

    assert requests.get(rid).status == RequestStatus.DENIED
    assert svc.has_approval(1, date(2025, 3, 12)) is False


def test_staff_cannot_decide(setup):
    svc, _, _, _ = setup
    rid = svc.submit(user_id=2, requested_for=date(2025, 3, 12), reason="delivery")
    with pytest.raises(AuthorizationError):
        svc.approve(approver_id=1, request_id=rid)


def test_manager_cannot_approve_own_request(setup):
    svc, _, _, _ = setup
    rid = svc.submit(user_id=2, requested_for=date(2025, 3, 12), reason="delivery")
    with pytest.raises(AuthorizationError):
        svc.approve(approver_id=2, request_id=rid)


def test_decided_request_cannot_be_decided_again(setup):
    svc, _, _, _ = setup
    rid = svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="delivery")
    svc.approve(approver_id=2, request_id=rid)
    with pytest.raises(ConflictError):
        svc.deny(approver_id=3, request_id=rid)


def test_unknown_request(setup):
    svc, _, _, _ = setup
    with pytest.raises(NotFoundError):
        svc.approve(approver_id=2, request_id=999)


def test_submit_validation(setup):
    svc, _, _, _ = setup
    with pytest.raises(ValidationError):
        svc.submit(user_id=1, requested_for=date(2025, 3, 9), reason="late")
    with pytest.raises(ValidationError):
        svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="  ")
    with pytest.raises(ValidationError):
        svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="x", urgency="whenever")


def test_duplicate_open_request_is_a_conflict(setup):
    svc, _, _, _ = setup
    svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="delivery")
    with pytest.raises(ConflictError):
        svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="again")


def test_denied_request_can_be_resubmitted(setup):
    svc, _, _, _ = setup
    rid = svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="delivery")
    svc.deny(approver_id=2, request_id=rid)
    assert svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="second try") != rid


def test_stale_pending_requests_expire(setup):
    svc, requests, _, clock = setup
    old = svc.submit(user_id=1, requested_for=date(2025, 3, 11), reason="a")
    recent = svc.submit(user_id=1, requested_for=date(2025, 3, 20), reason="b")

    clock.set(datetime(2025, 3, 19, 9, 0))
    assert svc.expire_stale() == 1
    assert requests.get(old).status == RequestStatus.EXPIRED
    assert requests.get(recent).status == RequestStatus.PENDING


def test_submit_rejected_when_month_quota_used_up():
    attendance = InMemoryAttendance()
    for i in range(3):
        day = date(2025, 3, 1) + timedelta(days=i)
        attendance.add(
            AttendanceRecord(None, 1, day, WorkStatus.WFH, VerificationMethod.SELF_DECLARED, 1.0, datetime.combine(day, NOW.time()))
        )
    svc = WFHApprovalService(
        InMemoryWFHRequests(),
        InMemoryEmployees(make_employee(1, max_wfh_days_per_month=3)),
        clock=FixedClock(NOW),
        tracker=WFHEligibilityTracker(attendance),
    )

    with pytest.raises(QuotaExceededError) as exc:
        svc.submit(user_id=1, requested_for=date(2025, 3, 12), reason="again")
    assert exc.value.used == 3
    assert exc.value.maximum == 3

    # Next month is a fresh quota.
    assert svc.submit(user_id=1, requested_for=date(2025, 4, 2), reason="april")
