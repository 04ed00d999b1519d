import pytest

from fakes import make_employee
from smart_office.core.enums import DenialReason, WorkMode
from smart_office.wfh.tracker import WFHEligibilityTracker


def test_mode_restricted_wins_over_everything():
    employee = make_employee(work_mode=WorkMode.IN_OFFICE, wfh_enabled=False, max_wfh_days_per_month=0)
    decision = WFHEligibilityTracker.evaluate(employee, used_days=0)
    assert decision.reason == DenialReason.MODE_RESTRICTED


def test_not_enabled_checked_before_quota():
    decision = WFHEligibilityTracker.evaluate(make_employee(wfh_enabled=False, max_wfh_days_per_month=1), used_days=5)
    assert decision.reason == DenialReason.NOT_ENABLED


@pytest.mark.parametrize("used,allowed", [(0, True), (9, True), (10, False), (12, False)])
def test_quota_boundary(used, allowed):
    decision = WFHEligibilityTracker.evaluate(make_employee(max_wfh_days_per_month=10), used_days=used)
    assert decision.allowed is allowed
    if not allowed:
        assert decision.reason == DenialReason.QUOTA_EXCEEDED
        assert decision.to_dict()["used_days"] == used
        assert decision.quota.remaining == 0


def test_wfh_only_mode_is_allowed():
    assert WFHEligibilityTracker.evaluate(make_employee(work_mode=WorkMode.WFH), used_days=0).allowed is True


def test_used_days_needs_a_repository():
    with pytest.raises(RuntimeError):
        WFHEligibilityTracker().used_days(1, None)
