from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from fakes import InMemoryOffices, make_office
from smart_office.core.exceptions import ValidationError
from smart_office.offices.model import OfficeToken
from smart_office.verification.verifiers.network_verifier import NetworkVerifier
from smart_office.verification.verifiers.token_verifier import TokenVerifier

NOW = datetime(2025, 3, 3, 9, 0)


def test_network_match_is_case_insensitive_and_trimmed():
    result = NetworkVerifier().verify("  office-5g ", {"Office-5G"})
    assert result.passed is True
    assert result.matched == "Office-5G"


def test_network_prefix_or_partial_does_not_match():
    verifier = NetworkVerifier()
    assert verifier.verify("Office-5G-Guest", {"Office-5G"}).passed is False
    assert verifier.verify("Office", {"Office-5G"}).passed is False


def test_network_empty_ssid_is_invalid():
    with pytest.raises(ValidationError):
        NetworkVerifier().verify("   ", {"Office-5G"})


def _office_with(*tokens):
    return make_office(tokens=tuple(tokens))


def test_token_valid_until_expiry_inclusive():
    token = OfficeToken(code="T1", office_id=1, expires_at=NOW)
    verifier = TokenVerifier()

    assert verifier.verify("T1", _office_with(token), now=NOW).passed is True
    late = verifier.verify("T1", _office_with(token), now=NOW + timedelta(seconds=1))
    assert late.passed is False
    assert late.reason == "expired"


def test_token_without_expiry_never_expires():
    token = OfficeToken(code="T1", office_id=1)
    assert TokenVerifier().verify("T1", _office_with(token), now=NOW + timedelta(days=3650)).passed is True


def test_token_unknown_and_inactive():
    verifier = TokenVerifier()
    office = _office_with(OfficeToken(code="OFF", office_id=1, is_active=False))

    assert verifier.verify("NOPE", office, now=NOW).reason == "unknown"
    assert verifier.verify("OFF", office, now=NOW).reason == "inactive"


def test_single_use_token_rejected_after_first_use():
    token = OfficeToken(code="ONCE", office_id=1, single_use=True)
    verifier = TokenVerifier()

    assert verifier.verify("ONCE", _office_with(token), now=NOW).passed is True
    used = replace(token, usage_count=1)
    result = verifier.verify("ONCE", _office_with(used), now=NOW)
    assert result.passed is False
    assert result.reason == "already-used"


def test_reusable_token_accepts_many_scans():
    token = OfficeToken(code="MANY", office_id=1, usage_count=250)
    assert TokenVerifier().verify("MANY", _office_with(token), now=NOW).passed is True


def test_record_use_increments_counter():
    token = OfficeToken(code="MANY", office_id=1)
    offices = InMemoryOffices(_office_with(token))

    assert TokenVerifier.record_use(offices, token, now=NOW) is True
    saved = offices.get(1).find_token("MANY")
    assert saved.usage_count == 1
    assert saved.last_used_at == NOW


def test_record_use_failure_is_swallowed():
    token = OfficeToken(code="MANY", office_id=1)
    offices = InMemoryOffices(_office_with(token))
    offices.token_use_error = ConnectionError("db down")

    assert TokenVerifier.record_use(offices, token, now=NOW) is False
