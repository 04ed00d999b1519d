from datetime import datetime

import pytest

from fakes import InMemoryEmployees, make_employee, make_office
from smart_office.core.enums import DenialReason, Role, VerificationMethod
from smart_office.verification.arbiter import VerificationArbiter
from smart_office.verification.factory import VerifierFactory
from smart_office.verification.model import GpsPayload, ManualOverridePayload, QrPayload, WifiPayload
from smart_office.verification.verifiers.geo_verifier import GeoVerifier
from smart_office.verification.verifiers.network_verifier import NetworkVerifier
from smart_office.verification.verifiers.override_verifier import ManualOverrideVerifier
from smart_office.verification.verifiers.token_verifier import TokenVerifier

NOW = datetime(2025, 3, 3, 9, 0)


@pytest.fixture
def employees():
    return InMemoryEmployees(
        make_employee(1),
        make_employee(2, can_approve=True),
        make_employee(3, role=Role.ADMIN),
        make_employee(4, can_approve=True, is_active=False),
    )


@pytest.fixture
def arbiter(employees):
    factory = VerifierFactory(
        geo=GeoVerifier(),
        network=NetworkVerifier(),
        token=TokenVerifier(),
        override=ManualOverrideVerifier(employees),
    )
    return VerificationArbiter(factory, manual_override_confidence=0.5)


@pytest.mark.parametrize(
    "payload,method",
    [
        (GpsPayload(37.7750, -122.4194, 5), VerificationMethod.GPS),
        (WifiPayload("OFFICE-5G"), VerificationMethod.WIFI),
        (QrPayload("HQ-DOOR"), VerificationMethod.QR_CODE),
    ],
)
def test_verified_methods_get_full_confidence(arbiter, payload, method):
    decision = arbiter.decide(payload, make_office(), now=NOW)
    assert decision.admitted is True
    assert decision.method == method
    assert decision.confidence == 1.0


@pytest.mark.parametrize(
    "payload,reason",
    [
        (GpsPayload(37.7759, -122.4194, 5), DenialReason.OUT_OF_RANGE),
        (WifiPayload("Cafe"), DenialReason.NETWORK_MISMATCH),
        (QrPayload("OLD"), DenialReason.TOKEN_INVALID),
    ],
)
def test_failed_verification_is_denied_with_zero_confidence(arbiter, payload, reason):
    decision = arbiter.decide(payload, make_office(), now=NOW)
    assert decision.admitted is False
    assert decision.confidence == 0.0
    assert decision.reason == reason


@pytest.mark.parametrize("authorizer_id", [2, 3])
def test_manual_override_by_manager_or_admin(arbiter, authorizer_id):
    decision = arbiter.decide(ManualOverridePayload(authorizer_id, "phone GPS broken"), make_office(), now=NOW)
    assert decision.admitted is True
    assert decision.method == VerificationMethod.MANUAL
    assert decision.confidence == 0.5


@pytest.mark.parametrize("authorizer_id", [1, 4, 99])
def test_manual_override_by_unauthorized_party_is_denied(arbiter, authorizer_id):
    decision = arbiter.decide(ManualOverridePayload(authorizer_id, "trust me"), make_office(), now=NOW)
    assert decision.admitted is False
    assert decision.reason == DenialReason.OVERRIDE_UNAUTHORIZED


def test_manual_override_without_justification_is_malformed(arbiter):
    decision = arbiter.decide(ManualOverridePayload(2, "  "), make_office(), now=NOW)
    assert decision.admitted is False
    assert decision.reason == DenialReason.MALFORMED_INPUT


def test_missing_payload_is_malformed(arbiter):
    decision = arbiter.decide(None, make_office(), now=NOW)
    assert decision.admitted is False
    assert decision.reason == DenialReason.MALFORMED_INPUT


def test_bad_coordinates_are_malformed_not_out_of_range(arbiter):
    decision = arbiter.decide(GpsPayload(123.0, 0.0, 5), make_office(), now=NOW)
    assert decision.reason == DenialReason.MALFORMED_INPUT
    assert decision.confidence == 0.0


def test_override_confidence_must_be_a_probability():
    factory = VerifierFactory(GeoVerifier(), NetworkVerifier(), TokenVerifier(), ManualOverrideVerifier(InMemoryEmployees()))
    with pytest.raises(ValueError):
        VerificationArbiter(factory, manual_override_confidence=1.5)
