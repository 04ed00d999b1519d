from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ...common.validators import require_non_empty
from ...core.enums import DenialReason, VerificationMethod
from ...offices.model import OfficeLocation
from ..model import NetworkResult, WifiPayload
from .base import Verifier, VerifierOutcome


class NetworkVerifier(Verifier):
    """Exact, case-insensitive SSID match.

    No prefix or substring matching: "Office-5G-Free" must not pass for "Office-5G".
    """

    method = VerificationMethod.WIFI

    def verify(self, observed_ssid: str, authorized: Iterable[str]) -> NetworkResult:
        observed = require_non_empty(observed_ssid, "WiFi network").casefold()
        for entry in sorted(authorized):
            if entry.strip().casefold() == observed:
                return NetworkResult(passed=True, matched=entry)
        return NetworkResult(passed=False)

    def check(self, payload: WifiPayload, office: OfficeLocation, *, now: datetime) -> VerifierOutcome:
        result = self.verify(payload.ssid, office.wifi_networks)
        if result.passed:
            return VerifierOutcome(passed=True, detail={"matched_network": result.matched})
        return VerifierOutcome(
            passed=False,
            reason=DenialReason.NETWORK_MISMATCH,
            detail={"observed_network": payload.ssid},
        )
