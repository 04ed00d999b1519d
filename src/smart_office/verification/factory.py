from __future__ import annotations

from dataclasses import dataclass

from ..core.exceptions import ValidationError
from .model import GpsPayload, ManualOverridePayload, QrPayload, WifiPayload
from .verifiers.base import Verifier
from .verifiers.geo_verifier import GeoVerifier
from .verifiers.network_verifier import NetworkVerifier
from .verifiers.override_verifier import ManualOverrideVerifier
from .verifiers.token_verifier import TokenVerifier


@dataclass
class VerifierFactory:
    """Factory Pattern: pick the single verifier matching the payload type."""

    geo: GeoVerifier
    network: NetworkVerifier
    token: TokenVerifier
    override: ManualOverrideVerifier

    def for_payload(self, payload) -> Verifier:
        if isinstance(payload, GpsPayload):
            return self.geo
        if isinstance(payload, WifiPayload):
            return self.network
        if isinstance(payload, QrPayload):
            return self.token
        if isinstance(payload, ManualOverridePayload):
            return self.override
        if payload is None:
            raise ValidationError("A verification payload is required for office check-in")
        raise ValidationError(f"Unsupported verification payload: {type(payload).__name__}")
