from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ..core.enums import DenialReason, VerificationMethod
from ..offices.model import OfficeToken


@dataclass(frozen=True)
class GpsPayload:
    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None


@dataclass(frozen=True)
class WifiPayload:
    ssid: str


@dataclass(frozen=True)
class QrPayload:
    code: str


@dataclass(frozen=True)
class ManualOverridePayload:
    authorizer_id: int
    justification: str


VerificationPayload = Union[GpsPayload, WifiPayload, QrPayload, ManualOverridePayload]


@dataclass(frozen=True)
class GeoResult:
    passed: bool
    distance_m: float
    used_radius_m: float


@dataclass(frozen=True)
class NetworkResult:
    passed: bool
    matched: Optional[str] = None


@dataclass(frozen=True)
class TokenResult:
    passed: bool
    token: Optional[OfficeToken] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ArbiterDecision:
    """Outcome of arbitration; a denial is a normal result, not an error."""

    admitted: bool
    method: VerificationMethod
    confidence: float
    reason: Optional[DenialReason] = None
    detail: Dict[str, Any] = field(default_factory=dict)
