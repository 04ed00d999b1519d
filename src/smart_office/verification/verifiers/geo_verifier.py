from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ...common.validators import require_coordinates
from ...core.constants import DEFAULT_GEO_ACCURACY_CAP_M, EARTH_RADIUS_M
from ...core.enums import DenialReason, VerificationMethod
from ...core.exceptions import ValidationError
from ...offices.model import OfficeLocation
from ..model import GeoResult, GpsPayload
from .base import Verifier, VerifierOutcome


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


class GeoVerifier(Verifier):
    """Geofence check.

    The reported accuracy widens the fence, but only up to ``accuracy_cap_m``
    so a device cannot claim a huge error bar to pass from far away.
    """

    method = VerificationMethod.GPS

    def __init__(self, *, accuracy_cap_m: float = DEFAULT_GEO_ACCURACY_CAP_M):
        self._accuracy_cap_m = float(accuracy_cap_m)

    def accuracy_margin(self, accuracy_m: Optional[float]) -> float:
        if accuracy_m is None:
            return 0.0
        try:
            accuracy = float(accuracy_m)
        except (TypeError, ValueError):
            raise ValidationError("GPS accuracy must be numeric")
        if math.isnan(accuracy) or accuracy < 0:
            raise ValidationError("GPS accuracy must be a non-negative number")
        return min(accuracy, self._accuracy_cap_m)

    @staticmethod
    def within(distance_m: float, radius_m: float, margin_m: float) -> bool:
        return distance_m <= radius_m + margin_m

    def verify(self, latitude, longitude, accuracy_m: Optional[float], office: OfficeLocation) -> GeoResult:
        lat, lon = require_coordinates(latitude, longitude)
        margin = self.accuracy_margin(accuracy_m)
        distance = haversine_distance_m(lat, lon, office.latitude, office.longitude)
        used_radius = float(office.geofence_radius_m) + margin
        return GeoResult(
            passed=self.within(distance, float(office.geofence_radius_m), margin),
            distance_m=distance,
            used_radius_m=used_radius,
        )

    def check(self, payload: GpsPayload, office: OfficeLocation, *, now: datetime) -> VerifierOutcome:
        result = self.verify(payload.latitude, payload.longitude, payload.accuracy_m, office)
        detail = {
            "distance_m": round(result.distance_m, 2),
            "used_radius_m": round(result.used_radius_m, 2),
        }
        if result.passed:
            return VerifierOutcome(passed=True, detail=detail)
        return VerifierOutcome(passed=False, reason=DenialReason.OUT_OF_RANGE, detail=detail)
