from __future__ import annotations

import math
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_coordinates(latitude, longitude) -> tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("Coordinates must be numeric")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError("Coordinates must be finite")
    if abs(lat) > 90 or abs(lon) > 180:
        raise ValidationError(f"Coordinates out of range: ({lat}, {lon})")
    return lat, lon
