from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, Optional, Tuple

WEEKDAY_CODES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(frozen=True)
class OperatingHours:
    start: time = time(9, 0)
    end: time = time(18, 0)
    days: FrozenSet[str] = frozenset(WEEKDAY_CODES[:5])

    def is_open_on(self, day: date) -> bool:
        return WEEKDAY_CODES[day.weekday()] in self.days

    def opening(self, day: date) -> datetime:
        return datetime.combine(day, self.start)

    def open_minutes(self) -> float:
        start = datetime.combine(date.min, self.start)
        end = datetime.combine(date.min, self.end)
        return max(0.0, (end - start).total_seconds() / 60.0)


@dataclass(frozen=True)
class OfficeToken:
    """A QR code registered for an office."""

    code: str
    office_id: int
    expires_at: Optional[datetime] = None
    is_active: bool = True
    single_use: bool = False
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    description: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at


@dataclass(frozen=True)
class OfficeLocation:
    office_id: int
    name: str
    latitude: float
    longitude: float
    geofence_radius_m: float
    wifi_networks: FrozenSet[str] = frozenset()
    tokens: Tuple[OfficeToken, ...] = ()
    hours: OperatingHours = field(default_factory=OperatingHours)
    is_active: bool = True

    def find_token(self, code: str) -> Optional[OfficeToken]:
        for token in self.tokens:
            if token.code == code:
                return token
        return None
