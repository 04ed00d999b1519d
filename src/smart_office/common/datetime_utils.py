from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Protocol, Tuple


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Current local time."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to a moment; tests move it with ``advance``/``set``."""

    def __init__(self, moment: datetime):
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = moment

    def advance(self, **kwargs) -> datetime:
        self._moment = self._moment + timedelta(**kwargs)
        return self._moment


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a calendar month."""
    first = date(year, month, 1)
    if month == 12:
        nxt = date(year + 1, 1, 1)
    else:
        nxt = date(year, month + 1, 1)
    return first, nxt - timedelta(days=1)


def to_local_naive(value: datetime) -> datetime:
    """Aware timestamps (e.g. "...Z" from phones) in server-local wall time; naive ones pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0
