from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple

from ..core.enums import ReservationKind
from .model import Reservation


def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    """Half-open intervals: touching ends (10:00-11:00 vs 11:00-12:00) do not overlap."""
    return s1 < e2 and s2 < e1


@dataclass(frozen=True)
class ConflictReport:
    conflicts: Tuple[Reservation, ...] = ()
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return not self.conflicts


class BookingConflictDetector:
    """Checks a candidate reservation against confirmed ones.

    Pure: callers run it inside the same transaction/lock as the insert.
    """

    def check(
        self,
        candidate: Reservation,
        existing_on_resource: Iterable[Reservation],
        existing_for_owner: Iterable[Reservation] = (),
    ) -> ConflictReport:
        if candidate.kind == ReservationKind.ROOM:
            return self._check_room(candidate, existing_on_resource)
        return self._check_parking(candidate, existing_on_resource, existing_for_owner)

    @staticmethod
    def _same_day_confirmed(candidate: Reservation, others: Iterable[Reservation]) -> list[Reservation]:
        return [
            r
            for r in others
            if r.is_confirmed
            and r.kind == candidate.kind
            and r.work_date == candidate.work_date
            and r.reservation_id != candidate.reservation_id
        ]

    def _check_room(self, candidate: Reservation, existing: Iterable[Reservation]) -> ConflictReport:
        colliding = tuple(
            r
            for r in self._same_day_confirmed(candidate, existing)
            if r.resource_id == candidate.resource_id
            and intervals_overlap(candidate.starts_at, candidate.ends_at, r.starts_at, r.ends_at)
        )
        if colliding:
            return ConflictReport(conflicts=colliding, reason="overlap")
        return ConflictReport()

    def _check_parking(
        self,
        candidate: Reservation,
        existing_on_resource: Iterable[Reservation],
        existing_for_owner: Iterable[Reservation],
    ) -> ConflictReport:
        owned = tuple(
            r for r in self._same_day_confirmed(candidate, existing_for_owner) if r.owner_id == candidate.owner_id
        )
        if owned:
            return ConflictReport(conflicts=owned, reason="owner-has-reservation")

        taken = tuple(
            r
            for r in self._same_day_confirmed(candidate, existing_on_resource)
            if r.resource_id == candidate.resource_id
        )
        if taken:
            return ConflictReport(conflicts=taken, reason="spot-taken")
        return ConflictReport()
