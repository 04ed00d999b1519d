from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, Urgency
from .model import WFHRequest


class WFHRequestRepository(Protocol):
    def create(self, *, user_id: int, requested_for: date, reason: str, urgency: Urgency, created_at: datetime) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[WFHRequest]:
        raise NotImplementedError

    def find_for_user_and_date(self, user_id: int, requested_for: date) -> Sequence[WFHRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> bool:
        """Conditional on the request still being pending."""

        raise NotImplementedError

    def expire_pending_before(self, cutoff: date, *, at: datetime) -> int:
        """Mark pending requests for dates before ``cutoff`` as expired; returns how many."""

        raise NotImplementedError
