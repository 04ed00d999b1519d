from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import DenialReason, RequestStatus, Urgency


@dataclass(frozen=True)
class WFHQuota:
    used_days: int
    monthly_max: int

    @property
    def remaining(self) -> int:
        return max(0, self.monthly_max - self.used_days)

    @property
    def exhausted(self) -> bool:
        return self.used_days >= self.monthly_max


@dataclass(frozen=True)
class EligibilityDecision:
    allowed: bool
    quota: WFHQuota
    reason: Optional[DenialReason] = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value if self.reason else None,
            "used_days": self.quota.used_days,
            "monthly_max": self.quota.monthly_max,
            "remaining": self.quota.remaining,
        }


@dataclass(frozen=True)
class WFHRequest:
    request_id: int
    user_id: int
    requested_for: date
    reason: str
    status: RequestStatus
    created_at: datetime
    urgency: Urgency = Urgency.NORMAL
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    manager_note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "requested_for": self.requested_for.isoformat(),
            "reason": self.reason,
            "status": self.status.value,
            "urgency": self.urgency.value,
            "created_at": self.created_at.isoformat(),
            "decided_by": self.decided_by,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
            "manager_note": self.manager_note,
        }
