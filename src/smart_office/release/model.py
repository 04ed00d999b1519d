from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SweepAction(str, Enum):
    WARN = "pending-release"
    RELEASE = "release"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ReleaseCandidate:
    reservation_id: int
    owner_id: int
    action: SweepAction
    minutes_since_anchor: float
    version: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "reservation_id": self.reservation_id,
            "owner_id": self.owner_id,
            "action": self.action.value,
            "minutes_since_anchor": round(self.minutes_since_anchor, 1),
        }


@dataclass
class SweepReport:
    dry_run: bool = False
    candidates: List[ReleaseCandidate] = field(default_factory=list)
    pending: List[int] = field(default_factory=list)
    released: List[int] = field(default_factory=list)
    completed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    errors: List[int] = field(default_factory=list)
    expired_requests: int = 0

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "candidates": [c.to_dict() for c in self.candidates],
            "pending": self.pending,
            "released": self.released,
            "completed": self.completed,
            "skipped": self.skipped,
            "errors": self.errors,
            "expired_requests": self.expired_requests,
        }
