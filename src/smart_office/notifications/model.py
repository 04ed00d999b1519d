from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from ..core.enums import EventKind


@dataclass(frozen=True)
class NotificationEvent:
    kind: EventKind
    user_id: int
    created_at: datetime
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
            "payload": dict(self.payload),
        }
