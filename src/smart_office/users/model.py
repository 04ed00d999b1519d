from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_MAX_WFH_DAYS_PER_MONTH
from ..core.enums import Role, WorkMode


@dataclass(frozen=True)
class Employee:
    """Employee settings consumed by the engine (read-only here)."""

    user_id: int
    full_name: str
    role: Role = Role.STAFF
    work_mode: WorkMode = WorkMode.HYBRID
    wfh_enabled: bool = True
    max_wfh_days_per_month: int = DEFAULT_MAX_WFH_DAYS_PER_MONTH
    can_approve: bool = False
    is_active: bool = True

    @property
    def may_authorize(self) -> bool:
        """Managers and admins may approve WFH requests and override check-ins."""
        return self.is_active and (self.role == Role.ADMIN or self.can_approve)
