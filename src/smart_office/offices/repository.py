from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import OfficeLocation


class OfficeLocationRepository(Protocol):
    def get(self, office_id: int) -> Optional[OfficeLocation]:
        raise NotImplementedError

    def record_token_use(self, code: str, used_at: datetime, *, single_use: bool = False) -> bool:
        """Bump usage_count/last_used_at.

        For single-use tokens the update only applies while usage_count is 0;
        returns False when nothing was updated.
        """

        raise NotImplementedError
