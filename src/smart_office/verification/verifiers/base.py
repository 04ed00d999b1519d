from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ...core.enums import DenialReason, VerificationMethod
from ...offices.model import OfficeLocation


@dataclass(frozen=True)
class VerifierOutcome:
    passed: bool
    reason: Optional[DenialReason] = None
    detail: Dict[str, Any] = field(default_factory=dict)


class Verifier(ABC):
    """Strategy Pattern: one way of proving presence at an office."""

    method: VerificationMethod

    @abstractmethod
    def check(self, payload, office: OfficeLocation, *, now: datetime) -> VerifierOutcome:
        """Raise ValidationError for malformed payloads; return a failed outcome otherwise."""

        raise NotImplementedError
