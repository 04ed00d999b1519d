from __future__ import annotations

from datetime import datetime

from ...common.validators import require_non_empty
from ...core.enums import DenialReason, VerificationMethod
from ...offices.model import OfficeLocation
from ...users.repository import EmployeeRepository
from ..model import ManualOverridePayload
from .base import Verifier, VerifierOutcome


class ManualOverrideVerifier(Verifier):
    """Bypasses location proof; needs a justification and an authorized approver."""

    method = VerificationMethod.MANUAL

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def check(self, payload: ManualOverridePayload, office: OfficeLocation, *, now: datetime) -> VerifierOutcome:
        justification = require_non_empty(payload.justification, "Override justification")
        authorizer = self._employees.get_by_id(int(payload.authorizer_id))
        if authorizer is None or not authorizer.may_authorize:
            return VerifierOutcome(
                passed=False,
                reason=DenialReason.OVERRIDE_UNAUTHORIZED,
                detail={"authorizer_id": payload.authorizer_id},
            )
        return VerifierOutcome(
            passed=True,
            detail={"authorizer_id": authorizer.user_id, "justification": justification},
        )
