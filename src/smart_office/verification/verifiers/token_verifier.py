from __future__ import annotations

import logging
from datetime import datetime

from ...common.validators import require_non_empty
from ...core.enums import DenialReason, VerificationMethod
from ...offices.model import OfficeLocation, OfficeToken
from ...offices.repository import OfficeLocationRepository
from ..model import QrPayload, TokenResult
from .base import Verifier, VerifierOutcome

logger = logging.getLogger(__name__)


class TokenVerifier(Verifier):
    """QR token check against the office's registry.

    Tokens are reusable inside their validity window unless flagged single-use.
    """

    method = VerificationMethod.QR_CODE

    def verify(self, code: str, office: OfficeLocation, *, now: datetime) -> TokenResult:
        code = require_non_empty(code, "QR code")
        token = office.find_token(code)
        if token is None:
            return TokenResult(passed=False, reason="unknown")
        if not token.is_active:
            return TokenResult(passed=False, token=token, reason="inactive")
        if token.is_expired(now):
            return TokenResult(passed=False, token=token, reason="expired")
        if token.single_use and token.usage_count > 0:
            return TokenResult(passed=False, token=token, reason="already-used")
        return TokenResult(passed=True, token=token)

    def check(self, payload: QrPayload, office: OfficeLocation, *, now: datetime) -> VerifierOutcome:
        result = self.verify(payload.code, office, now=now)
        if result.passed:
            return VerifierOutcome(
                passed=True,
                detail={"token": result.token.code, "single_use": result.token.single_use},
            )
        return VerifierOutcome(
            passed=False,
            reason=DenialReason.TOKEN_INVALID,
            detail={"token_state": result.reason},
        )

    @staticmethod
    def consume(offices: OfficeLocationRepository, token: OfficeToken, *, now: datetime) -> bool:
        """Claim a single-use token. False when another scan got there first."""
        return offices.record_token_use(token.code, now, single_use=True)

    @staticmethod
    def record_use(offices: OfficeLocationRepository, token: OfficeToken, *, now: datetime) -> bool:
        """Best-effort usage audit for reusable tokens; never fails the caller."""
        try:
            updated = offices.record_token_use(token.code, now, single_use=token.single_use)
        except Exception:
            logger.warning("Could not record use of token %s", token.code, exc_info=True)
            return False
        if not updated:
            logger.warning("Token %s usage not recorded", token.code)
        return updated
