from __future__ import annotations

import logging
from datetime import datetime

from ..core.constants import DEFAULT_MANUAL_OVERRIDE_CONFIDENCE, VERIFIED_CONFIDENCE
from ..core.enums import DenialReason, VerificationMethod
from ..core.exceptions import ValidationError
from ..offices.model import OfficeLocation
from .factory import VerifierFactory
from .model import ArbiterDecision, VerificationPayload

logger = logging.getLogger(__name__)


class VerificationArbiter:
    """Turns one verification payload into an admit/deny decision with a confidence score."""

    def __init__(
        self,
        factory: VerifierFactory,
        *,
        manual_override_confidence: float = DEFAULT_MANUAL_OVERRIDE_CONFIDENCE,
    ):
        if not 0.0 <= manual_override_confidence <= 1.0:
            raise ValueError("manual_override_confidence must be within [0, 1]")
        self._factory = factory
        self._manual_confidence = float(manual_override_confidence)

    def confidence_for(self, method: VerificationMethod) -> float:
        if method == VerificationMethod.MANUAL:
            return self._manual_confidence
        return VERIFIED_CONFIDENCE

    def decide(self, payload: VerificationPayload, office: OfficeLocation, *, now: datetime) -> ArbiterDecision:
        try:
            verifier = self._factory.for_payload(payload)
        except ValidationError as e:
            return ArbiterDecision(
                admitted=False,
                method=VerificationMethod.SELF_DECLARED,
                confidence=0.0,
                reason=DenialReason.MALFORMED_INPUT,
                detail={"error": str(e)},
            )

        try:
            outcome = verifier.check(payload, office, now=now)
        except ValidationError as e:
            logger.info("Malformed %s payload for office %s: %s", verifier.method.value, office.office_id, e)
            return ArbiterDecision(
                admitted=False,
                method=verifier.method,
                confidence=0.0,
                reason=DenialReason.MALFORMED_INPUT,
                detail={"error": str(e)},
            )

        if not outcome.passed:
            return ArbiterDecision(
                admitted=False,
                method=verifier.method,
                confidence=0.0,
                reason=outcome.reason,
                detail=dict(outcome.detail),
            )

        return ArbiterDecision(
            admitted=True,
            method=verifier.method,
            confidence=self.confidence_for(verifier.method),
            detail=dict(outcome.detail),
        )
