from __future__ import annotations

from dataclasses import dataclass, fields

from ..core import constants as c


@dataclass(frozen=True)
class EngineSettings:
    geo_accuracy_cap_m: float = c.DEFAULT_GEO_ACCURACY_CAP_M
    manual_override_confidence: float = c.DEFAULT_MANUAL_OVERRIDE_CONFIDENCE
    release_grace_minutes: int = c.DEFAULT_RELEASE_GRACE_MINUTES
    release_after_minutes: int = c.DEFAULT_RELEASE_AFTER_MINUTES
    sweep_interval_minutes: int = c.DEFAULT_SWEEP_INTERVAL_MINUTES
    wfh_near_limit_threshold: int = c.DEFAULT_WFH_NEAR_LIMIT_THRESHOLD
    wfh_requires_approval: bool = False
    store_retry_attempts: int = c.DEFAULT_STORE_RETRY_ATTEMPTS
    store_retry_delay_s: float = c.DEFAULT_STORE_RETRY_DELAY_S
    lock_timeout_s: float = c.DEFAULT_LOCK_TIMEOUT_S
    utilization_window_days: int = c.DEFAULT_UTILIZATION_WINDOW_DAYS
    scheduler_enabled: bool = True

    @classmethod
    def from_mapping(cls, values: dict | None) -> "EngineSettings":
        """Build from a settings module's ENGINE dict; unknown keys are ignored."""
        values = values or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})
