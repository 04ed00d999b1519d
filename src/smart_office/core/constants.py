"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_M = 6_371_000.0

DEFAULT_GEO_ACCURACY_CAP_M = 50.0
DEFAULT_MANUAL_OVERRIDE_CONFIDENCE = 0.5
VERIFIED_CONFIDENCE = 1.0
SELF_DECLARED_CONFIDENCE = 1.0

DEFAULT_MAX_WFH_DAYS_PER_MONTH = 10
DEFAULT_WFH_NEAR_LIMIT_THRESHOLD = 2
WFH_REQUEST_EXPIRY_DAYS = 7

DEFAULT_RELEASE_GRACE_MINUTES = 15
DEFAULT_RELEASE_AFTER_MINUTES = 30
DEFAULT_SWEEP_INTERVAL_MINUTES = 5

DEFAULT_STORE_RETRY_ATTEMPTS = 3
DEFAULT_STORE_RETRY_DELAY_S = 0.2
DEFAULT_LOCK_TIMEOUT_S = 5.0

DEFAULT_UTILIZATION_WINDOW_DAYS = 14
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_PREDICTION_WEEKS = 8
