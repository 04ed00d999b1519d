import os


def _flag(name: str, default: str) -> bool:
    return bool(int(os.getenv(name, default)))


def db_config_from_env(*, default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "smart_office"),
        "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
        "lock_wait_timeout": int(os.getenv("DB_LOCK_WAIT_TIMEOUT", "5")),
    }


def engine_from_env(*, scheduler_enabled: str = "1") -> dict:
    return {
        "geo_accuracy_cap_m": float(os.getenv("GEO_ACCURACY_CAP_M", "50")),
        "manual_override_confidence": float(os.getenv("MANUAL_OVERRIDE_CONFIDENCE", "0.5")),
        "release_grace_minutes": int(os.getenv("RELEASE_GRACE_MINUTES", "15")),
        "release_after_minutes": int(os.getenv("RELEASE_AFTER_MINUTES", "30")),
        "sweep_interval_minutes": int(os.getenv("RELEASE_SWEEP_MINUTES", "5")),
        "wfh_near_limit_threshold": int(os.getenv("WFH_NEAR_LIMIT_THRESHOLD", "2")),
        "wfh_requires_approval": _flag("WFH_REQUIRES_APPROVAL", "0"),
        "store_retry_attempts": int(os.getenv("STORE_RETRY_ATTEMPTS", "3")),
        "store_retry_delay_s": float(os.getenv("STORE_RETRY_DELAY_S", "0.2")),
        "lock_timeout_s": float(os.getenv("LOCK_TIMEOUT_S", "5")),
        "utilization_window_days": int(os.getenv("UTILIZATION_WINDOW_DAYS", "14")),
        "scheduler_enabled": _flag("SCHEDULER_ENABLED", scheduler_enabled),
    }
