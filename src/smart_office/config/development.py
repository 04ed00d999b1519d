import os

from .config import db_config_from_env, engine_from_env

DB_CONFIG = db_config_from_env(default_password="smart_office")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, the app applies schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

ENGINE = engine_from_env()
