import os

from .config import db_config_from_env, engine_from_env

DB_CONFIG = db_config_from_env(default_password="12345")

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

# The background sweep would race the tests' FixedClock.
ENGINE = engine_from_env(scheduler_enabled="0")
