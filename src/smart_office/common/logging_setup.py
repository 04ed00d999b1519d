from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup used by create_app and the scripts."""
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
    # Scheduler internals are noisy at INFO.
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
