from __future__ import annotations

import atexit
import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from .common.http import register_error_handlers
from .common.logging_setup import configure_logging
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema

from .attendance.controller import register as register_attendance
from .booking.controller import register as register_booking
from .offices.controller import register as register_offices
from .release.controller import register as register_release
from .wfh.controller import register as register_wfh

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
        container = build_container(db_config=db_config, engine=getattr(settings, "ENGINE", None))

        if container.settings.scheduler_enabled:
            container.release_scheduler.start()
            atexit.register(container.release_scheduler.shutdown)

    app.extensions["smart_office"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_wfh(app, container)
    register_booking(app, container)
    register_release(app, container)
    register_offices(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="api_health")
    def api_health():
        return jsonify({"success": True, "status": "ok"}), 200

    return app
