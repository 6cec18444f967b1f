from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .calendar_events.controller import register as register_calendar
from .container import Container, build_container
from .core.exceptions import DomainError
from .courses.controller import register as register_courses
from .database.bootstrap import apply_schema, ensure_demo_profiles, list_tables
from .fees.controller import register as register_fees
from .grading.controller import register as register_grading
from .hostels.controller import register as register_hostels
from .notifications.controller import register as register_notifications
from .results.controller import register as register_results
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

HTTP_STATUS = {
    "validation_error": 400,
    "unauthenticated": 401,
    "forbidden": 403,
    "not_found": 404,
    "invalid_state": 409,
    "store_error": 503,
}

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = HTTP_STATUS.get(exc.code, 400)
        if status >= 500:
            logger.error("Store failure: %s", exc)
        return jsonify({"success": False, "code": exc.code, "message": str(exc)}), status


def register_routes(app: Flask, container: Container) -> None:
    register_users(app, container)
    register_courses(app, container)
    register_attendance(app, container)
    register_fees(app, container)
    register_hostels(app, container)
    register_grading(app, container)
    register_results(app, container)
    register_analytics(app, container)
    register_calendar(app, container)
    register_notifications(app, container)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    # send_from_directory resolves relative paths against the package, not the cwd
    app.config["UPLOAD_DIR"] = os.path.abspath(getattr(settings, "UPLOAD_DIR"))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

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
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            ensure_demo_profiles(db_config)
            logger.info("Demo profiles ready")

        container = build_container(
            db_config=db_config,
            upload_dir=app.config["UPLOAD_DIR"],
            upload_base_url=getattr(settings, "UPLOAD_BASE_URL"),
        )

    app.extensions["school_portal"] = container
    register_error_handlers(app)
    register_routes(app, container)
    return app
