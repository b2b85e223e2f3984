from __future__ import annotations

import atexit
import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.datetime_utils import current_academic_year
from .common.http import ok, register_error_handlers
from .container import Container, build_container
from .core.logging_config import configure_logging
from .database.bootstrap import apply_schema, list_tables
from .fees.controller import register as register_fees
from .fees.seed import seed_default_structures
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """App factory. Pass a prebuilt container to skip the MySQL wiring."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    configure_logging(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        fmt=getattr(settings, "LOG_FORMAT", "text"),
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

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(db_config=db_config, settings=settings)
        atexit.register(container.close)

        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            seed_default_structures(container.fee_structure_service, academic_year=current_academic_year())

    app.extensions["container"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_students(app, container)
    register_fees(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return ok(status="ok")

    return app
