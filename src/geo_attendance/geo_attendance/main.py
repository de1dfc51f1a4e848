from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def setup_logging(app: Flask, level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    package_logger = logging.getLogger(__package__)
    package_logger.setLevel(level)
    if not package_logger.handlers:
        package_logger.addHandler(handler)
    app.logger.setLevel(level)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(app, str(getattr(settings, "LOG_LEVEL", "INFO")).upper())

    db_config = getattr(settings, "DB_CONFIG")
    zone_config = getattr(settings, "ALLOWED_ZONE")
    biometric_config = getattr(settings, "BIOMETRIC", {})

    logger.info(
        "settings=%s db=%s@%s:%s/%s zone=(%s, %s) tolerance=%s km",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        zone_config.get("latitude"),
        zone_config.get("longitude"),
        zone_config.get("tolerance_km"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        logger.info("demo seed ready")

    container = build_container(db_config=db_config, zone_config=zone_config, biometric_config=biometric_config)
    register_attendance(app, container)
    atexit.register(container.attendance_gate.close)

    return app
