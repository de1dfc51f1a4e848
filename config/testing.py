import os

from .config import DB_CONFIG  # noqa: F401

SECRET_KEY = "test-secret"

ALLOWED_ZONE = {"latitude": 40.7128, "longitude": -74.0060, "tolerance_km": 0.5}
BIOMETRIC = {"similarity_threshold": 0.8, "timeout_seconds": 2.0, "max_workers": 2}
LOG_LEVEL = "DEBUG"

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
