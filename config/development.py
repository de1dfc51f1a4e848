import os

from .config import ALLOWED_ZONE, BIOMETRIC, DB_CONFIG, LOG_LEVEL  # noqa: F401

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo employees on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
