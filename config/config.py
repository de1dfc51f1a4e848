import os


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "geo-attendance-secret"

    # DB
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "geo_attendance")

    # Authorized site; (0, 0) is rejected as a centre.
    ZONE_LATITUDE = _env_float("ZONE_LATITUDE", 40.7128)
    ZONE_LONGITUDE = _env_float("ZONE_LONGITUDE", -74.0060)
    ZONE_TOLERANCE_KM = _env_float("ZONE_TOLERANCE_KM", 0.5)

    BIOMETRIC_THRESHOLD = _env_float("BIOMETRIC_THRESHOLD", 0.8)
    BIOMETRIC_TIMEOUT_SECONDS = _env_float("BIOMETRIC_TIMEOUT_SECONDS", 10.0)
    BIOMETRIC_WORKERS = int(os.environ.get("BIOMETRIC_WORKERS", "4"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))


SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}
ALLOWED_ZONE = {
    "latitude": Config.ZONE_LATITUDE,
    "longitude": Config.ZONE_LONGITUDE,
    "tolerance_km": Config.ZONE_TOLERANCE_KM,
}
BIOMETRIC = {
    "similarity_threshold": Config.BIOMETRIC_THRESHOLD,
    "timeout_seconds": Config.BIOMETRIC_TIMEOUT_SECONDS,
    "max_workers": Config.BIOMETRIC_WORKERS,
}
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = bool(int(os.environ.get("DEBUG", "1")))

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
