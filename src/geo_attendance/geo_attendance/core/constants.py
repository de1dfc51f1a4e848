"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_KM = 6371.0

DEFAULT_ZONE_LATITUDE = 40.7128
DEFAULT_ZONE_LONGITUDE = -74.0060
DEFAULT_TOLERANCE_KM = 0.5

DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_VERIFICATION_TIMEOUT_SECONDS = 10.0
DEFAULT_BIOMETRIC_WORKERS = 4

# Reference encoder: faces are normalized to FACE_SIZE x FACE_SIZE and sampled
# every SAMPLE_STEP pixels, skipping a SAMPLE_STEP wide border.
FACE_SIZE = 100
SAMPLE_STEP = 10
PIXEL_ENCODER_VERSION = "px1"

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_REPORT_DAYS = 7
