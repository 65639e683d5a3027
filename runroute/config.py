"""
Constants for the route synthesis engine and its providers.
Provider endpoints can be overridden from the environment (or a .local.env file).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parent.parent / ".local.env"
load_dotenv(_ENV_PATH)

# ---------------------------------------------------------------------------
# Search loop
# ---------------------------------------------------------------------------
MAX_ATTEMPTS = 10
TIMEOUT_MS = 10_000
ATTEMPT_PAUSE_S = 0.5
FALLBACK_PAUSE_S = 0.2
SIMPLIFY_AFTER_ATTEMPT = 5  # out-and-back only from attempt 6 on
FALLBACK_BEARINGS = (0.0, 90.0, 180.0, 270.0)
SCALE_DAMPING = 0.8

# Tolerance = clamp(target * 10%, 0.5 km, 1.0 km)
TOLERANCE_FRACTION = 0.1
TOLERANCE_MIN_KM = 0.5
TOLERANCE_MAX_KM = 1.0

MIN_VALID_DISTANCE_KM = 0.05
FALLBACK_MIN_DISTANCE_KM = 0.1

# Result is flagged approximate beyond max(1 km, 15%) of the target
APPROXIMATE_MIN_KM = 1.0
APPROXIMATE_FRACTION = 0.15

# ---------------------------------------------------------------------------
# Waypoints and terrain
# ---------------------------------------------------------------------------
EARTH_RADIUS_KM = 6371.0
LOOP_VERTICES = 3
MAX_POI_WAYPOINTS = 3
POI_MAX_RADIUS_M = 3000.0
FLAT_GAIN_PER_KM = 10.0  # meters of climb per km
ELEVATION_MAX_SAMPLES = 50

# Maps deep link
EXPORT_MAX_WAYPOINTS = 9
EXPORT_TURN_THRESHOLD_DEG = 60.0

# Default location (Tokyo Station) when the CLI gets no coordinates
DEFAULT_LAT, DEFAULT_LNG = 35.6812, 139.7671

# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------
OSRM_URL = os.getenv("RUNROUTE_OSRM_URL", "https://router.project-osrm.org/route/v1/foot")
ELEVATION_URL = os.getenv("RUNROUTE_ELEVATION_URL", "https://api.open-elevation.com/api/v1/lookup")
OVERPASS_URL = os.getenv("RUNROUTE_OVERPASS_URL", "https://overpass-api.de/api/interpreter")
HTTP_TIMEOUT_S = float(os.getenv("RUNROUTE_HTTP_TIMEOUT_S", "10"))
