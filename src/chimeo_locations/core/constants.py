"""
Application-wide constants for organization location reconciliation.

This module defines default values and constants used throughout the application.
"""

# Firestore
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
DEFAULT_DATABASE = "(default)"
ORGANIZATIONS_COLLECTION = "organizations"
DEFAULT_PAGE_SIZE = 300

# Firebase Auth (Identity Toolkit / Secure Token)
IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Drift detection
# Stored coordinates further than this from a fresh geocode are rewritten.
# Heuristic only: geocoders routinely disagree by tens of meters.
DEFAULT_DRIFT_THRESHOLD_METERS = 75.0

# Legacy clients write (0.0, 0.0) when no coordinate is known
SENTINEL_LATITUDE = 0.0
SENTINEL_LONGITUDE = 0.0

# Coordinate ranges (WGS84 degrees)
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# Geocoding
DEFAULT_GEOCODER_PROVIDER = "nominatim"
DEFAULT_GEOCODER_TIMEOUT = 10
# Nominatim usage policy: at most one request per second
DEFAULT_MIN_DELAY_SECONDS = 1.0
DEFAULT_GEOCODER_MAX_RETRIES = 2
DEFAULT_ERROR_WAIT_SECONDS = 5.0

# Concurrent lookups allowed for batch geocoding
DEFAULT_BATCH_WORKERS = 3

# Reconciliation modes
MODE_MISSING = "missing"
MODE_ALL = "all"
RECONCILIATION_MODES = (MODE_MISSING, MODE_ALL)

# Address component keys, in the order they appear in a formatted address
ADDRESS_COMPONENTS = ("address", "city", "state", "zipCode")
ADDRESS_SEPARATOR = ", "

# Locality keys returned by OSM-style providers, most specific first
LOCALITY_KEYS = ("city", "town", "village", "hamlet", "municipality")
