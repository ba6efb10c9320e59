"""Application-wide constants for LocWatch.

Shared values used across the location, settings and CLI modules.
"""

# ============================================================================
# CONFIG
# ============================================================================
APP_NAME = "locwatch"
APP_AUTHOR = "locwatch"
CONFIG_FILE_NAME = "config.json"

# ============================================================================
# POSITION SOURCES
# ============================================================================
POSITION_SOURCE_DUMMY = "dummy"
POSITION_SOURCE_GPSD = "gpsd"
POSITION_SOURCES = (POSITION_SOURCE_DUMMY, POSITION_SOURCE_GPSD)

# gpsd polling defaults
DEFAULT_GPS_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_GPSPIPE_MESSAGE_COUNT = 10
DEFAULT_GPSPIPE_TIMEOUT_SECONDS = 5.0

# Dummy device location (Pikes Peak)
DEFAULT_DUMMY_LATITUDE = 38.8409
DEFAULT_DUMMY_LONGITUDE = -105.0423

# ============================================================================
# SOFT CONDITION MESSAGES
# ============================================================================
DUPLICATE_WATCH_MESSAGE = "A location watch is already active. Clear it before starting a new one"
NO_ACTIVE_WATCH_MESSAGE = "No location watch active"
