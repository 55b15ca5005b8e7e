"""Constants for aioura."""

# Oura API v2 user collection
OURA_API_BASE_URL = "https://api.ouraring.com/v2/usercollection"

# API endpoints (relative to the base URL)
DAILY_ACTIVITY_ENDPOINT = "daily_activity"
SLEEP_ENDPOINT = "sleep"
DAILY_READINESS_ENDPOINT = "daily_readiness"
HEART_RATE_ENDPOINT = "heartrate"
PERSONAL_INFO_ENDPOINT = "personal_info"

# Cache key names
ACTIVITY_KEY = "activity"
SLEEP_KEY = "sleep"
READINESS_KEY = "readiness"
HRV_KEY = "hrv"
TEMPERATURE_KEY = "temperature"
RECOVERY_KEY = "recovery"
HEALTH_SUMMARY_KEY = "health_summary"
PERSONAL_INFO_KEY = "personal_info"

CACHE_PREFIX = "oura_"

# Defaults
DEFAULT_RATE_LIMIT = 300  # requests per window
DEFAULT_CACHE_DURATION = 30  # minutes
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1000  # milliseconds
DEFAULT_RANGE_DAYS = 7
RATE_LIMIT_WINDOW = 60.0  # seconds
MAX_RETRY_AFTER = 300.0  # seconds, upper bound on a server requested wait

# Environment variables
ENV_BASE_URL = "OURA_API_BASE_URL"
ENV_API_TOKEN = "OURA_API_TOKEN"
ENV_RATE_LIMIT = "OURA_RATE_LIMIT"
ENV_CACHE_DURATION = "OURA_CACHE_DURATION"
ENV_MAX_RETRIES = "OURA_MAX_RETRIES"
ENV_RETRY_DELAY = "OURA_RETRY_DELAY"

# Default headers
DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}
