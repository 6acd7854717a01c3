import os

# ===== Env Helpers =====
def get_bool_env(key: str, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    return os.getenv(key, str(default)).lower() in ("1", "true", "yes")

def get_int_env(key: str, default: int = 0) -> int:
    """Parse an integer environment variable."""
    try:
        return int(os.getenv(key, default))
    except (TypeError, ValueError):
        return default

def get_float_env(key: str, default: float = 0.0) -> float:
    """Parse a float environment variable."""
    try:
        return float(os.getenv(key, default))
    except (TypeError, ValueError):
        return default

def get_list_env(key: str, default: str = "") -> list:
    """Parse a comma-separated environment variable into a list of lowercase names."""
    raw = os.getenv(key, default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]

# ===== Database =====
DB_URL = os.getenv("DB_URL", "sqlite:///events.db")
DB_CONNECT_RETRIES = get_int_env("DB_CONNECT_RETRIES", 5)

# ===== Logging =====
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ===== Geocoding =====
GEOCODE_ON_SAVE = get_bool_env("GEOCODE_ON_SAVE", True)
GEOCODER_PROVIDERS = get_list_env("GEOCODER_PROVIDERS", "nominatim")

NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "event-calendar/1.0")
GEOCODER_TIMEOUT = get_float_env("GEOCODER_TIMEOUT", 8.0)  # seconds
GEOCODER_RETRIES = get_int_env("GEOCODER_RETRIES", 3)
GEOCODER_BACKOFF = get_float_env("GEOCODER_BACKOFF", 1.0)  # seconds

# Optional; the google provider is skipped without it
GOOGLE_GEOCODER_KEY = os.getenv("GOOGLE_GEOCODER_KEY")
