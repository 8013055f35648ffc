import os

def int_env(name: str, default: int, *, min_value: int | None = None, max_value: int | None = None) -> int:
    """
    Read an env var and convert to int, with optional range validation.
    Falls back to `default` if var is unset or its parsing fails.
    """
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except (ValueError, TypeError):
        value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value
    return value

def bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

# Sample buffers
METRICS_CAPACITY = int_env("METRICS_CAPACITY", 1000, min_value=1)
METRICS_WINDOW_MS = int_env("METRICS_WINDOW_MS", 5 * 60 * 1000, min_value=1)  # export label only

# Response header
METRICS_INCLUDE_HEADERS = bool_env("METRICS_INCLUDE_HEADERS", True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
