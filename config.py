"""
NetNinja optional dependency flags and environment knobs.
SCAPY_AVAILABLE is set after attempting to import scapy.
"""

import os

try:
    from scapy.all import conf, get_if_list  # noqa: F401
    SCAPY_AVAILABLE = True
except ImportError:
    SCAPY_AVAILABLE = False


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _env_flag(name: str) -> bool:
    return str(os.environ.get(name, "")).strip().lower() in ("1", "true", "yes", "on")


# Per-invocation cap for every external command (seconds).
COMMAND_TIMEOUT = _env_int("NETNINJA_COMMAND_TIMEOUT", 5)
CONNECTION_THRESHOLD = _env_int("NETNINJA_CONNECTION_THRESHOLD", 50)
AUTH_LOG_LINES = _env_int("NETNINJA_AUTH_LOG_LINES", 100)
POLL_INTERVAL = _env_int("NETNINJA_POLL_INTERVAL", 5)
API_KEY = os.environ.get("NETNINJA_API_KEY", "").strip()
DEBUG = _env_flag("NETNINJA_DEBUG")
