import logging
import os
from pathlib import Path

from .errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_INSTALL_ROOT = "/tmp/devcade"
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_COOLDOWN_MS = 200

# Environment is read at each call site, never cached, so a changed variable
# takes effect on the next operation.


def install_root() -> Path:
    """Directory games are installed into. Falls back to /tmp/devcade."""
    path = os.environ.get("DEVCADE_PATH")
    if not path:
        log.warning("DEVCADE_PATH is not set, falling back to '%s'", DEFAULT_INSTALL_ROOT)
        path = DEFAULT_INSTALL_ROOT
    return Path(path)


def api_url() -> str:
    """Base URL of the catalog service. There is no usable default."""
    url = os.environ.get("DEVCADE_API_URL", "").strip()
    if not url:
        log.error("DEVCADE_API_URL is not set")
        raise ConfigError("DEVCADE_API_URL is not set")
    return url.rstrip("/")


def http_timeout() -> float:
    raw = os.environ.get("ONBOARD_HTTP_TIMEOUT", "")
    try:
        return float(raw) if raw else DEFAULT_HTTP_TIMEOUT
    except ValueError:
        raise ConfigError(f"ONBOARD_HTTP_TIMEOUT is not a number: {raw!r}")


def launch_cooldown() -> float:
    """Delay after a game exits, in seconds."""
    raw = os.environ.get("ONBOARD_LAUNCH_COOLDOWN_MS", "")
    try:
        ms = int(raw) if raw else DEFAULT_COOLDOWN_MS
    except ValueError:
        raise ConfigError(f"ONBOARD_LAUNCH_COOLDOWN_MS is not an integer: {raw!r}")
    return max(ms, 0) / 1000.0
