"""Environment-driven defaults, resolved at call time."""

import logging
import math
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SENSITIVITY = 20.0
DEFAULT_FRAME_INTERVAL_S = 5.0


def _env_float(name: str, default: float) -> float | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default
    return value


def get_default_sensitivity() -> float:
    """Return the scene-detection sensitivity (percent), honouring STORYCLIP_SENSITIVITY.

    Values outside 0-100 fall back to the default.
    """
    value = _env_float("STORYCLIP_SENSITIVITY", DEFAULT_SENSITIVITY)
    if value is None:
        return DEFAULT_SENSITIVITY
    if not 0.0 <= value <= 100.0:
        logger.warning(
            "Ignoring STORYCLIP_SENSITIVITY=%s: must be between 0 and 100, using %s",
            value,
            DEFAULT_SENSITIVITY,
        )
        return DEFAULT_SENSITIVITY
    return value


def get_default_frame_interval() -> float:
    """Return the uniform extraction interval in seconds, honouring STORYCLIP_FRAME_INTERVAL."""
    value = _env_float("STORYCLIP_FRAME_INTERVAL", DEFAULT_FRAME_INTERVAL_S)
    if value is None:
        return DEFAULT_FRAME_INTERVAL_S
    if value <= 0:
        logger.warning(
            "Ignoring STORYCLIP_FRAME_INTERVAL=%s: must be positive, using %s",
            value,
            DEFAULT_FRAME_INTERVAL_S,
        )
        return DEFAULT_FRAME_INTERVAL_S
    return value


def get_home_dir() -> Path:
    """Return the StoryClip state directory.

    Respects the STORYCLIP_HOME environment variable.
    Falls back to ~/.storyclip when the variable is not set.
    """
    env_val = os.environ.get("STORYCLIP_HOME")
    if env_val is not None:
        return Path(env_val).expanduser().resolve()
    return Path.home() / ".storyclip"
