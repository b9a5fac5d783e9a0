"""
Configuration for MedConnect clients

Defaults live in DEFAULT_SETTINGS. Each key can be overridden through an
environment variable named MEDCONNECT_<KEY> (upper case). Values are parsed
to the type of the default.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

# =============================================================================
# DEFAULT SETTINGS
# Fallback values when no environment override is set
# =============================================================================

DEFAULT_SETTINGS = {
    # Backend
    "api_url": "http://localhost:5000/api",
    "request_timeout": 10.0,        # seconds per request

    # Reports
    "logo_source": "",              # file path or http(s) URL, empty = placeholder
    "logo_timeout": 5.0,            # seconds before the placeholder logo is drawn
    "output_dir": ".",
    "generated_by": "Admin User",

    # Notifications
    "notification_interval": 30.0,  # seconds between polls

    # Client session blob
    "session_file": str(Path.home() / ".medconnect" / "session.json"),

    # Logging
    "log_level": "INFO",
}

ENV_PREFIX = "MEDCONNECT_"


def get_settings(environ: Optional[dict] = None) -> dict:
    """
    Load settings, merging environment overrides over the defaults.

    Args:
        environ: Mapping to read overrides from (default: os.environ)

    Returns:
        Complete settings dict
    """
    environ = os.environ if environ is None else environ
    settings = dict(DEFAULT_SETTINGS)

    for key, default in DEFAULT_SETTINGS.items():
        raw = environ.get(f"{ENV_PREFIX}{key.upper()}")
        if raw is None or raw == "":
            continue
        settings[key] = _parse_value(raw, default)

    settings["api_url"] = settings["api_url"].rstrip("/")
    return settings


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the root logger."""
    level_name = (level or get_settings()["log_level"]).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_value(value: str, default: Any) -> Any:
    """Parse an override string to the type of its default."""
    if isinstance(default, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(default, float):
        try:
            return float(value)
        except ValueError:
            return default
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            return default
    return value
