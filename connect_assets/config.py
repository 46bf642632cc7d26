"""
Configuration loading for the command-line client.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .poller import DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_ASSET_UPLOAD_TIMEOUT = 10 * 60.0
MIN_POLLS_PER_UPLOAD = 5


@dataclass
class ClientConfig:
    """Settings for talking to the API and waiting on uploads."""
    base_url: str = DEFAULT_BASE_URL
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT
    upload_timeout: float = DEFAULT_ASSET_UPLOAD_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self):
        """Validate the configuration."""
        for name in ("timeout", "upload_timeout", "poll_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.upload_timeout < self.poll_interval * MIN_POLLS_PER_UPLOAD:
            raise ValueError(
                f"upload_timeout ({self.upload_timeout}s) must allow at least "
                f"{MIN_POLLS_PER_UPLOAD} polls of {self.poll_interval}s"
            )


def load_config_file(config_file: Optional[Path] = None) -> dict:
    """Load configuration from a JSON file.

    Args:
        config_file: Path to config file

    Returns:
        Dictionary of configuration values
    """
    if not config_file:
        return {}

    try:
        with open(config_file) as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading config file: {e}")
        return {}


def _seconds(value, name: str) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number of seconds, got {value!r}")
    if seconds <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return seconds


def load_config(config_file: Optional[Path] = None,
                environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """Build the client configuration from a config file and the environment.

    Environment variables take precedence over the file.

    Args:
        config_file: Optional JSON config file
        environ: Environment mapping, defaults to os.environ

    Returns:
        Validated ClientConfig
    """
    environ = os.environ if environ is None else environ
    values = load_config_file(config_file)

    overrides = {
        "base_url": environ.get("ASC_BASE_URL"),
        "token": environ.get("ASC_TOKEN"),
        "timeout": environ.get("ASC_TIMEOUT_SECONDS"),
        "upload_timeout": environ.get("ASC_UPLOAD_TIMEOUT_SECONDS"),
        "poll_interval": environ.get("ASC_POLL_INTERVAL_SECONDS"),
    }
    values.update({k: v for k, v in overrides.items() if v})

    return ClientConfig(
        base_url=values.get("base_url") or DEFAULT_BASE_URL,
        token=values.get("token") or "",
        timeout=_seconds(values.get("timeout", DEFAULT_TIMEOUT), "timeout"),
        upload_timeout=_seconds(
            values.get("upload_timeout", DEFAULT_ASSET_UPLOAD_TIMEOUT), "upload_timeout"
        ),
        poll_interval=_seconds(values.get("poll_interval", DEFAULT_POLL_INTERVAL), "poll_interval"),
    )
