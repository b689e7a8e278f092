"""Runtime configuration for the NAS share monitor.

The configuration is read once at process start and passed explicitly to
every collaborator (lister, config reader, notifier, reconciler).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, asdict
from typing import Optional, Any

from nas_mounts.validators import validate_host

DEFAULT_CONFIG_FILE = "/etc/nas-mounts/monitor.json"
CONFIG_ENV_VAR = "NAS_MONITOR_CONFIG"

DEFAULT_CREDENTIALS_FILE = "/etc/samba/creds-mainstorage"
DEFAULT_AUTOFS_MAP = "/etc/autofs/nas.autofs"
DEFAULT_MOUNT_ROOT = "/mnt/nas"

SMB_PORT = 445
LOG_MAX_BYTES = 100 * 1024
LOG_TAIL_LINES = 500
NOTIFICATION_TIMEOUT_MS = 30000

FINGERPRINT_FILE_NAME = "nas-share-check-notified"
LOG_FILE_NAME = "nas-share-monitor.log"
LOCK_FILE_NAME = "nas-share-monitor.lock"


class ConfigError(ValueError):
    """Raised when the monitor configuration is missing or invalid."""


def default_cache_dir() -> str:
    """Return the per-user cache directory (XDG_CACHE_HOME or ~/.cache)."""
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return xdg_cache
    return os.path.join(os.path.expanduser("~"), ".cache")


@dataclass
class MonitorConfig:
    """Configuration for one share monitor process.

    Attributes:
        nas_host: IP address or hostname of the NAS
        credentials_file: smbclient authentication file (-A format)
        autofs_map: Autofs indirect map listing the configured shares
        mount_root: Directory under which autofs mounts each share
        cache_dir: Directory holding the log, lock and fingerprint files
        smb_port: TCP port probed for reachability
        probe_timeout: Seconds allowed for a single reachability probe
        max_attempts: Reachability probes before giving up
        poll_interval: Seconds between failed reachability probes
        listing_timeout: Seconds allowed for the share listing call
        touch_timeout: Seconds allowed for touching one mount path
        log_max_bytes: Log size that triggers tail truncation
        log_tail_lines: Lines kept after tail truncation
        notification_timeout_ms: Desktop notification display time
        timezone: Optional timezone name for log timestamps
    """
    nas_host: str
    credentials_file: str = DEFAULT_CREDENTIALS_FILE
    autofs_map: str = DEFAULT_AUTOFS_MAP
    mount_root: str = DEFAULT_MOUNT_ROOT
    cache_dir: str = ""
    smb_port: int = SMB_PORT
    probe_timeout: float = 1.0
    max_attempts: int = 30
    poll_interval: float = 2.0
    listing_timeout: float = 30.0
    touch_timeout: float = 5.0
    log_max_bytes: int = LOG_MAX_BYTES
    log_tail_lines: int = LOG_TAIL_LINES
    notification_timeout_ms: int = NOTIFICATION_TIMEOUT_MS
    timezone: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.cache_dir:
            self.cache_dir = default_cache_dir()

    @property
    def fingerprint_file(self) -> str:
        return os.path.join(self.cache_dir, FINGERPRINT_FILE_NAME)

    @property
    def log_file(self) -> str:
        return os.path.join(self.cache_dir, LOG_FILE_NAME)

    @property
    def lock_file(self) -> str:
        return os.path.join(self.cache_dir, LOCK_FILE_NAME)

    def share_mount_path(self, share: str) -> str:
        """Return the on-demand mount path for a share."""
        return os.path.join(self.mount_root, share)

    def ensure_cache_dir(self) -> None:
        """Create the cache directory if it is missing.

        Raises:
            OSError: If the directory cannot be created
        """
        os.makedirs(self.cache_dir, exist_ok=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MonitorConfig":
        """Create MonitorConfig from a dictionary (loaded from JSON).

        Unknown keys are ignored so older tools can read newer files.

        Raises:
            ConfigError: If nas_host is missing or invalid, or a value has the wrong type
        """
        nas_host = data.get("nas_host")
        if not nas_host or not isinstance(nas_host, str):
            raise ConfigError("nas_host is required")
        if not validate_host(nas_host):
            raise ConfigError(f"Invalid nas_host: {nas_host!r}")

        known = {name for name in cls.__dataclass_fields__}
        kwargs = {key: value for key, value in data.items() if key in known}
        try:
            config = cls(**kwargs)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        for name in ("max_attempts", "log_max_bytes", "log_tail_lines", "notification_timeout_ms"):
            value = getattr(config, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in ("probe_timeout", "poll_interval", "listing_timeout", "touch_timeout"):
            value = getattr(config, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"{name} must be a non-negative number, got {value!r}")
        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def resolve_config_path(path: Optional[str] = None) -> str:
    """Pick the config file: explicit path, then environment, then default."""
    if path:
        return path
    return os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE


def load_monitor_config(path: Optional[str] = None) -> MonitorConfig:
    """Load the monitor configuration from a JSON file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    config_path = resolve_config_path(path)
    if not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Failed to load configuration {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {config_path}, got {type(data).__name__}")

    return MonitorConfig.from_dict(data)
