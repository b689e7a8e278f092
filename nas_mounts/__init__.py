"""nas_mounts - Share mismatch monitoring for autofs-mounted NAS shares."""

from __future__ import annotations

__version__ = "1.1.1"

from .config import MonitorConfig, ConfigError, load_monitor_config
from .reconciler import ShareReconciler, MismatchReport, ReconcileResult, compare_shares
from .run_guard import RunGuard
from .validators import validate_host, validate_ip_address, validate_share_name

__all__ = [
    "__version__",
    "MonitorConfig",
    "ConfigError",
    "load_monitor_config",
    "ShareReconciler",
    "MismatchReport",
    "ReconcileResult",
    "compare_shares",
    "RunGuard",
    "validate_host",
    "validate_ip_address",
    "validate_share_name",
]
