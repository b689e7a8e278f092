"""Helpers for the autofs on-demand mounts of NAS shares."""

from __future__ import annotations

import os
import subprocess
from logging import Logger
from typing import Iterable, Optional


def is_share_mounted(path: str) -> bool:
    """Check if a share's mount path is currently mounted."""
    return os.path.ismount(path)


def touch_mount(path: str, timeout: float) -> bool:
    """Access a mount path so autofs mounts it.

    The directory is listed by a child process so a hung CIFS mount only
    costs `timeout` seconds instead of blocking this process.

    Returns:
        True if the path could be listed within the timeout
    """
    try:
        result = subprocess.run(
            ["ls", "-A", path],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0


def touch_configured_mounts(
    mount_root: str,
    shares: Iterable[str],
    timeout: float,
    logger: Optional[Logger] = None
) -> dict[str, bool]:
    """Touch the mount path of every share. Failures are only logged at debug level.

    Returns:
        Dict mapping share name to whether the touch succeeded
    """
    results: dict[str, bool] = {}
    for share in shares:
        path = os.path.join(mount_root, share)
        results[share] = touch_mount(path, timeout)
        if logger and not results[share]:
            logger.debug(f"Could not access {path}")
    return results
