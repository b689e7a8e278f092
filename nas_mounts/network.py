"""Reachability checks for the NAS.

Reachability is defined by the SMB port itself rather than ICMP, which
firewalls often drop while the SMB port has to be open anyway.
"""

from __future__ import annotations

import socket
import time
from logging import Logger
from typing import Callable, Optional


def probe_tcp(host: str, port: int, timeout: float) -> bool:
    """Return True if a TCP connection to host:port succeeds within timeout."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def wait_for_reachable(
    host: str,
    port: int = 445,
    max_attempts: int = 30,
    poll_interval: float = 2.0,
    probe_timeout: float = 1.0,
    logger: Optional[Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll host:port until it accepts a connection.

    Each probe has its own timeout, so the total wait is bounded by roughly
    max_attempts * (probe_timeout + poll_interval).

    Returns:
        True on the first successful probe, False after max_attempts failures
    """
    for attempt in range(1, max_attempts + 1):
        if probe_tcp(host, port, probe_timeout):
            if logger and attempt > 1:
                logger.info(f"NAS reachable after {attempt} attempts")
            return True
        if attempt < max_attempts:
            sleep(poll_interval)

    if logger:
        logger.warning(f"NAS not reachable after {max_attempts} attempts")
    return False
