"""Enumerate the shares a NAS advertises, using smbclient."""

from __future__ import annotations

import subprocess
from logging import Logger
from typing import Optional

from nas_mounts.config import MonitorConfig
from nas_mounts.logging_utils import log_subprocess_result

# Windows/Samba mark hidden and administrative shares (IPC$, C$, ADMIN$) with '$'.
# Any share containing it is filtered, including a user share that happens to.
HIDDEN_SHARE_MARKER = "$"
DISK_SHARE_TYPE = "Disk"


class ShareListError(RuntimeError):
    """Raised when the NAS share list cannot be retrieved."""

    def __init__(self, message: str, returncode: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.detail = detail


def is_hidden_share(name: str) -> bool:
    """Check whether a share name carries the hidden/admin share marker."""
    return HIDDEN_SHARE_MARKER in name


def parse_share_listing(output: str) -> list[str]:
    """Parse `smbclient -L -g` output into sorted visible disk share names.

    The grepable format prints one `Type|Name|Comment` line per share,
    mixed with workgroup and server lines which are skipped.
    """
    shares = set()
    for line in output.splitlines():
        fields = line.split('|')
        if len(fields) < 2 or fields[0] != DISK_SHARE_TYPE:
            continue
        name = fields[1]
        if not name or is_hidden_share(name):
            continue
        shares.add(name)
    return sorted(shares)


class SmbShareLister:
    """Lists the shares currently exposed by the NAS."""

    def __init__(self, config: MonitorConfig, logger: Optional[Logger] = None):
        self.config = config
        self.logger = logger

    def build_command(self) -> list[str]:
        return ["smbclient", "-L", self.config.nas_host, "-A", self.config.credentials_file, "-g"]

    def list_available(self) -> list[str]:
        """Return the sorted non-administrative disk shares on the NAS.

        An empty list means smbclient succeeded but reported no shares.

        Raises:
            ShareListError: On authentication, network or execution failures
        """
        command = self.build_command()
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.listing_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ShareListError(f"smbclient timed out after {self.config.listing_timeout}s") from e
        except OSError as e:
            raise ShareListError(f"Failed to run smbclient: {e}") from e

        if result.returncode != 0:
            if self.logger:
                log_subprocess_result(self.logger, f"Listing shares on {self.config.nas_host}", result)
            raise ShareListError(
                f"smbclient failed (exit {result.returncode})",
                returncode=result.returncode,
                detail=(result.stderr or "").strip(),
            )

        # stderr carries SMB negotiation chatter even on success; keep it out of the share list
        if result.stderr and self.logger:
            self.logger.debug(f"smbclient stderr: {result.stderr.strip()}")

        return parse_share_listing(result.stdout)
