"""Read the shares configured in the autofs map."""

from __future__ import annotations

from logging import Logger
from typing import Optional

from nas_mounts.config import MonitorConfig
from nas_mounts.validators import validate_share_name

# Soft mount with a 10s keepalive so a dead NAS is noticed in ~10-20s
# instead of hanging file managers. SMB version is auto-negotiated.
CIFS_MOUNT_OPTIONS = (
    "iocharset=utf8,nounix,noserverino,file_mode=0664,dir_mode=0775,soft,echo_interval=10"
)


def parse_autofs_map(text: str) -> list[str]:
    """Return the sorted share keys of an autofs indirect map.

    Comment lines (starting with '#') and blank lines are skipped; the key
    is the first whitespace-delimited token of each entry.
    """
    shares = set()
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        shares.add(stripped.split()[0])
    return sorted(shares)


def format_map_entry(share: str, config: MonitorConfig, uid: int, gid: int) -> str:
    """Render the autofs map line for a share.

    Raises:
        ValueError: If the share name is not valid for a map key
    """
    if not validate_share_name(share):
        raise ValueError(
            f"Invalid share name {share!r}: must start with a letter or digit "
            "and contain only letters, digits, '_' or '-'"
        )
    options = (
        f"-fstype=cifs,credentials={config.credentials_file},"
        f"uid={uid},gid={gid},{CIFS_MOUNT_OPTIONS}"
    )
    return f"{share} {options} ://{config.nas_host}/{share}"


class ShareConfigReader:
    """Reads the set of share names the user has configured."""

    def __init__(self, config: MonitorConfig, logger: Optional[Logger] = None):
        self.config = config
        self.logger = logger

    def list_configured(self) -> list[str]:
        """Return configured share names; an unreadable map yields an empty list."""
        try:
            with open(self.config.autofs_map, 'r') as f:
                text = f.read()
        except OSError as e:
            if self.logger:
                self.logger.warning(f"Could not read share map {self.config.autofs_map}: {e}")
            return []
        return parse_autofs_map(text)
