#!/usr/bin/env python3
"""Show the NAS share configuration next to the shares available on the NAS.

Prints the shares configured in the autofs map with their mount state, the
shares the NAS currently advertises, and how to edit the map.
"""

from __future__ import annotations

import os
import sys
from typing import Optional

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from nas_mounts.arg_parser import create_tool_argument_parser, parse_tool_args, show_manual
from nas_mounts.config import ConfigError, MonitorConfig, load_monitor_config
from nas_mounts.mount_utils import is_share_mounted
from nas_mounts.share_config import ShareConfigReader, format_map_entry
from nas_mounts.share_lister import ShareListError, SmbShareLister

PROG = "nas-share-edit"
EXAMPLE_SHARE = "ShareName"

MANUAL = """\
NAME
    nas-share-edit - View and edit NAS share configuration

SYNOPSIS
    nas-share-edit [OPTION]

DESCRIPTION
    Displays the currently configured NAS shares alongside the shares
    actually available on the NAS. Provides instructions for adding
    or removing shares from the configuration.

OPTIONS
    -h, --help
        Display brief usage information and exit.

    -m, --man
        Display this detailed manual page and exit.

    -v, --version
        Display version information and exit.

    --config PATH
        Read the configuration from PATH.

OUTPUT
    1. Currently configured shares (from the autofs map) and mount state
    2. Shares available on the NAS (via smbclient)
    3. Instructions for editing the configuration
    4. Example entry format with the current UID/GID

EDITING SHARES
    To add a share, add a line in the format shown by nas-share-edit to the
    autofs map and run: sudo systemctl restart autofs

    To remove a share, delete or comment out its line and restart autofs.

SEE ALSO
    nas-share-monitor(1), autofs(5)
"""


def print_configured_shares(config: MonitorConfig, configured: list[str]) -> None:
    print("Currently configured shares:")
    if not configured:
        print("  (none)")
    for share in configured:
        state = "mounted" if is_share_mounted(config.share_mount_path(share)) else "not mounted"
        print(f"  • {share} ({state})")


def print_available_shares(config: MonitorConfig, configured: list[str]) -> bool:
    """Print the shares on the NAS. Returns False if they could not be listed."""
    print("Shares available on NAS:")
    try:
        available = SmbShareLister(config).list_available()
    except ShareListError as e:
        print(f"  (ERROR: Could not connect to NAS - {e})")
        if e.detail:
            print(f"  Output: {e.detail}")
        print("  Check network connectivity and credentials file.")
        return False

    if not available:
        print("  (none - check credentials)")
    for share in available:
        suffix = "" if share in configured else "  [not configured]"
        print(f"  • {share}{suffix}")
    return True


def print_edit_instructions(config: MonitorConfig) -> None:
    print("To edit, run:")
    print(f"  sudo nano {config.autofs_map}")
    print("")
    print("After editing, restart autofs:")
    print("  sudo systemctl restart autofs")
    print("")
    print("Entry format (use your actual UID/GID):")
    print(f"  {format_map_entry(EXAMPLE_SHARE, config, os.getuid(), os.getgid())}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_tool_argument_parser(
        PROG,
        "View NAS share configuration and available shares on the NAS.\n\n"
        "Without options, displays current configuration and available shares.",
    )
    args = parse_tool_args(parser, argv)

    if args.man:
        show_manual(MANUAL)
        return 0

    try:
        config = load_monitor_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configured = ShareConfigReader(config).list_configured()

    print("=== NAS Share Configuration ===")
    print("")
    print_configured_shares(config, configured)
    print("")
    print_available_shares(config, configured)
    print("")
    print_edit_instructions(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
