#!/usr/bin/env python3
"""Check for mismatches between configured NAS shares and the shares on the NAS.

This script is run by a systemd user timer (shortly after login and daily)
and can also be run manually. It uses file locking so a timer run and a
manual run never overlap.

Exit codes:
  0 - Check completed (including no mismatch, an already reported mismatch,
      or another instance already running)
  1 - NAS unreachable, share listing failed, or NAS returned no shares
  2 - Invalid command line
"""

from __future__ import annotations

import os
import sys
from typing import Optional

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from nas_mounts.arg_parser import create_tool_argument_parser, parse_tool_args, show_manual
from nas_mounts.config import ConfigError, load_monitor_config
from nas_mounts.logging_utils import get_monitor_logger
from nas_mounts.reconciler import EXIT_FAILURE, EXIT_OK, ShareReconciler
from nas_mounts.run_guard import RunGuard

PROG = "nas-share-monitor"
LOGGER_NAME = "nas-share-monitor"

MANUAL = """\
NAME
    nas-share-monitor - Check for NAS share configuration mismatches

SYNOPSIS
    nas-share-monitor [OPTION]

DESCRIPTION
    Compares the shares configured in the autofs map against the actual
    shares available on the NAS. Sends desktop notifications when:

    • A configured share doesn't exist on the NAS (typo or removed share)
    • A share exists on the NAS but isn't configured (new share available)

    The check is designed to run automatically via a systemd user timer
    (at login and daily), but can also be run manually.

OPTIONS
    -h, --help
        Display brief usage information and exit.

    -m, --man
        Display this detailed manual page and exit.

    -v, --version
        Display version information and exit.

    --config PATH
        Read the configuration from PATH instead of $NAS_MONITOR_CONFIG
        or /etc/nas-mounts/monitor.json.

BEHAVIOR
    1. Waits for the NAS SMB port to accept connections (about 60 seconds)
    2. Lists configured shares from the autofs map
    3. Lists actual shares from the NAS (via smbclient)
    4. Compares the two lists
    5. Sends a desktop notification if the differences are new
    6. Triggers mounting of all configured shares

    Notifications are de-duplicated using a state hash stored in:
        ~/.cache/nas-share-check-notified

    To force re-notification, delete this file.

FILES
    ~/.cache/nas-share-monitor.log
        Log file (truncated to its last 500 lines above 100KB)

    ~/.cache/nas-share-monitor.lock
        Lock file preventing concurrent runs

    ~/.cache/nas-share-check-notified
        Hash of last mismatch state

EXIT STATUS
    0   Success (or no changes from last check)
    1   NAS unreachable or authentication failed
    2   Invalid command line

SEE ALSO
    nas-share-edit(1), autofs(5), smbclient(1)
"""


def create_parser():
    return create_tool_argument_parser(
        PROG,
        "Check for mismatches between configured NAS shares and actual shares on the NAS.\n"
        "Sends desktop notifications when differences are found.\n\n"
        "Without options, runs the share check.",
        epilog="Examples:\n"
               "  nas-share-monitor           # Run share check\n"
               "  nas-share-monitor --help    # Show help",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_tool_args(create_parser(), argv)

    if args.man:
        show_manual(MANUAL)
        return EXIT_OK

    try:
        config = load_monitor_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        config.ensure_cache_dir()
    except OSError as e:
        print(f"Error: Failed to create cache directory {config.cache_dir}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    guard = RunGuard(config.lock_file)
    try:
        acquired = guard.acquire()
    except OSError as e:
        print(f"Error: Failed to open lock file {config.lock_file}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if not acquired:
        print("Another instance is already running, exiting.")
        return EXIT_OK

    try:
        logger = get_monitor_logger(LOGGER_NAME, config.log_file, timezone=config.timezone)
        result = ShareReconciler.from_config(config, logger).run()
        return result.exit_code
    finally:
        guard.release()


if __name__ == "__main__":
    sys.exit(main())
