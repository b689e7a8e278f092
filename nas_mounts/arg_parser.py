#!/usr/bin/env python3

from __future__ import annotations

import argparse
import pydoc
from typing import Optional

import argcomplete

from nas_mounts import __version__
from nas_mounts.config import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE


def create_tool_argument_parser(
    prog: str,
    description: str,
    epilog: Optional[str] = None
) -> argparse.ArgumentParser:
    """Create the parser shared by the nas-share-* tools.

    The tools take no positional arguments; anything unrecognized is a usage
    error and argparse exits with status 2 before any work is done.
    """
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-m", "--man", action="store_true",
                       help="Show detailed manual page and exit")
    parser.add_argument("-v", "--version", action="version",
                       version=f"{prog} version {__version__}",
                       help="Show version information and exit")
    parser.add_argument("--config", metavar="PATH", default=None,
                       help=f"Configuration file (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_FILE})")
    return parser


def parse_tool_args(parser: argparse.ArgumentParser, argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Enable shell completion, then parse the command line."""
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)


def show_manual(text: str) -> None:
    """Display a manual page through $PAGER when attached to a terminal."""
    pydoc.pager(text)
