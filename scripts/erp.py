#!/usr/bin/env python3
"""
ERPNext terminal client

Keyboard-driven front-end for an ERPNext backend.

Usage:
    erp.py                 Launch the interactive TUI
    erp.py ping            Probe the backend and print the logged-in user
    erp.py config          Print the effective configuration (secrets masked)
    erp.py version         Print the version

Configuration is read from .erp-config (see .erp-config.example); environment
variables of the same names override it.

Requirements:
    pip install textual requests
"""

import argparse
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from erptui import __version__  # noqa: E402
from erptui.config import Config, ConfigError, load_config  # noqa: E402
from erptui.log import DEFAULT_LEVEL, setup_logging  # noqa: E402

COMMANDS = ("tui", "ping", "config", "version")


def print_config(config: Config) -> int:
    for label, value in config.masked().items():
        print(f"{label + ':':<14} {value}")
    return 0


def ping(config: Config) -> int:
    """Probe the backend and report which route answered."""
    from erptui.gateway import Gateway, GatewayError

    gateway = Gateway(config)
    try:
        connection = gateway.detect_connection()
    except GatewayError as e:
        print(f"Connection failed: {e}")
        return 1

    mode = "VPN" if connection.mode == "vpn" else "Internet"
    print(f"Connected via {mode}: {connection.url}")
    print(f"Logged in as: {connection.user or 'unknown'}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="ERPNext terminal client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="tui",
        choices=COMMANDS,
        help="What to run (default: tui)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: search for .erp-config)",
    )
    parser.add_argument(
        "--log-level",
        default=DEFAULT_LEVEL,
        help=f"Log level for the log file (default: {DEFAULT_LEVEL})",
    )

    args = parser.parse_args()

    if args.command == "version":
        print(f"erptui {__version__}")
        return 0

    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.command == "config":
        return print_config(config)

    if args.command == "ping":
        return ping(config)

    from erptui.app import run

    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
