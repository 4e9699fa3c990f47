# Area: Runner
"""
tictactoe_lan.cli - Command-line interface
==========================================

Provides the CLI entry point for playing from a terminal.

Usage:
    tictactoe-lan                          # start at the main menu
    tictactoe-lan --hotseat                # two players, one terminal
    tictactoe-lan --host                   # host and wait for a client
    tictactoe-lan --connect 192.168.1.10   # join a host directly
    python -m tictactoe_lan --config config.json --protocol-log

Configuration is read from the JSON file given with --config, then from
a .env file and the environment (TICTACTOE_* variables); command-line
flags win over both.
"""

import argparse
import sys
from typing import List, Optional

from .config import load_config, validate_config
from .console import ConsoleFrontend
from .errors import ConfigError, InvalidTransitionError
from .runner import GameRunner


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tictactoe-lan",
        description="Two-player tic-tac-toe over the local network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tictactoe-lan --hotseat
  tictactoe-lan --host --protocol-log
  tictactoe-lan --connect 192.168.1.10
  TICTACTOE_GAME_PORT=5001 tictactoe-lan --host
        """,
    )

    parser.add_argument("--config", type=str, help="Path to JSON config file")
    parser.add_argument("--log-file", type=str, help="JSON-lines log file ('' disables)")
    parser.add_argument("--log-level", type=str, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--protocol-log",
        action="store_true",
        help="Print one line per replicated fact and pick request",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--hotseat", action="store_true", help="Start a local two-player game")
    mode.add_argument("--host", action="store_true", help="Host a game on this machine")
    mode.add_argument(
        "--connect",
        nargs="?",
        const="",
        metavar="ADDR",
        help="Join the host at ADDR (defaults to the configured host address)",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        if args.log_file is not None:
            config.log_file = args.log_file
        if args.log_level is not None:
            config.log_level = args.log_level
        if args.protocol_log:
            config.protocol_log = True
        validate_config(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    runner = GameRunner(config, frontend=ConsoleFrontend())
    controller = runner.controller

    try:
        if args.hotseat:
            controller.start_hotseat()
        elif args.host:
            controller.host_game()
        elif args.connect is not None:
            controller.join_game()
            address = args.connect or config.host_address
            if not controller.submit_address(address):
                print(f"Error: not a valid address: {address}", file=sys.stderr)
                controller.shutdown()
                return 2
    except InvalidTransitionError as e:
        print(f"Error: {e}", file=sys.stderr)
        controller.shutdown()
        return 1

    runner.run()
    return 0
