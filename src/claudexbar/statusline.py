#!/usr/bin/env python3

import argparse
import json
import sys

from typing import NoReturn, Optional

from .cli.commands import apply_toggle_then_provider, cmd_doctor, cmd_select_provider
from .orchestrator import Orchestrator
from .renderer import render_error
from .types import PROVIDERS, Payload
from .utils.debug import debug_log


class ArgumentParseError(Exception):
    """Raised instead of exiting when the command line cannot be parsed."""


class LenientArgumentParser(argparse.ArgumentParser):
    """Parser that never exits on bad input; the bar must always get a payload."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentParseError(message)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured argument parser
    """
    from . import __version__

    parser = LenientArgumentParser(
        prog="claudexbar",
        description="Claude / Codex usage meter for Waybar",
        epilog="When no arguments are provided, prints the status-bar JSON for the current provider.",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--toggle",
        action="store_true",
        help="Switch to the other provider and refresh the bar",
    )
    parser.add_argument(
        "--provider",
        nargs="?",
        default=None,
        metavar="{" + ",".join(PROVIDERS) + "}",
        help="Select a provider and refresh the bar",
    )
    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Check credentials, the codex binary and configuration",
    )
    return parser


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse known options; unknown or malformed arguments are ignored.

    Returns:
        Parsed namespace (all defaults when the command line is unusable)
    """
    parser = create_argument_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except ArgumentParseError as e:
        debug_log(f"Ignoring malformed arguments {argv}: {e}")
        return parser.parse_args([])

    if unknown:
        debug_log(f"Ignoring unrecognized arguments: {unknown}")
    return args


def parse_provider(value: Optional[str]) -> Optional[str]:
    """Accept only known provider names; anything else is ignored."""
    return value if value in PROVIDERS else None


def emit(payload: Payload) -> None:
    # ASCII escapes keep the line printable under any locale encoding.
    print(json.dumps(payload.to_dict()))


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    if args.doctor:
        sys.exit(cmd_doctor())

    provider = parse_provider(args.provider)
    if args.toggle and provider is not None:
        apply_toggle_then_provider(provider)
    elif args.toggle or provider is not None:
        exit_code = cmd_select_provider(provider=provider)
        if exit_code:
            sys.exit(exit_code)
        return

    try:
        payload = Orchestrator().run()
    except Exception as e:
        payload = render_error(f"Unexpected error: {e}")
    emit(payload)


if __name__ == "__main__":
    main()
