#!/usr/bin/env python3
"""
Unified CLI for image-to-note OCR.

Usage:
    ocrnote preprocess <src> <out>     # Preprocess an image (or a directory) to PNG
    ocrnote preview <src> <out>        # Down-scaled, unmodified preview PNG
    ocrnote convert <image>            # Preprocess, recognize and write a markdown note
    ocrnote convert <image> --print    # Print the recognized text only
    ocrnote settings show              # Print the persisted settings
    ocrnote settings set <key> <value> # Change one setting
"""

import argparse
import logging
import sys

from logging_utils import configure_logging, add_logging_args
from cli.convert import add_convert_subparser
from cli.preprocess import add_preprocess_subparser
from cli.settings import add_settings_subparser

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ocrnote",
        description="Image to note - preprocess photographed text and recognize it",
    )
    add_logging_args(parser)
    parser.add_argument(
        "--settings",
        metavar="PATH",
        help="Settings file (default: ~/.ocrnote.json)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_preprocess_subparser(subparsers)
    add_convert_subparser(subparsers)
    add_settings_subparser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        configure_logging(args.log_level, args.verbose, args.quiet)
    except ValueError as e:
        parser.error(str(e))

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "settings" and args.settings_command is None:
        args._settings_parser.print_help()
        return 1

    cmd = getattr(args, "_cmd", None)
    if cmd is None:
        parser.print_help()
        return 1
    return cmd(args)


if __name__ == "__main__":
    sys.exit(main())
