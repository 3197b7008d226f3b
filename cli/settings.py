"""Settings command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from settings import get_settings_path, load_settings, save_settings, update_setting

logger = logging.getLogger(__name__)


def settings_path(args: argparse.Namespace) -> Path:
    """Settings file chosen with --settings, or the default location."""
    path = getattr(args, "settings", None)
    return Path(path) if path else get_settings_path()


def add_settings_subparser(subparsers: argparse._SubParsersAction) -> None:
    settings_parser = subparsers.add_parser(
        "settings",
        help="Show or change persisted settings",
    )
    settings_subparsers = settings_parser.add_subparsers(
        dest="settings_command",
        help="Settings command",
    )

    settings_show = settings_subparsers.add_parser(
        "show",
        help="Print the effective settings as JSON",
    )
    settings_show.set_defaults(_cmd=cmd_settings_show)

    settings_set = settings_subparsers.add_parser(
        "set",
        help="Change one setting (e.g. default_folder, preprocessing.contrast)",
    )
    settings_set.add_argument("key", help="Setting name, dotted for preprocessing fields")
    settings_set.add_argument("value", help="New value")
    settings_set.set_defaults(_cmd=cmd_settings_set)

    settings_parser.set_defaults(_settings_parser=settings_parser)


def cmd_settings_show(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(settings_path(args))
    except ValueError as e:
        logger.error("Could not read settings: %s", e)
        return 1
    json.dump(settings.model_dump(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_settings_set(args: argparse.Namespace) -> int:
    path = settings_path(args)
    try:
        settings = update_setting(load_settings(path), args.key, args.value)
    except KeyError:
        logger.error("Unknown setting: %s", args.key)
        return 1
    except ValueError as e:
        logger.error("Invalid value for %s: %s", args.key, e)
        return 1

    try:
        settings.preprocessing.to_config().validate()
    except ValueError as e:
        logger.error("Rejected: %s", e)
        return 1

    save_settings(settings, path)
    logger.info("Set %s = %s", args.key, args.value)
    return 0
