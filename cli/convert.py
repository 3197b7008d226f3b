"""Convert command: image to markdown note via preprocessing and OCR."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import config
from notes import NoteExistsError, create_note, parse_metadata_pairs, today
from preprocessing import PreprocessError
from recognition import RecognitionError, available_backends, get_recognizer, read_text
from settings import load_settings

from .preprocess import add_preprocess_args, config_from_args
from .settings import settings_path

logger = logging.getLogger(__name__)


def add_convert_subparser(subparsers: argparse._SubParsersAction) -> None:
    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert an image to a note (preprocess, recognize, write markdown)",
    )
    convert_parser.add_argument("image", help="Image file to recognize")
    convert_parser.add_argument(
        "--title",
        default=config.DEFAULT_NOTE_TITLE,
        help=f"Note title (default: {config.DEFAULT_NOTE_TITLE!r})",
    )
    convert_parser.add_argument("--date", default=None, help="Note date (default: today)")
    convert_parser.add_argument(
        "--meta",
        action="append",
        metavar="KEY=VALUE",
        help="Extra frontmatter field (repeatable)",
    )
    convert_parser.add_argument(
        "--folder",
        default=None,
        help="Folder inside the vault (default: settings default_folder)",
    )
    convert_parser.add_argument(
        "--vault",
        default=".",
        help="Vault root directory (default: current directory)",
    )
    convert_parser.add_argument(
        "--recognizer",
        choices=available_backends(),
        default=None,
        help="Text recognition backend (default: from settings)",
    )
    convert_parser.add_argument("--lang", default=None, help="Recognition language code")
    convert_parser.add_argument("--psm", type=int, default=None, help="Page segmentation mode")
    convert_parser.add_argument("--oem", type=int, default=None, help="OCR engine mode")
    convert_parser.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print the recognized text instead of writing a note",
    )
    convert_parser.add_argument(
        "--artifacts",
        metavar="DIR",
        help="Save every intermediate preprocessing step as PNG under DIR",
    )
    add_preprocess_args(convert_parser)
    convert_parser.set_defaults(_cmd=cmd_convert)


def cmd_convert(args: argparse.Namespace) -> int:
    image_path = Path(args.image)
    if not image_path.is_file():
        logger.error("Image not found: %s", image_path)
        return 1

    try:
        settings = load_settings(settings_path(args))
        preprocess_config = config_from_args(args)
        metadata = parse_metadata_pairs(args.meta)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    logger.info("Processing image with OCR...")
    try:
        recognizer = get_recognizer(args.recognizer or settings.recognizer)
        result = read_text(
            recognizer,
            image_path.read_bytes(),
            preprocess_config,
            language=args.lang or settings.language,
            page_seg_mode=args.psm if args.psm is not None else settings.page_seg_mode,
            engine_mode=args.oem if args.oem is not None else settings.engine_mode,
            artifact_dir=args.artifacts,
        )
    except (PreprocessError, RecognitionError, ValueError) as e:
        logger.error("OCR processing failed: %s", e)
        return 1

    if args.print_only:
        sys.stdout.write(result.text)
        return 0

    folder = args.folder if args.folder is not None else settings.default_folder
    try:
        path = create_note(
            Path(args.vault),
            folder,
            args.title,
            args.date or today(),
            metadata,
            result.text,
        )
    except NoteExistsError as e:
        logger.error("%s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid folder: %s", e)
        return 1
    except OSError as e:
        logger.error("Failed to create note: %s", e)
        return 1

    logger.info("Note created: %s", path)
    return 0
