"""Preprocess and preview command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

from tqdm import tqdm

import config
from preprocessing import (
    PreprocessConfig,
    PreprocessError,
    binarize_mode_from_name,
    preprocess_image_bytes,
    render_preview,
)
from settings import load_settings

from .settings import settings_path

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}


def add_preprocess_args(parser: argparse.ArgumentParser) -> None:
    """Flags overriding the stored preprocessing settings for one run."""
    group = parser.add_argument_group("preprocessing (defaults come from settings)")
    group.add_argument(
        "--preprocess",
        dest="enabled",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run the preprocessing block after upscaling",
    )
    group.add_argument(
        "--upscale",
        type=float,
        metavar="FACTOR",
        default=None,
        help="Upscale by FACTOR before preprocessing (1 disables)",
    )
    group.add_argument("--grayscale", action=argparse.BooleanOptionalAction, default=None)
    group.add_argument("--contrast", type=float, default=None, help="0.5-3.0, below 2.59")
    group.add_argument("--brightness", type=float, default=None, help="0.5-2.0")
    group.add_argument("--sharpen", action=argparse.BooleanOptionalAction, default=None)
    group.add_argument("--denoise", action=argparse.BooleanOptionalAction, default=None)
    group.add_argument("--binarize", action=argparse.BooleanOptionalAction, default=None)
    group.add_argument(
        "--mode",
        choices=("fixed", "otsu", "adaptive"),
        default=None,
        help="Binarization mode",
    )
    group.add_argument("--threshold", type=int, default=None, help="Fixed threshold (50-200)")
    group.add_argument("--window", type=int, default=None, help="Adaptive window size (odd, 5-49)")
    group.add_argument(
        "--morph",
        dest="morphological_ops",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Morphological closing after binarization",
    )
    group.add_argument("--kernel", type=int, default=None, help="Closing kernel size (1-5)")
    group.add_argument("--deskew", action=argparse.BooleanOptionalAction, default=None)


def config_from_args(args: argparse.Namespace) -> PreprocessConfig:
    """Stored settings overlaid with any flags given on the command line."""
    stored = load_settings(settings_path(args)).preprocessing
    base = stored.to_config()

    overrides = {}
    for name in ("enabled", "grayscale", "contrast", "brightness", "sharpen",
                 "denoise", "binarize", "morphological_ops", "deskew"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value

    if args.upscale is not None:
        overrides["upscale"] = args.upscale > 1
        overrides["upscale_factor"] = max(args.upscale, 1.0)
    if args.kernel is not None:
        overrides["morph_kernel_size"] = args.kernel

    if args.mode is not None or args.threshold is not None or args.window is not None:
        mode_name = args.mode or stored.binarize_mode
        overrides["binarize_mode"] = binarize_mode_from_name(
            mode_name,
            threshold=args.threshold if args.threshold is not None else stored.binarize_threshold,
            window_size=args.window if args.window is not None else stored.adaptive_window_size,
        )

    return dataclasses.replace(base, **overrides)


def add_preprocess_subparser(subparsers: argparse._SubParsersAction) -> None:
    preprocess_parser = subparsers.add_parser(
        "preprocess",
        help="Preprocess an image file or a directory of images to PNG",
    )
    preprocess_parser.add_argument("source", help="Image file or directory")
    preprocess_parser.add_argument(
        "output",
        help="Output PNG path (file source) or directory (directory source)",
    )
    preprocess_parser.add_argument(
        "--artifacts",
        metavar="DIR",
        help="Save every intermediate step as PNG under DIR",
    )
    add_preprocess_args(preprocess_parser)
    preprocess_parser.set_defaults(_cmd=cmd_preprocess)

    preview_parser = subparsers.add_parser(
        "preview",
        help="Write an unmodified, down-scaled PNG preview of an image",
    )
    preview_parser.add_argument("source", help="Image file")
    preview_parser.add_argument("output", help="Output PNG path")
    preview_parser.add_argument(
        "--max-width",
        type=int,
        default=config.PREVIEW_MAX_WIDTH,
        help=f"Maximum preview width (default: {config.PREVIEW_MAX_WIDTH})",
    )
    preview_parser.set_defaults(_cmd=cmd_preview)


def list_images(directory: Path) -> list[Path]:
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def preprocess_file(
    source: Path,
    output: Path,
    preprocess_config: PreprocessConfig,
    artifact_dir: str | None = None,
) -> None:
    png, result = preprocess_image_bytes(source.read_bytes(), preprocess_config, artifact_dir)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(png)
    if result.skew_angle is not None:
        logger.info("%s: skew %.1f degrees", source.name, result.skew_angle)
    logger.debug("%s -> %s (%dx%d)", source, output, *result.dimensions)


def cmd_preprocess(args: argparse.Namespace) -> int:
    source = Path(args.source)
    output = Path(args.output)

    try:
        preprocess_config = config_from_args(args)
        preprocess_config.validate()
    except (PreprocessError, ValueError) as e:
        logger.error("Invalid preprocessing settings: %s", e)
        return 1

    if source.is_file():
        try:
            preprocess_file(source, output, preprocess_config, args.artifacts)
        except PreprocessError as e:
            logger.error("%s: %s", source, e)
            return 1
        logger.info("Wrote %s", output)
        return 0

    if not source.is_dir():
        logger.error("Source not found: %s", source)
        return 1

    images = list_images(source)
    if not images:
        logger.warning("No images found in %s", source)
        return 0

    failures = 0
    for image_path in tqdm(images, desc="Preprocessing"):
        artifact_dir = f"{args.artifacts}/{image_path.stem}" if args.artifacts else None
        try:
            preprocess_file(
                image_path,
                output / f"{image_path.stem}.png",
                preprocess_config,
                artifact_dir,
            )
        except PreprocessError as e:
            logger.error("%s: %s", image_path.name, e)
            failures += 1

    logger.info("Processed %d of %d images", len(images) - failures, len(images))
    return 1 if failures else 0


def cmd_preview(args: argparse.Namespace) -> int:
    source = Path(args.source)
    if not source.is_file():
        logger.error("Source not found: %s", source)
        return 1
    try:
        png = render_preview(source.read_bytes(), args.max_width)
    except PreprocessError as e:
        logger.error("%s: %s", source, e)
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(png)
    logger.info("Wrote preview %s", output)
    return 0
