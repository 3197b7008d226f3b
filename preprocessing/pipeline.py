"""
Preprocessing pipeline that applies all steps in order.

The pipeline is the main entry point for preprocessing images. It applies
the steps enabled by the provided configuration and returns all
intermediate results for debugging and previews.

This module provides two APIs:
1. run_pipeline() - Function API that builds and runs the standard pipeline
2. Pipeline class - Class-based API for composable step sequences

Pipeline order (each stage gated by its own flag):
    Upscale → [Grayscale → Contrast/Brightness → Sharpen → Denoise
    → Binarize → MorphClose → Deskew]
The bracketed block only runs when config.enabled is set. Contrast and
brightness are always applied inside the block. Deskew comes last so that
binarization and morphology have committed their pixels before rotation.
"""

import asyncio
import logging

from .buffer import PixelBuffer
from .codec import decode_image, encode_png
from .config import PreprocessConfig, PreprocessResult
from .steps import (
    BinarizeStep,
    ContrastBrightnessStep,
    DenoiseStep,
    DeskewStep,
    GrayscaleStep,
    MorphCloseStep,
    Pipeline,
    PreprocessStep,
    SharpenStep,
    UpscaleStep,
)

logger = logging.getLogger(__name__)


def build_pipeline(config: PreprocessConfig) -> Pipeline:
    """Build a Pipeline from a PreprocessConfig.

    Args:
        config: Preprocessing configuration.

    Returns:
        Pipeline configured according to the config.
    """
    steps: list[PreprocessStep] = []

    if config.upscale:
        steps.append(UpscaleStep(factor=config.upscale_factor))

    if not config.enabled:
        return Pipeline(steps=steps)

    if config.grayscale:
        steps.append(GrayscaleStep())

    steps.append(
        ContrastBrightnessStep(contrast=config.contrast, brightness=config.brightness)
    )

    if config.sharpen:
        steps.append(SharpenStep())

    if config.denoise:
        steps.append(DenoiseStep())

    if config.binarize:
        steps.append(BinarizeStep(mode=config.binarize_mode))

    if config.morphological_ops:
        steps.append(MorphCloseStep(kernel_size=config.morph_kernel_size))

    if config.deskew:
        steps.append(DeskewStep())

    return Pipeline(steps=steps)


def run_pipeline(
    buf: PixelBuffer,
    config: PreprocessConfig | None = None,
    artifact_dir: str | None = None,
) -> PreprocessResult:
    """Apply the full preprocessing pipeline to a buffer.

    All operations are pure and non-mutating. The input buffer is preserved.

    Args:
        buf: Input RGBA buffer.
        config: Preprocessing configuration. If None, uses default settings.
        artifact_dir: Optional directory to save intermediate images.

    Returns:
        PreprocessResult containing original and processed buffers with metadata.

    Raises:
        InvalidConfig: If configuration is invalid.
        EmptyCanvas: If the canvas has zero width or height.
        TypeError: If buf is not a PixelBuffer.
    """
    if config is None:
        config = PreprocessConfig()

    config.validate()

    if not isinstance(buf, PixelBuffer):
        raise TypeError(f"Expected PixelBuffer, got {type(buf).__name__}")

    original = buf.copy()
    pipeline = build_pipeline(config)
    logger.debug("Running %d preprocessing steps: %s", len(pipeline), [s.name for s in pipeline])
    pipeline_result = pipeline.run(original, artifact_dir=artifact_dir)

    return PreprocessResult(
        original=original,
        processed=pipeline_result.final,
        config=config,
        scale_factor=pipeline_result.scale_factor,
        skew_angle=pipeline_result.get_metadata("skew_angle"),
        artifact_paths=pipeline_result.artifact_paths,
        step_metadata=pipeline_result.step_metadata,
        metadata=pipeline_result.all_metadata,
    )


def preprocess_image_bytes(
    image_data: bytes,
    config: PreprocessConfig | None = None,
    artifact_dir: str | None = None,
) -> tuple[bytes, PreprocessResult]:
    """Decode, preprocess and re-encode an image.

    Returns:
        Tuple of (PNG bytes of the processed canvas, full PreprocessResult).

    Raises:
        DecodeFailure, EncodeFailure, InvalidConfig, EmptyCanvas.
    """
    if config is not None:
        # Fail before decoding a large image with a config that cannot run
        config.validate()
    buf = decode_image(image_data)
    result = run_pipeline(buf, config, artifact_dir=artifact_dir)
    return encode_png(result.processed), result


async def preprocess_image_bytes_async(
    image_data: bytes,
    config: PreprocessConfig | None = None,
    artifact_dir: str | None = None,
) -> tuple[bytes, PreprocessResult]:
    """preprocess_image_bytes() run off the event loop."""
    return await asyncio.to_thread(preprocess_image_bytes, image_data, config, artifact_dir)
