"""
Image preprocessing module for text recognition.

This module provides pure, deterministic functions for preparing photographed
or scanned text before OCR. All functions follow the pattern: input -> output
with no mutation of the original buffers.

Key components:
- buffer: PixelBuffer, the RGBA raster shared by every stage
- config: PreprocessConfig dataclass and binarization mode variants
- point_ops: grayscale, contrast/brightness, fixed threshold, upscaling
- stencil / filters: snapshot-based neighborhood filters (sharpen, denoise)
- threshold: Otsu and Bradley adaptive thresholds
- morphology: dilation, erosion, closing, opening
- skew: projection-profile skew detection and rotation
- steps / pipeline: step classes and run_pipeline()
- codec: decode image bytes, encode PNG, render previews

Two APIs are available:
1. Function-based: run_pipeline(buf, config) -> PreprocessResult
2. Class-based: Pipeline(steps=[...]).run(buf) -> PipelineStepResults
"""

from .buffer import PixelBuffer
from .codec import decode_image, encode_png, render_preview
from .config import (
    AdaptiveThreshold,
    BinarizeMode,
    FixedThreshold,
    OtsuThreshold,
    PreprocessConfig,
    PreprocessResult,
    binarize_mode_from_name,
)
from .errors import (
    DecodeFailure,
    EmptyCanvas,
    EncodeFailure,
    ErrorKind,
    InvalidConfig,
    PreprocessError,
)
from .filters import denoise_median, sharpen
from .morphology import closing, dilate, erode, opening
from .pipeline import (
    build_pipeline,
    preprocess_image_bytes,
    preprocess_image_bytes_async,
    run_pipeline,
)
from .point_ops import adjust_contrast_brightness, binarize_fixed, to_grayscale, upscale
from .skew import SkewResult, detect_skew_angle, rotate
from .steps import (
    BinarizeStep,
    ContrastBrightnessStep,
    DenoiseStep,
    DeskewStep,
    GrayscaleStep,
    MorphCloseStep,
    Pipeline,
    PipelineStepResults,
    PreprocessStep,
    SharpenStep,
    StepResult,
    UpscaleStep,
)
from .threshold import adaptive_threshold, integral_image, local_means, otsu_threshold

__all__ = [
    # Buffer, config and results
    "PixelBuffer",
    "PreprocessConfig",
    "PreprocessResult",
    "BinarizeMode",
    "FixedThreshold",
    "OtsuThreshold",
    "AdaptiveThreshold",
    "binarize_mode_from_name",
    # Errors
    "PreprocessError",
    "ErrorKind",
    "DecodeFailure",
    "EncodeFailure",
    "InvalidConfig",
    "EmptyCanvas",
    # Operations
    "to_grayscale",
    "adjust_contrast_brightness",
    "binarize_fixed",
    "upscale",
    "sharpen",
    "denoise_median",
    "otsu_threshold",
    "adaptive_threshold",
    "integral_image",
    "local_means",
    "dilate",
    "erode",
    "closing",
    "opening",
    "detect_skew_angle",
    "rotate",
    "SkewResult",
    # Function API
    "run_pipeline",
    "build_pipeline",
    "preprocess_image_bytes",
    "preprocess_image_bytes_async",
    "decode_image",
    "encode_png",
    "render_preview",
    # Class-based API
    "PreprocessStep",
    "UpscaleStep",
    "GrayscaleStep",
    "ContrastBrightnessStep",
    "SharpenStep",
    "DenoiseStep",
    "BinarizeStep",
    "MorphCloseStep",
    "DeskewStep",
    "Pipeline",
    "PipelineStepResults",
    "StepResult",
]
