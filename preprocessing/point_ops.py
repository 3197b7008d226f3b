"""
Per-pixel preprocessing operations (no neighborhood reads).

All functions are pure: they take an input buffer and return a new buffer
without mutating the original. This ensures predictable behavior and makes
testing straightforward.
"""

import math

import cv2
import numpy as np

from config import CONTRAST_SINGULARITY

from .buffer import PixelBuffer
from .errors import EmptyCanvas, InvalidConfig


def to_grayscale(buf: PixelBuffer) -> PixelBuffer:
    """Set R=G=B to the rounded channel mean; alpha is untouched.

    Idempotent: a buffer that is already gray maps to itself.

    Examples:
        >>> rgb = np.zeros((2, 2, 4), dtype=np.uint8)
        >>> rgb[..., 0] = 255
        >>> to_grayscale(PixelBuffer(rgb)).data[0, 0].tolist()
        [85, 85, 85, 0]
    """
    return buf.with_rgb(buf.intensity())


def contrast_factor(contrast: float) -> float:
    """Scale factor for the contrast curve centered on mid-gray.

    Raises:
        InvalidConfig: If contrast is not finite or reaches the pole of the
            curve (>= 2.59).
    """
    if not math.isfinite(contrast):
        raise InvalidConfig(f"contrast must be a finite number, got {contrast}")
    if contrast >= CONTRAST_SINGULARITY:
        raise InvalidConfig(
            f"contrast must be below {CONTRAST_SINGULARITY}, got {contrast}"
        )
    c = contrast * 100
    return (259 * (c + 255)) / (255 * (259 - c))


def adjust_contrast_brightness(
    buf: PixelBuffer,
    contrast: float,
    brightness: float,
) -> PixelBuffer:
    """Apply the contrast curve and brightness offset to R, G and B.

    v' = clamp(factor * (v - 128) + 128 + (brightness - 1) * 50, 0, 255)

    Args:
        buf: Input buffer.
        contrast: Contrast setting, strictly below 2.59.
        brightness: Brightness multiplier; 1.0 adds no offset.

    Returns:
        New buffer.

    Raises:
        InvalidConfig: If contrast is at or above the singularity, or either
            setting is not finite.
    """
    factor = contrast_factor(contrast)
    if not math.isfinite(brightness):
        raise InvalidConfig(f"brightness must be a finite number, got {brightness}")
    offset = (brightness - 1) * 50
    values = factor * (buf.rgb.astype(np.float64) - 128) + 128 + offset
    adjusted = np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)
    return buf.with_rgb(adjusted)


def binarize_fixed(buf: PixelBuffer, threshold: int) -> PixelBuffer:
    """Intensity above threshold becomes white (255), everything else black."""
    binary = np.where(buf.intensity() > threshold, 255, 0).astype(np.uint8)
    return buf.with_rgb(binary)


def upscale(buf: PixelBuffer, factor: float) -> PixelBuffer:
    """Resize the canvas by factor with bicubic interpolation.

    Raises:
        InvalidConfig: If factor is below 1.
        EmptyCanvas: If the scaled canvas has zero width or height.
    """
    if factor < 1:
        raise InvalidConfig(f"upscale_factor must be >= 1, got {factor}")

    new_width = int(round(buf.width * factor))
    new_height = int(round(buf.height * factor))
    if new_width <= 0 or new_height <= 0:
        raise EmptyCanvas(f"upscaled canvas has zero size ({new_width}x{new_height})")

    if new_width == buf.width and new_height == buf.height:
        return buf.copy()

    resized = cv2.resize(
        buf.data,
        (new_width, new_height),
        interpolation=cv2.INTER_CUBIC,
    )
    return PixelBuffer(resized)


def resize_to_width(buf: PixelBuffer, max_width: int) -> PixelBuffer:
    """Downscale to at most max_width, preserving aspect ratio.

    Buffers already narrower than max_width are returned as a copy.
    """
    if max_width <= 0:
        raise InvalidConfig(f"max_width must be positive, got {max_width}")
    if buf.width <= max_width:
        return buf.copy()

    scale = max_width / buf.width
    new_height = max(1, int(round(buf.height * scale)))
    resized = cv2.resize(buf.data, (max_width, new_height), interpolation=cv2.INTER_AREA)
    return PixelBuffer(resized)
