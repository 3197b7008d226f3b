"""
Threshold selection for binarization.

- Otsu: one global threshold maximizing between-class variance.
- Bradley: per-pixel threshold from the mean of a window around the pixel,
  computed in O(1) per pixel from an integral (summed-area) image.

Both classify a pixel as white when its intensity is strictly above the
threshold.
"""

import logging

import numpy as np

from config import ADAPTIVE_MEAN_FACTOR

from .buffer import PixelBuffer
from .errors import InvalidConfig
from .point_ops import binarize_fixed

logger = logging.getLogger(__name__)


def histogram(gray: np.ndarray) -> np.ndarray:
    """256-bin intensity histogram."""
    return np.bincount(gray.ravel(), minlength=256)


def otsu_threshold(buf: PixelBuffer) -> int:
    """Select the global threshold maximizing between-class variance.

    Background/foreground weights and means are updated incrementally over
    all 256 candidates. Ties keep the lowest threshold.
    """
    hist = histogram(buf.intensity())
    total = int(hist.sum())
    weighted_total = float(np.dot(np.arange(256), hist))

    weight_bg = 0
    sum_bg = 0.0
    best_variance = 0.0
    threshold = 0

    for t in range(256):
        weight_bg += int(hist[t])
        if weight_bg == 0:
            continue
        weight_fg = total - weight_bg
        if weight_fg == 0:
            break

        sum_bg += t * int(hist[t])
        mean_bg = sum_bg / weight_bg
        mean_fg = (weighted_total - sum_bg) / weight_fg

        variance = weight_bg * weight_fg * (mean_bg - mean_fg) ** 2
        if variance > best_variance:
            best_variance = variance
            threshold = t

    return threshold


def binarize_otsu(buf: PixelBuffer) -> tuple[PixelBuffer, int]:
    """Binarize with the Otsu threshold. Returns (binary buffer, threshold)."""
    threshold = otsu_threshold(buf)
    logger.debug("Otsu threshold: %d", threshold)
    return binarize_fixed(buf, threshold), threshold


def integral_image(gray: np.ndarray) -> np.ndarray:
    """Row-major cumulative sum of intensity, uint64, same shape as gray.

    Entry (y, x) holds the sum of gray[0:y+1, 0:x+1].
    """
    return gray.astype(np.uint64).cumsum(axis=0).cumsum(axis=1)


def _validate_window(window_size: int) -> None:
    if window_size < 1 or window_size % 2 == 0:
        raise InvalidConfig(
            f"adaptive window size must be a positive odd number, got {window_size}"
        )


def window_sums(integral: np.ndarray, window_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Sum and pixel count of the window centered on every pixel.

    Windows are clamped to the image bounds, so edge and corner windows are
    smaller; counts come from the clamped rectangle and are never zero.

    Returns:
        Tuple of (sums, counts), both (height, width) arrays.
    """
    h, w = integral.shape
    radius = window_size // 2

    # Leading zero row/column so that rectangle lookups need no branches
    padded = np.zeros((h + 1, w + 1), dtype=np.uint64)
    padded[1:, 1:] = integral

    ys = np.arange(h)
    xs = np.arange(w)
    y1 = np.clip(ys - radius, 0, h - 1)[:, np.newaxis]
    y2 = np.clip(ys + radius, 0, h - 1)[:, np.newaxis] + 1
    x1 = np.clip(xs - radius, 0, w - 1)[np.newaxis, :]
    x2 = np.clip(xs + radius, 0, w - 1)[np.newaxis, :] + 1

    sums = padded[y2, x2] - padded[y1, x2] - padded[y2, x1] + padded[y1, x1]
    counts = (y2 - y1) * (x2 - x1)
    return sums, counts


def local_means(buf: PixelBuffer, window_size: int) -> np.ndarray:
    """Mean intensity of the clamped window around every pixel."""
    _validate_window(window_size)
    sums, counts = window_sums(integral_image(buf.intensity()), window_size)
    return sums.astype(np.float64) / counts


def adaptive_threshold(
    buf: PixelBuffer,
    window_size: int,
    factor: float = ADAPTIVE_MEAN_FACTOR,
) -> PixelBuffer:
    """Bradley local binarization.

    A pixel is white when its intensity exceeds factor times the mean of its
    window. The integral image is built once per call.

    Raises:
        InvalidConfig: If window_size is not a positive odd number.
    """
    gray = buf.intensity()
    means = local_means(buf, window_size)
    binary = np.where(gray > factor * means, 255, 0).astype(np.uint8)
    return buf.with_rgb(binary)
