"""
Skew estimation by projection-profile variance, and rotation.

For each candidate angle, every black pixel (intensity 0) is sheared onto
row round(y + x * tan(angle)) and counted. Straight text lines pile their
ink into a few rows at the right angle, which maximizes the variance of the
row histogram; a wrong angle smears the ink over many rows.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import cv2
import numpy as np

from config import (
    MIN_ROTATION_ANGLE,
    SKEW_SEARCH_MAX_ANGLE,
    SKEW_SEARCH_MIN_ANGLE,
    SKEW_SEARCH_STEP,
)

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkewResult:
    """Estimated skew of the text baselines.

    Attributes:
        angle_degrees: Angle of maximum projection variance. Positive means
            the text rises to the right.
        score: Projection variance at that angle (0.0 when there is no ink).
    """

    angle_degrees: float
    score: float = 0.0


def candidate_angles(
    min_angle: float = SKEW_SEARCH_MIN_ANGLE,
    max_angle: float = SKEW_SEARCH_MAX_ANGLE,
    step: float = SKEW_SEARCH_STEP,
) -> list[float]:
    """Ascending candidate angles, computed by index to avoid float drift."""
    count = int(round((max_angle - min_angle) / step)) + 1
    return [min_angle + i * step for i in range(count)]


def projection_variance(ys: np.ndarray, xs: np.ndarray, height: int, angle: float) -> float:
    """Population variance of the sheared row projection of ink pixels."""
    shifted = ys + xs * math.tan(math.radians(angle))
    rows = np.floor(shifted + 0.5).astype(np.int64)
    rows = rows[(rows >= 0) & (rows < height)]
    projection = np.bincount(rows, minlength=height)[:height]
    return float(projection.var())


def detect_skew_angle(buf: PixelBuffer) -> SkewResult:
    """Search -15..+15 degrees in 0.5 degree steps for the best projection.

    Ties favor the first (most negative) angle. A buffer without black
    pixels has no measurable skew and yields 0.0.
    """
    ys, xs = np.nonzero(buf.intensity() == 0)
    if ys.size == 0:
        return SkewResult(angle_degrees=0.0)

    ys = ys.astype(np.float64)
    xs = xs.astype(np.float64)

    best_angle = 0.0
    best_score = -1.0
    for angle in candidate_angles():
        score = projection_variance(ys, xs, buf.height, angle)
        if score > best_score:
            best_score = score
            best_angle = angle

    logger.debug("Skew estimate: %.1f degrees (variance %.2f)", best_angle, best_score)
    return SkewResult(angle_degrees=best_angle, score=best_score)


def rotate(buf: PixelBuffer, angle_degrees: float) -> PixelBuffer:
    """Undo a detected skew by rotating about the canvas center.

    The canvas keeps its size. Pixels uncovered by the rotation are
    transparent black; nothing is cropped or padded to fit. Nearest-neighbour
    sampling keeps binarized data binary.
    """
    center = (buf.width / 2, buf.height / 2)
    matrix = cv2.getRotationMatrix2D(center, -angle_degrees, 1.0)
    rotated = cv2.warpAffine(
        buf.data,
        matrix,
        (buf.width, buf.height),
        flags=cv2.INTER_NEAREST,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )
    return PixelBuffer(rotated)


def deskew(buf: PixelBuffer, min_angle: float = MIN_ROTATION_ANGLE) -> tuple[PixelBuffer, SkewResult, bool]:
    """Detect and correct skew.

    Only rotates when the detected angle exceeds min_angle in magnitude.

    Returns:
        Tuple of (buffer, skew result, whether a rotation was applied). The
        buffer is a copy of the input when no rotation was needed.
    """
    result = detect_skew_angle(buf)
    if abs(result.angle_degrees) <= min_angle:
        return buf.copy(), result, False
    logger.info("Correcting skew of %.1f degrees", result.angle_degrees)
    return rotate(buf, result.angle_degrees), result, True
