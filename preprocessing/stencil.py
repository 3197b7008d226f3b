"""
Neighborhood ("stencil") operation shared by every filter.

A stencil reads a square window around each pixel of a read-only source and
reduces it to one output value. The source is never written, so every output
pixel depends only on the pre-stage state regardless of evaluation order.

Windows are presented to the reducer as a list of shifted views of the
source, one per tap in row-major order (dy, dx from -radius to +radius).
This keeps memory proportional to the image rather than image * window.
"""

from typing import Callable, Sequence

import numpy as np

Reducer = Callable[[Sequence[np.ndarray]], np.ndarray]


def window_offsets(radius: int) -> list[tuple[int, int]]:
    """(dy, dx) tap offsets for a square window, row-major."""
    span = range(-radius, radius + 1)
    return [(dy, dx) for dy in span for dx in span]


def _pad_width(source: np.ndarray, radius: int) -> list[tuple[int, int]]:
    pad = [(radius, radius), (radius, radius)]
    pad.extend((0, 0) for _ in range(source.ndim - 2))
    return pad


def apply_stencil(
    source: np.ndarray,
    radius: int,
    reducer: Reducer,
    fill: int | float = 0,
    interior_only: bool = False,
) -> np.ndarray:
    """Apply a windowed reduction to every pixel of source.

    Args:
        source: Read-only 2-D (h, w) or 3-D (h, w, c) array. Channels are
            reduced independently.
        radius: Window radius; the window side is 2 * radius + 1.
        reducer: Maps the list of shifted tap views to the output array.
        fill: Value presented for taps that fall outside the image. Choose a
            value that is neutral for the reducer (0 for weighted sums and
            max, 255 for min).
        interior_only: Only compute pixels whose full window lies inside the
            image; the outer ring of width radius is copied from source.

    Returns:
        New array with the same shape and dtype as source.
    """
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")

    h, w = source.shape[:2]
    offsets = window_offsets(radius)

    if interior_only:
        result = source.copy()
        if h <= 2 * radius or w <= 2 * radius:
            return result
        views = [
            source[radius + dy:h - radius + dy, radius + dx:w - radius + dx]
            for dy, dx in offsets
        ]
        result[radius:h - radius, radius:w - radius] = reducer(views)
        return result

    padded = np.pad(source, _pad_width(source, radius), mode="constant", constant_values=fill)
    views = [
        padded[radius + dy:radius + dy + h, radius + dx:radius + dx + w]
        for dy, dx in offsets
    ]
    return np.asarray(reducer(views)).astype(source.dtype, copy=False)


def weighted_sum(kernel: np.ndarray) -> Reducer:
    """Reducer computing a clamped 0-255 convolution with kernel."""
    weights = np.asarray(kernel, dtype=np.int32).ravel()

    def reduce(views: Sequence[np.ndarray]) -> np.ndarray:
        total = np.zeros(views[0].shape, dtype=np.int32)
        for weight, view in zip(weights, views):
            if weight:
                total += int(weight) * view.astype(np.int32)
        return np.clip(total, 0, 255).astype(np.uint8)

    return reduce


def window_max(views: Sequence[np.ndarray]) -> np.ndarray:
    return np.maximum.reduce(list(views))


def window_min(views: Sequence[np.ndarray]) -> np.ndarray:
    return np.minimum.reduce(list(views))


def window_median(views: Sequence[np.ndarray]) -> np.ndarray:
    # odd tap count, so the median is always one of the inputs
    return np.median(np.stack(views), axis=0).astype(views[0].dtype)
