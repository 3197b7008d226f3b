"""
Convolution-style filters: sharpening and median denoising.

Both read from an immutable snapshot of their input. Their edge policies
differ on purpose:

- sharpen skips taps that fall outside the image without re-normalizing
  the kernel, so edge pixels come out brighter than a clamped border would
  give.
- denoise only touches pixels with a complete 3x3 neighborhood; the
  one-pixel border is left as it was.
"""

import numpy as np

from .buffer import PixelBuffer
from .stencil import apply_stencil, weighted_sum, window_median

SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.int32,
)


def sharpen(buf: PixelBuffer) -> PixelBuffer:
    """Apply the 3x3 sharpening kernel to R, G and B."""
    source = buf.snapshot()[:, :, :3]
    sharpened = apply_stencil(source, 1, weighted_sum(SHARPEN_KERNEL), fill=0)
    return buf.with_rgb(sharpened)


def denoise_median(buf: PixelBuffer) -> PixelBuffer:
    """3x3 median filter on R, G and B, excluding the outer ring."""
    source = buf.snapshot()[:, :, :3]
    denoised = apply_stencil(source, 1, window_median, interior_only=True)
    return buf.with_rgb(denoised)
