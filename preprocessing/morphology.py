"""
Grayscale morphology over a square structuring element.

The kernel is centered, so its effective radius is kernel_size // 2 and
the window spans 2 * radius + 1 pixels per side. Out-of-range neighbors are
ignored rather than padded into the result: dilation pads with 0 and
erosion with 255, the identities of max and min on uint8.
"""

from .buffer import PixelBuffer
from .errors import InvalidConfig
from .stencil import apply_stencil, window_max, window_min


def _radius(kernel_size: int) -> int:
    if kernel_size < 1:
        raise InvalidConfig(f"morph kernel size must be >= 1, got {kernel_size}")
    return kernel_size // 2


def dilate(buf: PixelBuffer, kernel_size: int) -> PixelBuffer:
    """Replace each pixel with the maximum intensity in its window."""
    radius = _radius(kernel_size)
    gray = buf.intensity()
    gray.flags.writeable = False
    return buf.with_rgb(apply_stencil(gray, radius, window_max, fill=0))


def erode(buf: PixelBuffer, kernel_size: int) -> PixelBuffer:
    """Replace each pixel with the minimum intensity in its window."""
    radius = _radius(kernel_size)
    gray = buf.intensity()
    gray.flags.writeable = False
    return buf.with_rgb(apply_stencil(gray, radius, window_min, fill=255))


def closing(buf: PixelBuffer, kernel_size: int) -> PixelBuffer:
    """Dilate then erode: fills dark gaps narrower than the kernel."""
    return erode(dilate(buf, kernel_size), kernel_size)


def opening(buf: PixelBuffer, kernel_size: int) -> PixelBuffer:
    """Erode then dilate: removes specks smaller than the kernel."""
    return dilate(erode(buf, kernel_size), kernel_size)
