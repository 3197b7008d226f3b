"""
RGBA pixel buffer shared by every preprocessing stage.

The buffer wraps a ``(height, width, 4)`` uint8 numpy array with channels
in R, G, B, A order. Stages never mutate the buffer they receive: each
returns a new PixelBuffer, and neighborhood stages read from a read-only
snapshot of their input.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import EmptyCanvas

CHANNELS = 4


@dataclass
class PixelBuffer:
    """Channel-interleaved RGBA raster.

    Attributes:
        data: uint8 array shaped (height, width, 4).
    """

    data: np.ndarray

    def __post_init__(self) -> None:
        if not isinstance(self.data, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(self.data).__name__}")
        if self.data.ndim != 3 or self.data.shape[2] != CHANNELS:
            raise ValueError(
                f"PixelBuffer requires a (height, width, 4) array, got shape {self.data.shape}"
            )
        if self.data.dtype != np.uint8:
            raise ValueError(f"PixelBuffer requires uint8 data, got {self.data.dtype}")
        if self.data.shape[0] == 0 or self.data.shape[1] == 0:
            raise EmptyCanvas(
                f"canvas has zero size ({self.data.shape[1]}x{self.data.shape[0]})"
            )

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        """View of the color channels, shape (height, width, 3)."""
        return self.data[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.data[:, :, 3]

    @classmethod
    def from_bytes(cls, width: int, height: int, channels: bytes) -> PixelBuffer:
        """Build a buffer from a flat interleaved RGBA byte string."""
        expected = width * height * CHANNELS
        if len(channels) != expected:
            raise ValueError(
                f"Expected {expected} bytes for {width}x{height} RGBA, got {len(channels)}"
            )
        array = np.frombuffer(bytes(channels), dtype=np.uint8)
        return cls(array.reshape(height, width, CHANNELS).copy())

    @classmethod
    def from_array(cls, img: np.ndarray) -> PixelBuffer:
        """Build a buffer from a grayscale, RGB or RGBA uint8 array.

        Missing channels are filled in: grayscale is replicated to R, G, B
        and alpha defaults to fully opaque.
        """
        if not isinstance(img, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(img).__name__}")
        if img.ndim == 2:
            img = img[:, :, np.newaxis]
        if img.ndim != 3:
            raise ValueError(
                f"Image must be 2D or 3D array, got {img.ndim}D array with shape {img.shape}"
            )

        h, w, channels = img.shape
        data = np.empty((h, w, CHANNELS), dtype=np.uint8)
        if channels == 1:
            data[:, :, :3] = img
            data[:, :, 3] = 255
        elif channels == 3:
            data[:, :, :3] = img
            data[:, :, 3] = 255
        elif channels == 4:
            data[:] = img
        else:
            raise ValueError(
                f"Unsupported number of channels: {channels}. "
                "Expected 1, 3 (RGB), or 4 (RGBA)."
            )
        return cls(data)

    def to_bytes(self) -> bytes:
        """Flat interleaved RGBA bytes of length width*height*4."""
        return self.data.tobytes()

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.data.copy())

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the pixel data."""
        frozen = self.data.copy()
        frozen.flags.writeable = False
        return frozen

    def intensity(self) -> np.ndarray:
        """Per-pixel grayscale value round((R+G+B)/3) as a 2-D uint8 array.

        Equals the R channel once the buffer has been converted to grayscale.
        """
        total = self.rgb.sum(axis=2, dtype=np.uint16)
        # round-half-up of total/3; thirds never land on .5
        return ((total + 1) // 3).astype(np.uint8)

    def with_rgb(self, rgb: np.ndarray) -> PixelBuffer:
        """New buffer with the given color channels and this buffer's alpha.

        A 2-D array is replicated to R, G and B.
        """
        data = self.data.copy()
        if rgb.ndim == 2:
            data[:, :, :3] = rgb[:, :, np.newaxis]
        else:
            data[:, :, :3] = rgb
        return PixelBuffer(data)

    def is_grayscale(self) -> bool:
        rgb = self.rgb
        return bool(np.all(rgb[:, :, 0] == rgb[:, :, 1]) and np.all(rgb[:, :, 1] == rgb[:, :, 2]))
