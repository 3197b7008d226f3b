"""
Decode and encode boundary of the pipeline.

Image bytes in any format Pillow can read are decoded to an RGBA
PixelBuffer; processed buffers are encoded as PNG.
"""

import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from config import PREVIEW_MAX_WIDTH

from .buffer import PixelBuffer
from .errors import DecodeFailure, EncodeFailure
from .point_ops import resize_to_width

logger = logging.getLogger(__name__)


def decode_image(image_data: bytes) -> PixelBuffer:
    """Decode image bytes into an RGBA buffer.

    Raises:
        DecodeFailure: If the bytes are not a readable raster image.
        EmptyCanvas: If the decoded image has zero width or height.
    """
    if not image_data:
        raise DecodeFailure("no image data")
    try:
        with Image.open(io.BytesIO(image_data)) as image:
            image.load()
            if image.mode != "RGBA":
                image = image.convert("RGBA")
            array = np.array(image, dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeFailure(f"could not decode image: {e}") from e

    logger.debug("Decoded %dx%d image", array.shape[1], array.shape[0])
    return PixelBuffer(array)


def encode_png(buf: PixelBuffer) -> bytes:
    """Encode a buffer as PNG bytes.

    Raises:
        EncodeFailure: If Pillow cannot serialize the buffer.
    """
    output = io.BytesIO()
    try:
        Image.fromarray(buf.data).save(output, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeFailure(f"could not encode PNG: {e}") from e
    return output.getvalue()


def render_preview(image_data: bytes, max_width: int = PREVIEW_MAX_WIDTH) -> bytes:
    """Unmodified, down-scaled PNG copy of the input for side-by-side display."""
    buf = decode_image(image_data)
    return encode_png(resize_to_width(buf, max_width))
