"""Tests for decoding input bytes, PNG encoding and preview rendering."""

import asyncio
import io

import numpy as np
import pytest
from PIL import Image

from preprocessing import (
    DecodeFailure,
    ErrorKind,
    PixelBuffer,
    PreprocessConfig,
    decode_image,
    encode_png,
    preprocess_image_bytes,
    preprocess_image_bytes_async,
    render_preview,
)


def _image_bytes(array: np.ndarray, fmt: str = "PNG") -> bytes:
    output = io.BytesIO()
    Image.fromarray(array).save(output, format=fmt)
    return output.getvalue()


class TestDecode:
    def test_rgb_png_gets_opaque_alpha(self, text_image):
        buf = decode_image(_image_bytes(text_image))
        assert (buf.width, buf.height) == (120, 60)
        assert np.array_equal(buf.rgb, text_image)
        assert np.all(buf.alpha == 255)

    def test_grayscale_jpeg(self):
        gray = np.full((16, 24), 128, dtype=np.uint8)
        buf = decode_image(_image_bytes(gray, fmt="JPEG"))
        assert (buf.width, buf.height) == (24, 16)
        assert buf.is_grayscale()

    def test_garbage_raises_decode_failure(self):
        with pytest.raises(DecodeFailure) as exc_info:
            decode_image(b"definitely not an image")
        assert exc_info.value.kind is ErrorKind.DECODE_FAILURE
        assert str(exc_info.value).startswith("decode_failure: ")

    def test_empty_bytes_raise_decode_failure(self):
        with pytest.raises(DecodeFailure, match="no image data"):
            decode_image(b"")


class TestEncode:
    def test_png_round_trip_keeps_alpha(self, random_buffer):
        png = encode_png(random_buffer)
        assert png.startswith(b"\x89PNG")
        assert np.array_equal(decode_image(png).data, random_buffer.data)


class TestPreview:
    def test_downscales_to_max_width(self, text_image):
        preview = render_preview(_image_bytes(text_image), max_width=40)
        buf = decode_image(preview)
        assert (buf.width, buf.height) == (40, 20)

    def test_narrow_image_unchanged(self, text_image):
        preview = render_preview(_image_bytes(text_image), max_width=400)
        assert np.array_equal(decode_image(preview).rgb, text_image)


class TestPreprocessBytes:
    def test_returns_png_of_processed_canvas(self, text_image):
        png, result = preprocess_image_bytes(_image_bytes(text_image))
        decoded = decode_image(png)
        assert np.array_equal(decoded.data, result.processed.data)
        assert set(np.unique(decoded.rgb).tolist()) <= {0, 255}

    def test_invalid_config_checked_before_decode(self):
        with pytest.raises(ValueError):
            preprocess_image_bytes(b"garbage", PreprocessConfig(contrast=2.8))

    def test_async_variant(self, text_image):
        png, result = asyncio.run(
            preprocess_image_bytes_async(_image_bytes(text_image), PreprocessConfig(binarize=False))
        )
        assert isinstance(result.processed, PixelBuffer)
        assert decode_image(png).width == 120

    def test_async_variant_saves_artifacts(self, tmp_path, text_image):
        _, result = asyncio.run(
            preprocess_image_bytes_async(_image_bytes(text_image), artifact_dir=str(tmp_path))
        )
        assert (tmp_path / "original.png").exists()
        assert set(result.artifact_paths) == {"original", "grayscale", "contrast", "binarize"}
