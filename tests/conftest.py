"""Pytest configuration, fast by default.

Slow tests (real OCR engines: Tesseract binary, easyocr models) are skipped
unless --slow is passed.
Run the full suite:   pytest --slow
Run fast tests only:  pytest          (default)
"""
import numpy as np
import pytest

from preprocessing import PixelBuffer


def pytest_addoption(parser):
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests that need real OCR engines (Tesseract, easyocr)",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        return  # run everything
    skip_slow = pytest.mark.skip(reason="slow test skipped, pass --slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def random_buffer() -> PixelBuffer:
    rng = np.random.default_rng(7)
    return PixelBuffer(rng.integers(0, 256, (24, 32, 4), dtype=np.uint8))


@pytest.fixture
def text_image() -> np.ndarray:
    """Dark strokes on a light page, RGB."""
    img = np.full((60, 120, 3), 210, dtype=np.uint8)
    img[15:18, 10:110] = 30
    img[35:38, 10:90] = 40
    img[20:50, 60:62] = 35
    return img
