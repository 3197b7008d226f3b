"""Tests for Otsu and integral-image adaptive thresholding."""

import numpy as np
import pytest

from preprocessing import (
    InvalidConfig,
    PixelBuffer,
    adaptive_threshold,
    integral_image,
    local_means,
    otsu_threshold,
)
from preprocessing.threshold import binarize_otsu, histogram, window_sums


def _gray(values) -> PixelBuffer:
    return PixelBuffer.from_array(np.asarray(values, dtype=np.uint8))


class TestIntegralImage:
    def test_cumulative_sums(self):
        integral = integral_image(np.array([[1, 2], [3, 4]], dtype=np.uint8))
        assert integral.tolist() == [[1, 3], [4, 10]]
        assert integral.dtype == np.uint64

    def test_no_overflow_on_large_bright_image(self):
        integral = integral_image(np.full((300, 400), 255, dtype=np.uint8))
        assert int(integral[-1, -1]) == 255 * 300 * 400

    def test_clamped_window_counts(self):
        integral = integral_image(np.ones((5, 5), dtype=np.uint8))
        sums, counts = window_sums(integral, 3)
        assert counts[0, 0] == 4
        assert counts[0, 2] == 6
        assert counts[2, 2] == 9
        assert np.array_equal(sums, counts)


class TestLocalMeans:
    @pytest.mark.parametrize("window_size", [5, 15, 49])
    def test_uniform_image_mean_is_constant_everywhere(self, window_size):
        means = local_means(_gray(np.full((23, 31), 137)), window_size)
        assert np.all(means == 137.0)

    def test_window_larger_than_image(self):
        img = np.array([[0, 30], [60, 90]], dtype=np.uint8)
        assert np.all(local_means(_gray(img), 49) == 45.0)

    @pytest.mark.parametrize("window_size", [0, 4, 16, -3])
    def test_invalid_window_raises(self, window_size):
        with pytest.raises(InvalidConfig, match="odd"):
            local_means(_gray(np.zeros((4, 4))), window_size)


class TestAdaptiveThreshold:
    def test_uniform_image_is_all_white(self):
        out = adaptive_threshold(_gray(np.full((10, 10), 100)), 5)
        assert np.all(out.rgb == 255)

    def test_dark_spot_on_light_page(self):
        img = np.full((60, 60), 200, dtype=np.uint8)
        img[30:33, 30:33] = 50
        out = adaptive_threshold(_gray(img), 15).rgb[:, :, 0]
        assert np.all(out[30:33, 30:33] == 0)
        assert int(np.count_nonzero(out == 0)) == 9

    def test_handles_uneven_illumination(self):
        """Strokes stay black whether they sit in shadow or in light."""
        shading = np.linspace(60, 240, 80)
        img = np.tile(shading, (40, 1))
        img[18:21, 5:75] *= 0.4
        out = adaptive_threshold(_gray(np.rint(img)), 15).rgb[:, :, 0]
        assert np.all(out[18:21, 10:70] == 0)
        assert np.all(out[5, 10:70] == 255)

    def test_output_is_binary_and_grayscale(self, random_buffer):
        out = adaptive_threshold(random_buffer, 7)
        assert set(np.unique(out.rgb).tolist()) <= {0, 255}
        assert out.is_grayscale()
        assert np.array_equal(out.alpha, random_buffer.alpha)


class TestOtsu:
    def test_histogram_has_256_bins(self):
        hist = histogram(np.array([[0, 255, 255]], dtype=np.uint8))
        assert hist.shape == (256,)
        assert hist[0] == 1 and hist[255] == 2

    def test_two_level_image_ties_keep_lowest(self):
        img = np.full((10, 10), 20, dtype=np.uint8)
        img[:, 5:] = 220
        buf = _gray(img)

        assert otsu_threshold(buf) == 20

        binary, threshold = binarize_otsu(buf)
        assert threshold == 20
        channel = binary.rgb[:, :, 0]
        assert int(np.count_nonzero(channel == 0)) == 50
        assert int(np.count_nonzero(channel == 255)) == 50

    def test_bimodal_threshold_between_modes(self):
        values = np.repeat([18, 19, 20, 21, 22, 218, 219, 220, 221, 222], 10)
        threshold = otsu_threshold(_gray(values.reshape(10, 10)))
        assert threshold == 22
        assert 20 < threshold < 220

    def test_uniform_image(self):
        assert otsu_threshold(_gray(np.full((4, 4), 90))) == 0

    def test_returns_plain_int(self, random_buffer):
        threshold = otsu_threshold(random_buffer)
        assert isinstance(threshold, int)
        assert 0 <= threshold <= 255
