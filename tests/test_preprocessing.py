"""
Unit tests for the preprocessing module: behavioral tests only.

Covers: pixel buffer invariants, point operations, configuration
validation, flag gating of the orchestrator, and end-to-end pipeline behavior.
"""

import numpy as np
import pytest

from preprocessing import (
    AdaptiveThreshold,
    BinarizeStep,
    ContrastBrightnessStep,
    DeskewStep,
    EmptyCanvas,
    FixedThreshold,
    GrayscaleStep,
    InvalidConfig,
    OtsuThreshold,
    Pipeline,
    PixelBuffer,
    PreprocessConfig,
    UpscaleStep,
    adjust_contrast_brightness,
    binarize_fixed,
    build_pipeline,
    run_pipeline,
    to_grayscale,
    upscale,
)
from preprocessing.point_ops import contrast_factor


def _rgba(pixels, alpha=255):
    """1xN RGBA buffer from a list of (r, g, b) tuples."""
    data = np.zeros((1, len(pixels), 4), dtype=np.uint8)
    data[0, :, :3] = pixels
    data[0, :, 3] = alpha
    return PixelBuffer(data)


def _gradient(width=100, height=40) -> PixelBuffer:
    row = np.rint(np.linspace(0, 255, width)).astype(np.uint8)
    return PixelBuffer.from_array(np.tile(row, (height, 1)))


class TestPixelBuffer:
    def test_from_bytes_round_trip(self):
        raw = bytes(range(2 * 3 * 4))
        buf = PixelBuffer.from_bytes(3, 2, raw)
        assert (buf.width, buf.height) == (3, 2)
        assert buf.to_bytes() == raw

    def test_from_bytes_length_mismatch_raises(self):
        with pytest.raises(ValueError, match="Expected 24 bytes"):
            PixelBuffer.from_bytes(3, 2, bytes(10))

    def test_zero_size_raises_empty_canvas(self):
        with pytest.raises(EmptyCanvas):
            PixelBuffer(np.zeros((0, 5, 4), dtype=np.uint8))

    def test_wrong_shape_raises(self):
        with pytest.raises(ValueError, match="height, width, 4"):
            PixelBuffer(np.zeros((5, 5, 3), dtype=np.uint8))

    def test_from_array_fills_alpha_and_replicates_gray(self):
        buf = PixelBuffer.from_array(np.full((2, 2), 77, dtype=np.uint8))
        assert np.all(buf.rgb == 77)
        assert np.all(buf.alpha == 255)

    def test_snapshot_is_read_only_copy(self):
        buf = _rgba([(1, 2, 3)])
        snap = buf.snapshot()
        assert not snap.flags.writeable
        buf.data[0, 0, 0] = 99
        assert snap[0, 0, 0] == 1


class TestToGrayscale:
    def test_rounds_channel_mean(self):
        buf = _rgba([(10, 20, 31), (255, 0, 0), (1, 1, 0)])
        gray = to_grayscale(buf)
        assert gray.rgb[0, :, 0].tolist() == [20, 85, 1]
        assert gray.is_grayscale()

    def test_alpha_untouched(self):
        buf = _rgba([(10, 200, 30)], alpha=17)
        assert to_grayscale(buf).alpha[0, 0] == 17

    def test_idempotent(self, random_buffer):
        once = to_grayscale(random_buffer)
        twice = to_grayscale(once)
        assert np.array_equal(once.data, twice.data)

    def test_pure_function_no_mutation(self, random_buffer):
        original = random_buffer.data.copy()
        _ = to_grayscale(random_buffer)
        assert np.array_equal(random_buffer.data, original)


class TestContrastBrightness:
    def test_factor_formula(self):
        assert contrast_factor(1.0) == pytest.approx(259 * 355 / (255 * 159))
        assert contrast_factor(0.5) == pytest.approx(259 * 305 / (255 * 209))

    def test_mid_gray_is_fixed_point_without_brightness(self):
        buf = _rgba([(128, 128, 128)])
        out = adjust_contrast_brightness(buf, 1.5, 1.0)
        assert out.rgb[0, 0].tolist() == [128, 128, 128]

    def test_brightness_offset(self):
        buf = _rgba([(128, 128, 128)])
        assert adjust_contrast_brightness(buf, 1.0, 2.0).rgb[0, 0, 0] == 178
        assert adjust_contrast_brightness(buf, 1.0, 0.5).rgb[0, 0, 0] == 103

    def test_clamps_to_byte_range(self):
        buf = _rgba([(0, 10, 250), (255, 255, 255)])
        out = adjust_contrast_brightness(buf, 2.5, 1.0)
        assert out.rgb[0, 0].tolist() == [0, 0, 255]
        assert out.rgb[0, 1].tolist() == [255, 255, 255]

    @pytest.mark.parametrize("contrast", [2.59, 2.6, 3.0])
    def test_singularity_raises_invalid_config(self, contrast):
        with pytest.raises(InvalidConfig, match="2.59"):
            adjust_contrast_brightness(_rgba([(1, 2, 3)]), contrast, 1.0)

    @pytest.mark.parametrize("contrast", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_contrast_raises(self, contrast):
        with pytest.raises(InvalidConfig, match="finite"):
            adjust_contrast_brightness(_rgba([(1, 2, 3)]), contrast, 1.0)

    def test_non_finite_brightness_raises(self):
        with pytest.raises(InvalidConfig, match="finite"):
            adjust_contrast_brightness(_rgba([(1, 2, 3)]), 1.0, float("nan"))


class TestBinarizeFixed:
    def test_strictly_greater_is_white(self):
        buf = _rgba([(128, 128, 128), (129, 129, 129), (0, 0, 0)])
        out = binarize_fixed(buf, 128)
        assert out.rgb[0, :, 0].tolist() == [0, 255, 0]
        assert out.is_grayscale()


class TestUpscale:
    def test_scales_dimensions(self):
        buf = PixelBuffer(np.zeros((5, 10, 4), dtype=np.uint8))
        out = upscale(buf, 2.0)
        assert (out.width, out.height) == (20, 10)

    def test_factor_one_is_copy(self, random_buffer):
        out = upscale(random_buffer, 1.0)
        assert np.array_equal(out.data, random_buffer.data)
        assert out.data is not random_buffer.data

    def test_factor_below_one_raises(self, random_buffer):
        with pytest.raises(InvalidConfig, match=">= 1"):
            upscale(random_buffer, 0.5)


class TestPreprocessConfig:
    def test_defaults_validate(self):
        PreprocessConfig().validate()

    def test_contrast_singularity_rejected(self):
        with pytest.raises(InvalidConfig, match="2.59"):
            PreprocessConfig(contrast=2.59).validate()

    def test_contrast_out_of_range_rejected(self):
        with pytest.raises(InvalidConfig, match="contrast"):
            PreprocessConfig(contrast=0.2).validate()

    def test_even_adaptive_window_rejected(self):
        config = PreprocessConfig(binarize_mode=AdaptiveThreshold(window_size=16))
        with pytest.raises(InvalidConfig, match="odd"):
            config.validate()

    def test_fixed_threshold_range(self):
        config = PreprocessConfig(binarize_mode=FixedThreshold(threshold=30))
        with pytest.raises(InvalidConfig, match="threshold"):
            config.validate()

    def test_kernel_size_range(self):
        with pytest.raises(InvalidConfig, match="morph_kernel_size"):
            PreprocessConfig(morph_kernel_size=6).validate()

    def test_upscale_factor_range(self):
        with pytest.raises(InvalidConfig, match="upscale_factor"):
            PreprocessConfig(upscale_factor=0.5).validate()

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            PreprocessConfig(brightness=5.0).validate()

    def test_from_settings_accepts_camel_case(self):
        config = PreprocessConfig.from_settings({
            "preprocess": False,
            "binarizeMode": "adaptive",
            "adaptiveWindowSize": 21,
            "morphologicalOps": True,
            "morphKernelSize": 3,
            "unrelated": "ignored",
        })
        assert config.enabled is False
        assert config.binarize_mode == AdaptiveThreshold(window_size=21)
        assert config.morphological_ops is True
        assert config.morph_kernel_size == 3

    def test_from_settings_fixed_mode_uses_threshold(self):
        config = PreprocessConfig.from_settings(
            {"binarize_mode": "Fixed", "binarize_threshold": 90}
        )
        assert config.binarize_mode == FixedThreshold(threshold=90)

    def test_from_settings_unknown_mode_raises(self):
        with pytest.raises(InvalidConfig, match="Unknown binarize mode"):
            PreprocessConfig.from_settings({"binarizeMode": "sauvola"})

    def test_settings_round_trip(self):
        config = PreprocessConfig(
            contrast=1.4,
            sharpen=True,
            binarize_mode=FixedThreshold(threshold=150),
        )
        assert PreprocessConfig.from_settings(config.to_settings()) == config


class TestBuildPipeline:
    def _names(self, config):
        return [step.name for step in build_pipeline(config)]

    def test_default_steps(self):
        assert self._names(PreprocessConfig()) == [
            "grayscale",
            "contrast(1,1)",
            "binarize(otsu)",
        ]

    def test_all_stages_in_fixed_order(self):
        config = PreprocessConfig(
            upscale=True,
            sharpen=True,
            denoise=True,
            morphological_ops=True,
            deskew=True,
        )
        assert self._names(config) == [
            "upscale(2)",
            "grayscale",
            "contrast(1,1)",
            "sharpen",
            "denoise",
            "binarize(otsu)",
            "close(2)",
            "deskew",
        ]

    def test_master_switch_keeps_only_upscale(self):
        config = PreprocessConfig(enabled=False, upscale=True, sharpen=True)
        assert self._names(config) == ["upscale(2)"]

    def test_contrast_always_runs_inside_block(self):
        config = PreprocessConfig(grayscale=False, binarize=False)
        assert self._names(config) == ["contrast(1,1)"]


class TestRunPipeline:
    def test_end_to_end_gradient_with_otsu(self):
        """Disabled stages are skipped and the output is pure black/white."""
        config = PreprocessConfig(
            upscale=False,
            grayscale=True,
            contrast=1.0,
            brightness=1.0,
            sharpen=False,
            denoise=False,
            binarize=True,
            binarize_mode=OtsuThreshold(),
            morphological_ops=False,
            deskew=False,
        )
        result = run_pipeline(_gradient(), config)

        assert result.dimensions == (100, 40)
        assert set(np.unique(result.processed.rgb).tolist()) <= {0, 255}
        assert list(result.step_metadata) == ["grayscale", "contrast", "binarize"]
        assert result.skew_angle is None
        assert result.scale_factor == 1.0
        assert 0 <= result.metadata["threshold"] <= 255

    @pytest.mark.parametrize("mode", [
        FixedThreshold(threshold=120),
        OtsuThreshold(),
        AdaptiveThreshold(window_size=7),
    ])
    def test_binarization_range_for_every_mode(self, random_buffer, mode):
        config = PreprocessConfig(
            binarize_mode=mode,
            sharpen=True,
            denoise=True,
            morphological_ops=True,
            deskew=True,
        )
        result = run_pipeline(random_buffer, config)
        assert set(np.unique(result.processed.rgb).tolist()) <= {0, 255}

    def test_preserves_input(self, random_buffer):
        original = random_buffer.data.copy()
        result = run_pipeline(random_buffer)
        assert np.array_equal(random_buffer.data, original)
        assert result.original.data is not random_buffer.data

    def test_upscale_reports_scale_factor(self, random_buffer):
        result = run_pipeline(random_buffer, PreprocessConfig(upscale=True, upscale_factor=2.0))
        assert result.scale_factor == 2.0
        assert result.dimensions == (64, 48)

    def test_deskew_reports_angle(self, random_buffer):
        result = run_pipeline(random_buffer, PreprocessConfig(deskew=True))
        assert result.skew_angle is not None
        assert -15.0 <= result.skew_angle <= 15.0
        assert result.step_metadata["deskew"]["status"] in {"applied", "declined"}

    def test_invalid_config_aborts_before_running(self, random_buffer):
        with pytest.raises(InvalidConfig):
            run_pipeline(random_buffer, PreprocessConfig(contrast=2.7))

    def test_invalid_input_raises(self):
        with pytest.raises(TypeError, match="Expected PixelBuffer"):
            run_pipeline(np.zeros((4, 4, 4), dtype=np.uint8))


class TestSteps:
    def test_contrast_step_name(self):
        assert ContrastBrightnessStep(1.5, 0.75).name == "contrast(1.5,0.75)"

    def test_fixed_binarize_step_reports_threshold(self, random_buffer):
        step = BinarizeStep(mode=FixedThreshold(threshold=100))
        _ = step.apply(random_buffer)
        assert step.get_metadata()["threshold"] == 100

    def test_adaptive_binarize_step_has_no_global_threshold(self, random_buffer):
        step = BinarizeStep(mode=AdaptiveThreshold(window_size=5))
        _ = step.apply(random_buffer)
        assert step.get_metadata() == {}

    def test_unknown_mode_raises(self, random_buffer):
        with pytest.raises(InvalidConfig, match="Unknown binarize mode"):
            BinarizeStep(mode="otsu").apply(random_buffer)

    def test_upscale_step_metadata(self):
        assert UpscaleStep(factor=3.0).get_metadata() == {"scale_factor": 3.0}


class TestPipeline:
    def test_empty_pipeline_returns_original(self, random_buffer):
        result = Pipeline(steps=[]).run(random_buffer)
        assert np.array_equal(result.final.data, random_buffer.data)
        assert result.final.data is not random_buffer.data

    def test_tracks_intermediates(self, random_buffer):
        pipeline = Pipeline(steps=[GrayscaleStep(), BinarizeStep(mode=OtsuThreshold())])
        result = pipeline.run(random_buffer)
        assert [s.name for s in result.steps] == ["grayscale", "binarize(otsu)"]
        assert result.get_intermediate("grayscale").is_grayscale()
        assert result.get_intermediate("unknown") is None
        assert isinstance(result.get_metadata("threshold"), int)

    def test_saves_artifacts(self, tmp_path, random_buffer):
        pipeline = Pipeline(steps=[GrayscaleStep(), BinarizeStep(mode=OtsuThreshold())])
        result = pipeline.run(random_buffer, artifact_dir=str(tmp_path))
        assert set(result.artifact_paths) == {"original", "grayscale", "binarize"}
        assert (tmp_path / "original.png").exists()
        assert (tmp_path / "binarize.png").exists()

    def test_declined_deskew_saves_no_artifact(self, tmp_path):
        page = np.full((40, 80), 255, dtype=np.uint8)
        page[20, 5:75] = 0
        result = Pipeline(steps=[DeskewStep()]).run(
            PixelBuffer.from_array(page), artifact_dir=str(tmp_path)
        )
        assert result.step_metadata["deskew"]["status"] == "declined"
        assert "deskew" not in result.artifact_paths
        assert not (tmp_path / "deskew.png").exists()
