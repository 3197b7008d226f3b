"""
Configuration for the preprocessing pipeline.

All preprocessing steps are parameterized through PreprocessConfig to ensure
reproducibility and easy experimentation with different settings. The
binarization mode is a closed set of variants (FixedThreshold, OtsuThreshold,
AdaptiveThreshold) rather than a string tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

import numpy as np

from config import (
    ADAPTIVE_WINDOW_RANGE,
    ADAPTIVE_WINDOW_SIZE,
    BINARIZE_ENABLED,
    BINARIZE_MODE,
    BINARIZE_THRESHOLD,
    BINARIZE_THRESHOLD_RANGE,
    BRIGHTNESS,
    BRIGHTNESS_RANGE,
    CONTRAST,
    CONTRAST_RANGE,
    CONTRAST_SINGULARITY,
    DENOISE_ENABLED,
    DESKEW_ENABLED,
    GRAYSCALE_ENABLED,
    MAX_UPSCALE_FACTOR,
    MIN_UPSCALE_FACTOR,
    MORPH_KERNEL_RANGE,
    MORPH_KERNEL_SIZE,
    MORPHOLOGY_ENABLED,
    PREPROCESS_ENABLED,
    SHARPEN_ENABLED,
    UPSCALE_ENABLED,
    UPSCALE_FACTOR,
)

from .buffer import PixelBuffer
from .errors import InvalidConfig


@dataclass(frozen=True)
class FixedThreshold:
    """Binarize with a fixed global threshold."""

    threshold: int = BINARIZE_THRESHOLD

    def validate(self) -> None:
        low, high = BINARIZE_THRESHOLD_RANGE
        if not (low <= self.threshold <= high):
            raise InvalidConfig(
                f"binarize threshold must be within [{low}, {high}], got {self.threshold}"
            )


@dataclass(frozen=True)
class OtsuThreshold:
    """Binarize with the Otsu global threshold."""

    def validate(self) -> None:
        return None


@dataclass(frozen=True)
class AdaptiveThreshold:
    """Binarize with a Bradley local threshold over a square window."""

    window_size: int = ADAPTIVE_WINDOW_SIZE

    def validate(self) -> None:
        low, high = ADAPTIVE_WINDOW_RANGE
        if not (low <= self.window_size <= high):
            raise InvalidConfig(
                f"adaptive window size must be within [{low}, {high}], got {self.window_size}"
            )
        if self.window_size % 2 == 0:
            raise InvalidConfig(
                f"adaptive window size must be odd, got {self.window_size}"
            )


BinarizeMode = Union[FixedThreshold, OtsuThreshold, AdaptiveThreshold]


def binarize_mode_from_name(
    name: str,
    threshold: int = BINARIZE_THRESHOLD,
    window_size: int = ADAPTIVE_WINDOW_SIZE,
) -> BinarizeMode:
    """Parse a persisted mode name ("fixed", "otsu", "adaptive")."""
    key = name.strip().lower()
    if key == "fixed":
        return FixedThreshold(threshold=int(threshold))
    if key == "otsu":
        return OtsuThreshold()
    if key == "adaptive":
        return AdaptiveThreshold(window_size=int(window_size))
    raise InvalidConfig(f"Unknown binarize mode: {name!r}")


def binarize_mode_name(mode: BinarizeMode) -> str:
    if isinstance(mode, FixedThreshold):
        return "fixed"
    if isinstance(mode, OtsuThreshold):
        return "otsu"
    if isinstance(mode, AdaptiveThreshold):
        return "adaptive"
    raise InvalidConfig(f"Unknown binarize mode: {mode!r}")


# Persisted settings may use the host's camelCase keys
_SETTING_ALIASES = {
    "preprocess": "enabled",
    "preprocessing": "enabled",
    "upscaleFactor": "upscale_factor",
    "binarizeMode": "binarize_mode",
    "binarizeThreshold": "binarize_threshold",
    "adaptiveWindowSize": "adaptive_window_size",
    "morphologicalOps": "morphological_ops",
    "morphKernelSize": "morph_kernel_size",
}


@dataclass(frozen=True)
class PreprocessConfig:
    """Configuration for all preprocessing steps.

    This immutable configuration object parameterizes every step of the
    preprocessing pipeline. It is created once per run and never mutated.

    Attributes:
        enabled: Master switch for every step after upscaling.
        upscale: Whether to enlarge the canvas first.
        upscale_factor: Enlargement factor (>= 1).
        grayscale: Whether to convert to grayscale.
        contrast: Contrast setting in [0.5, 3.0], strictly below 2.59.
        brightness: Brightness multiplier in [0.5, 2.0].
        sharpen: Whether to apply the 3x3 sharpening kernel.
        denoise: Whether to apply the 3x3 median filter.
        binarize: Whether to binarize.
        binarize_mode: FixedThreshold, OtsuThreshold or AdaptiveThreshold.
        morphological_ops: Whether to apply morphological closing.
        morph_kernel_size: Closing kernel size in [1, 5].
        deskew: Whether to detect and correct skew.
    """

    enabled: bool = PREPROCESS_ENABLED

    upscale: bool = UPSCALE_ENABLED
    upscale_factor: float = UPSCALE_FACTOR

    grayscale: bool = GRAYSCALE_ENABLED
    contrast: float = CONTRAST
    brightness: float = BRIGHTNESS

    sharpen: bool = SHARPEN_ENABLED
    denoise: bool = DENOISE_ENABLED

    binarize: bool = BINARIZE_ENABLED
    binarize_mode: BinarizeMode = field(
        default_factory=lambda: binarize_mode_from_name(BINARIZE_MODE)
    )

    morphological_ops: bool = MORPHOLOGY_ENABLED
    morph_kernel_size: int = MORPH_KERNEL_SIZE

    deskew: bool = DESKEW_ENABLED

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            InvalidConfig: If any parameter is invalid.
        """
        if not (MIN_UPSCALE_FACTOR <= self.upscale_factor <= MAX_UPSCALE_FACTOR):
            raise InvalidConfig(
                f"upscale_factor must be within [{MIN_UPSCALE_FACTOR}, {MAX_UPSCALE_FACTOR}], "
                f"got {self.upscale_factor}"
            )

        low, high = CONTRAST_RANGE
        if not (low <= self.contrast <= high):
            raise InvalidConfig(f"contrast must be within [{low}, {high}], got {self.contrast}")
        if self.contrast >= CONTRAST_SINGULARITY:
            raise InvalidConfig(
                f"contrast={self.contrast} is at or above {CONTRAST_SINGULARITY}, "
                "where the contrast curve has no finite value"
            )

        low, high = BRIGHTNESS_RANGE
        if not (low <= self.brightness <= high):
            raise InvalidConfig(
                f"brightness must be within [{low}, {high}], got {self.brightness}"
            )

        if not isinstance(self.binarize_mode, (FixedThreshold, OtsuThreshold, AdaptiveThreshold)):
            raise InvalidConfig(f"Unknown binarize mode: {self.binarize_mode!r}")
        self.binarize_mode.validate()

        low, high = MORPH_KERNEL_RANGE
        if not (low <= self.morph_kernel_size <= high):
            raise InvalidConfig(
                f"morph_kernel_size must be within [{low}, {high}], got {self.morph_kernel_size}"
            )

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> PreprocessConfig:
        """Build a config from a persisted settings mapping.

        Accepts snake_case or camelCase keys. The binarization mode may be
        given as a name together with binarize_threshold / adaptive_window_size.
        Unknown keys are ignored; missing keys keep their defaults.
        """
        values = {_SETTING_ALIASES.get(key, key): value for key, value in settings.items()}

        threshold = values.pop("binarize_threshold", BINARIZE_THRESHOLD)
        window_size = values.pop("adaptive_window_size", ADAPTIVE_WINDOW_SIZE)
        mode = values.get("binarize_mode", BINARIZE_MODE)
        if isinstance(mode, str):
            values["binarize_mode"] = binarize_mode_from_name(mode, threshold, window_size)

        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in values.items() if key in known})

    def to_settings(self) -> dict[str, Any]:
        """Flatten into the persisted settings mapping (inverse of from_settings)."""
        mode = self.binarize_mode
        return {
            "enabled": self.enabled,
            "upscale": self.upscale,
            "upscale_factor": self.upscale_factor,
            "grayscale": self.grayscale,
            "contrast": self.contrast,
            "brightness": self.brightness,
            "sharpen": self.sharpen,
            "denoise": self.denoise,
            "binarize": self.binarize,
            "binarize_mode": binarize_mode_name(mode),
            "binarize_threshold": (
                mode.threshold if isinstance(mode, FixedThreshold) else BINARIZE_THRESHOLD
            ),
            "adaptive_window_size": (
                mode.window_size if isinstance(mode, AdaptiveThreshold) else ADAPTIVE_WINDOW_SIZE
            ),
            "morphological_ops": self.morphological_ops,
            "morph_kernel_size": self.morph_kernel_size,
            "deskew": self.deskew,
        }


@dataclass
class PreprocessResult:
    """Result of the preprocessing pipeline.

    Attributes:
        original: Input buffer (copy). Preserved for reference and previews.
        processed: Final processed buffer, handed to text recognition.
        config: The configuration used for preprocessing.
        scale_factor: Ratio of processed width to original width.
        skew_angle: Detected skew in degrees, or None if deskew did not run.
        artifact_paths: Dict mapping step names to saved file paths.
        step_metadata: Per-step status and metrics keyed by step name.
        metadata: Aggregated metadata from all preprocessing steps.
    """

    original: PixelBuffer
    processed: PixelBuffer
    config: PreprocessConfig
    scale_factor: float = 1.0
    skew_angle: float | None = None
    artifact_paths: dict[str, str] = field(default_factory=dict)
    step_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ocr_image(self) -> np.ndarray:
        """RGBA array of the processed image."""
        return self.processed.data

    @property
    def dimensions(self) -> tuple[int, int]:
        """(width, height) of the processed image."""
        return self.processed.width, self.processed.height
