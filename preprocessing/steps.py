"""
Preprocessing step classes with a common interface.

Each step is a dataclass that implements the PreprocessStep interface.
Steps are pure: they take an input buffer and return a new buffer without
mutating the original.

Usage:
    from preprocessing.steps import GrayscaleStep, BinarizeStep, Pipeline

    pipeline = Pipeline(steps=[
        GrayscaleStep(),
        BinarizeStep(mode=OtsuThreshold()),
    ])
    result = pipeline.run(buf)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cv2

from config import MIN_ROTATION_ANGLE

from .buffer import PixelBuffer
from .config import AdaptiveThreshold, BinarizeMode, FixedThreshold, OtsuThreshold
from .errors import InvalidConfig
from .filters import denoise_median, sharpen
from .morphology import closing
from .point_ops import adjust_contrast_brightness, binarize_fixed, to_grayscale, upscale
from .skew import deskew
from .threshold import adaptive_threshold, binarize_otsu

logger = logging.getLogger(__name__)


class PreprocessStep(ABC):
    """Base class for preprocessing steps.

    All preprocessing steps must implement this interface. Steps should be
    pure functions: they take an input buffer and return a new output without
    mutating the original.

    Steps can optionally produce metadata (like the chosen threshold or the
    detected skew angle) that is reported alongside the result.
    """

    @abstractmethod
    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        """Apply this preprocessing step to a buffer.

        Must be pure: never mutates the input buffer.

        Args:
            buf: Input pixel buffer.

        Returns:
            Processed buffer as a new PixelBuffer.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logging and debugging."""
        pass

    def get_metadata(self) -> dict[str, Any]:
        """Return any metadata produced by this step.

        Returns:
            Dictionary of metadata. Empty by default.
        """
        return {}


@dataclass
class UpscaleStep(PreprocessStep):
    """Enlarge the canvas by a constant factor (bicubic).

    Attributes:
        factor: Enlargement factor, at least 1.
    """

    factor: float

    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        return upscale(buf, self.factor)

    @property
    def name(self) -> str:
        return f"upscale({self.factor:g})"

    def get_metadata(self) -> dict[str, Any]:
        return {"scale_factor": float(self.factor)}


@dataclass(frozen=True)
class GrayscaleStep(PreprocessStep):
    """Set R=G=B to the rounded channel mean."""

    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        return to_grayscale(buf)

    @property
    def name(self) -> str:
        return "grayscale"


@dataclass(frozen=True)
class ContrastBrightnessStep(PreprocessStep):
    """Remap every color channel through the contrast curve and brightness offset.

    Attributes:
        contrast: Contrast setting, strictly below 2.59.
        brightness: Brightness multiplier; 1.0 adds no offset.
    """

    contrast: float = 1.0
    brightness: float = 1.0

    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        return adjust_contrast_brightness(buf, self.contrast, self.brightness)

    @property
    def name(self) -> str:
        return f"contrast({self.contrast:g},{self.brightness:g})"


@dataclass(frozen=True)
class SharpenStep(PreprocessStep):
    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        return sharpen(buf)

    @property
    def name(self) -> str:
        return "sharpen"


@dataclass(frozen=True)
class DenoiseStep(PreprocessStep):
    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        return denoise_median(buf)

    @property
    def name(self) -> str:
        return "denoise"


@dataclass(frozen=True)
class BinarizeStep(PreprocessStep):
    """Binarize to pure black and white using the configured mode.

    The global threshold actually used (fixed or Otsu) is reported as a
    step metric.

    Attributes:
        mode: FixedThreshold, OtsuThreshold or AdaptiveThreshold.
    """

    mode: BinarizeMode = field(default_factory=OtsuThreshold)
    _threshold: int | None = field(default=None, init=False, repr=False)

    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        mode = self.mode
        if isinstance(mode, FixedThreshold):
            object.__setattr__(self, "_threshold", mode.threshold)
            return binarize_fixed(buf, mode.threshold)
        if isinstance(mode, OtsuThreshold):
            result, threshold = binarize_otsu(buf)
            object.__setattr__(self, "_threshold", threshold)
            return result
        if isinstance(mode, AdaptiveThreshold):
            return adaptive_threshold(buf, mode.window_size)
        raise InvalidConfig(f"Unknown binarize mode: {mode!r}")

    @property
    def name(self) -> str:
        if isinstance(self.mode, FixedThreshold):
            return f"binarize(fixed={self.mode.threshold})"
        if isinstance(self.mode, AdaptiveThreshold):
            return f"binarize(adaptive={self.mode.window_size})"
        return "binarize(otsu)"

    def get_metadata(self) -> dict[str, Any]:
        if self._threshold is None:
            return {}
        return {
            "threshold": self._threshold,
            "step_metrics": {"threshold": self._threshold},
        }


@dataclass(frozen=True)
class MorphCloseStep(PreprocessStep):
    """Morphological closing to reconnect broken strokes.

    Attributes:
        kernel_size: Structuring element size in [1, 5].
    """

    kernel_size: int = 2

    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        return closing(buf, self.kernel_size)

    @property
    def name(self) -> str:
        return f"close({self.kernel_size})"


@dataclass(frozen=True)
class DeskewStep(PreprocessStep):
    """Detect the skew angle and rotate it away.

    Rotation is declined (and no artifact saved) when the angle is within
    min_angle of horizontal.

    Attributes:
        min_angle: Smallest angle magnitude worth a rotation, in degrees.
    """

    min_angle: float = MIN_ROTATION_ANGLE
    _angle: float | None = field(default=None, init=False, repr=False)
    _score: float | None = field(default=None, init=False, repr=False)
    _applied: bool = field(default=False, init=False, repr=False)

    def apply(self, buf: PixelBuffer) -> PixelBuffer:
        result, skew, rotated = deskew(buf, self.min_angle)
        object.__setattr__(self, "_angle", skew.angle_degrees)
        object.__setattr__(self, "_score", skew.score)
        object.__setattr__(self, "_applied", rotated)
        return result

    @property
    def name(self) -> str:
        return "deskew"

    def get_metadata(self) -> dict[str, Any]:
        if self._angle is None:
            return {}
        return {
            "skew_angle": self._angle,
            "step_status": "applied" if self._applied else "declined",
            "skip_artifact": not self._applied,
            "step_metrics": {
                "angle": self._angle,
                "variance": self._score,
                "min_angle": self.min_angle,
            },
        }


@dataclass
class StepResult:
    """Result of applying a single preprocessing step.

    Attributes:
        name: Name of the step that produced this result.
        image: Output buffer from the step.
        metadata: Any metadata produced by the step (e.g., threshold).
        artifact_path: Path where the image was saved (if artifact saving enabled).
    """

    name: str
    image: PixelBuffer
    metadata: dict[str, Any] = field(default_factory=dict)
    artifact_path: str | None = None


@dataclass
class PipelineStepResults:
    """Results from running a preprocessing pipeline.

    Provides access to all intermediate buffers and aggregated metadata.

    Attributes:
        original: The original input buffer.
        steps: List of StepResult for each step in order.
        original_artifact_path: Path where original image was saved (if artifact saving enabled).
        step_metadata: Status and metrics per step, keyed by normalized step name.
    """

    original: PixelBuffer
    steps: list[StepResult] = field(default_factory=list)
    original_artifact_path: str | None = None
    step_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def final(self) -> PixelBuffer:
        """Get the final processed buffer."""
        if not self.steps:
            return self.original
        return self.steps[-1].image

    def get_intermediate(self, step_name: str) -> PixelBuffer | None:
        """Get intermediate buffer by step name (e.g. "grayscale", "close(2)")."""
        for step in self.steps:
            if step.name == step_name:
                return step.image
        return None

    def get_metadata(self, key: str) -> Any | None:
        """Get metadata value from any step.

        Searches steps in order and returns the first match.
        """
        for step in self.steps:
            if key in step.metadata:
                return step.metadata[key]
        return None

    @property
    def scale_factor(self) -> float:
        return self.get_metadata("scale_factor") or 1.0

    @property
    def all_metadata(self) -> dict[str, Any]:
        """Get all metadata from all steps, merged into one dict.

        Later steps override earlier ones if keys conflict.
        """
        result = {}
        for step in self.steps:
            result.update(step.metadata)
        return result

    @property
    def artifact_paths(self) -> dict[str, str]:
        """Map of normalized step name to saved artifact path."""
        paths = {}
        if self.original_artifact_path:
            paths["original"] = self.original_artifact_path
        for step in self.steps:
            if step.artifact_path:
                # "close(2)" -> "close"
                key = step.name.split("(")[0]
                paths[key] = step.artifact_path
        return paths


def _save_image(buf: PixelBuffer, path: str) -> None:
    """Save a buffer to disk as PNG."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(path, cv2.cvtColor(buf.data, cv2.COLOR_RGBA2BGRA))


@dataclass
class Pipeline:
    """A sequence of preprocessing steps to apply to a buffer.

    The pipeline runs each step in order, passing the output of one step
    as the input to the next. All intermediate results are preserved. A step
    that raises aborts the run; nothing partial is returned.

    Attributes:
        steps: List of PreprocessStep instances to apply in order.
    """

    steps: list[PreprocessStep]

    def run(
        self,
        buf: PixelBuffer,
        artifact_dir: str | None = None,
    ) -> PipelineStepResults:
        """Run the pipeline on a buffer.

        Args:
            buf: Input pixel buffer.
            artifact_dir: Optional directory to save intermediate images.
                         If provided, saves original.png and each step's output.

        Returns:
            PipelineStepResults containing all intermediate buffers and metadata.
        """
        result = PipelineStepResults(original=buf.copy())
        current = buf.copy()

        if artifact_dir:
            original_path = f"{artifact_dir}/original.png"
            _save_image(buf, original_path)
            result.original_artifact_path = original_path

        for step in self.steps:
            logger.debug("Applying %s to %dx%d canvas", step.name, current.width, current.height)
            output = step.apply(current)
            metadata = step.get_metadata()
            step_key = step.name.split("(")[0]
            result.step_metadata[step_key] = {
                "status": metadata.get("step_status", "applied"),
                "metrics": metadata.get("step_metrics", {}),
            }

            artifact_path = None
            skip_artifact = bool(metadata.get("skip_artifact", False))
            if artifact_dir and not skip_artifact:
                artifact_path = f"{artifact_dir}/{step_key}.png"
                _save_image(output, artifact_path)

            result.steps.append(
                StepResult(
                    name=step.name,
                    image=output,
                    metadata=metadata,
                    artifact_path=artifact_path,
                )
            )
            current = output

        return result

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)
