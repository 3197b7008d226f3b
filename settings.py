"""Persisted user settings.

Settings live in a single JSON file (``~/.ocrnote.json`` by default).
Stored values are merged over the defaults from ``config``, so a file
written by an older version, or a partial file, still loads.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

import config
from preprocessing import PreprocessConfig

logger = logging.getLogger(__name__)


class PreprocessingSettings(BaseModel):
    """Stored preprocessing knobs, flattened for the settings file."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = Field(default=config.PREPROCESS_ENABLED, alias="preprocess")
    upscale: bool = config.UPSCALE_ENABLED
    upscale_factor: float = Field(default=config.UPSCALE_FACTOR, alias="upscaleFactor")
    grayscale: bool = config.GRAYSCALE_ENABLED
    contrast: float = config.CONTRAST
    brightness: float = config.BRIGHTNESS
    sharpen: bool = config.SHARPEN_ENABLED
    denoise: bool = config.DENOISE_ENABLED
    binarize: bool = config.BINARIZE_ENABLED
    binarize_mode: str = Field(default=config.BINARIZE_MODE, alias="binarizeMode")
    binarize_threshold: int = Field(default=config.BINARIZE_THRESHOLD, alias="binarizeThreshold")
    adaptive_window_size: int = Field(
        default=config.ADAPTIVE_WINDOW_SIZE, alias="adaptiveWindowSize"
    )
    morphological_ops: bool = Field(default=config.MORPHOLOGY_ENABLED, alias="morphologicalOps")
    morph_kernel_size: int = Field(default=config.MORPH_KERNEL_SIZE, alias="morphKernelSize")
    deskew: bool = config.DESKEW_ENABLED

    @field_validator("binarize_mode")
    @classmethod
    def _validate_mode(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"fixed", "otsu", "adaptive"}:
            raise ValueError(f"Invalid binarize mode: {v!r}")
        return v

    def to_config(self) -> PreprocessConfig:
        """Immutable pipeline config for one run."""
        return PreprocessConfig.from_settings(self.model_dump())


class NoteSettings(BaseModel):
    """All persisted settings."""

    model_config = ConfigDict(populate_by_name=True)

    default_folder: str = Field(default=config.DEFAULT_NOTE_FOLDER, alias="defaultFolder")
    recognizer: str = config.RECOGNIZER_BACKEND
    language: str = config.OCR_LANGUAGE
    page_seg_mode: int = Field(default=config.OCR_PAGE_SEG_MODE, alias="pageSegMode")
    engine_mode: int = Field(default=config.OCR_ENGINE_MODE, alias="engineMode")
    preprocessing: PreprocessingSettings = Field(default_factory=PreprocessingSettings)


def get_settings_path() -> Path:
    return Path.home() / config.SETTINGS_FILENAME


def load_settings(path: Path | None = None) -> NoteSettings:
    """Load settings, falling back to defaults when the file is absent."""
    if path is None:
        path = get_settings_path()
    if not path.exists():
        return NoteSettings()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return NoteSettings.model_validate(data)


def save_settings(settings: NoteSettings, path: Path | None = None) -> Path:
    if path is None:
        path = get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.model_dump(), f, indent=2)
    logger.debug("Saved settings to %s", path)
    return path


def _coerce(raw: str) -> Any:
    lowered = raw.strip().lower()
    if lowered in {"true", "yes", "on"}:
        return True
    if lowered in {"false", "no", "off"}:
        return False
    return raw


def update_setting(settings: NoteSettings, key: str, value: str) -> NoteSettings:
    """Return a copy of settings with one dotted key set from a string.

    Keys address top-level fields (``default_folder``) or preprocessing
    fields (``preprocessing.contrast``). Values are validated by the models.

    Raises:
        KeyError: If the key does not name a setting.
        pydantic.ValidationError: If the value does not validate.
    """
    data = settings.model_dump()
    section, _, field_name = key.rpartition(".")
    target = data
    if section:
        if section != "preprocessing":
            raise KeyError(key)
        target = data["preprocessing"]
    if field_name not in target:
        raise KeyError(key)
    target[field_name] = _coerce(value)
    return NoteSettings.model_validate(data)
