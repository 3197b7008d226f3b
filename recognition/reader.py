"""
Image-to-text orchestration: preprocess, encode, recognize.

This module ties the preprocessing pipeline to a recognizer backend, the
way the host application drives them: decode the picked image, run the
configured pipeline, hand the encoded PNG to the recognizer and return its
text untouched together with the preview images.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import config
from preprocessing import PreprocessConfig, PreprocessResult, preprocess_image_bytes, render_preview

from .backend import Recognizer

logger = logging.getLogger(__name__)


@dataclass
class ReadResult:
    """Recognized text plus the images shown next to it.

    Attributes:
        text: Text exactly as returned by the recognizer.
        processed_png: Encoded processed canvas that was recognized.
        preview_png: Unmodified, down-scaled copy of the input.
        preprocess: Full preprocessing result (intermediates and metadata).
        backend: Name of the recognizer that produced the text.
    """

    text: str
    processed_png: bytes
    preview_png: bytes
    preprocess: PreprocessResult
    backend: str


def read_text(
    recognizer: Recognizer,
    image_data: bytes,
    preprocess_config: PreprocessConfig | None = None,
    language: str = config.OCR_LANGUAGE,
    page_seg_mode: int = config.OCR_PAGE_SEG_MODE,
    engine_mode: int = config.OCR_ENGINE_MODE,
    preview_width: int = config.PREVIEW_MAX_WIDTH,
    artifact_dir: str | None = None,
) -> ReadResult:
    """Preprocess an image and recognize its text.

    Raises:
        PreprocessError: If decoding, preprocessing or encoding fails.
        RecognitionError: If the recognizer fails.
    """
    processed_png, result = preprocess_image_bytes(
        image_data, preprocess_config, artifact_dir=artifact_dir
    )
    preview_png = render_preview(image_data, preview_width)

    width, height = result.dimensions
    logger.info("Recognizing %dx%d image with %s", width, height, recognizer.name)
    text = recognizer.recognize(processed_png, language, page_seg_mode, engine_mode)

    return ReadResult(
        text=text,
        processed_png=processed_png,
        preview_png=preview_png,
        preprocess=result,
        backend=recognizer.name,
    )
