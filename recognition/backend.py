"""
Text recognition backend interface and implementations.

The recognizer is a black box: it receives encoded image bytes and returns
the recognized text, which is passed through without interpretation.
"""

from __future__ import annotations

import dataclasses
import io
import logging
import shutil
from dataclasses import dataclass, field
from typing import Any, Protocol

import numpy as np
from PIL import Image

import config

logger = logging.getLogger(__name__)

# Tesseract language codes mapped to their easyocr equivalents
_EASYOCR_LANGUAGES = {
    "eng": "en",
    "deu": "de",
    "fra": "fr",
    "spa": "es",
    "ita": "it",
    "nld": "nl",
    "por": "pt",
}


class RecognitionError(Exception):
    """The recognizer backend failed to produce text."""


class Recognizer(Protocol):
    """Interface for text recognition backends."""

    name: str

    def recognize(
        self,
        image_data: bytes,
        language: str,
        page_seg_mode: int,
        engine_mode: int,
    ) -> str:
        """Recognize the text in an encoded image."""


def _open_image(image_data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(image_data))
        image.load()
    except OSError as e:
        raise RecognitionError(f"Recognizer could not read image: {e}") from e
    return image


def is_tesseract_available() -> bool:
    """Check if the Tesseract binary is installed."""
    return shutil.which("tesseract") is not None


@dataclass
class TesseractRecognizer:
    """Recognizer backed by the Tesseract binary via pytesseract.

    Attributes:
        tessdata_dir: Optional directory holding traineddata files.
    """

    tessdata_dir: str | None = None
    name: str = field(default="tesseract", init=False)

    def __post_init__(self) -> None:
        import pytesseract

        self._pytesseract = pytesseract
        if not is_tesseract_available():
            raise RecognitionError(
                "Tesseract binary not found. "
                "Install with: brew install tesseract (macOS) "
                "or apt-get install tesseract-ocr (Linux)"
            )

    def build_config(self, page_seg_mode: int, engine_mode: int) -> str:
        parts = [f"--psm {page_seg_mode}", f"--oem {engine_mode}"]
        if self.tessdata_dir:
            parts.insert(0, f"--tessdata-dir {self.tessdata_dir}")
        return " ".join(parts)

    def recognize(
        self,
        image_data: bytes,
        language: str = config.OCR_LANGUAGE,
        page_seg_mode: int = config.OCR_PAGE_SEG_MODE,
        engine_mode: int = config.OCR_ENGINE_MODE,
    ) -> str:
        image = _open_image(image_data)
        tess_config = self.build_config(page_seg_mode, engine_mode)
        logger.debug("Running tesseract (lang=%s, %s)", language, tess_config)
        try:
            return self._pytesseract.image_to_string(image, lang=language, config=tess_config)
        except self._pytesseract.TesseractError as e:
            raise RecognitionError(f"Tesseract failed: {e}") from e


@dataclass
class EasyOCRRecognizer:
    """Recognizer backed by easyocr.

    easyocr has no page segmentation or engine modes; those arguments are
    accepted for interface compatibility and ignored. One reader is cached
    per language.

    Attributes:
        gpu: Whether easyocr may use a GPU.
    """

    gpu: bool = False
    name: str = field(default="easyocr", init=False)
    _readers: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def _reader(self, language: str):
        code = _EASYOCR_LANGUAGES.get(language, language)
        if code not in self._readers:
            import easyocr

            logger.info("Loading easyocr reader for %r", code)
            self._readers[code] = easyocr.Reader([code], gpu=self.gpu)
        return self._readers[code]

    def recognize(
        self,
        image_data: bytes,
        language: str = config.OCR_LANGUAGE,
        page_seg_mode: int = config.OCR_PAGE_SEG_MODE,
        engine_mode: int = config.OCR_ENGINE_MODE,
    ) -> str:
        image = _open_image(image_data).convert("RGB")
        reader = self._reader(language)
        lines = reader.readtext(np.array(image), detail=0, paragraph=True)
        return "\n".join(lines)


_BACKENDS: dict[str, type] = {
    "tesseract": TesseractRecognizer,
    "easyocr": EasyOCRRecognizer,
}


def available_backends() -> list[str]:
    return sorted(_BACKENDS)


def get_recognizer(backend_name: str | None = None, **kwargs) -> Recognizer:
    """Instantiate a recognizer by name.

    Args:
        backend_name: "tesseract" or "easyocr". Defaults to
            ``config.RECOGNIZER_BACKEND`` if None.
        **kwargs: Constructor keyword arguments for the backend.

    Raises:
        ValueError: If the backend name or any kwarg is unknown.
    """
    name = backend_name if backend_name is not None else config.RECOGNIZER_BACKEND
    backend_cls = _BACKENDS.get(name)
    if backend_cls is None:
        raise ValueError(f"Unknown recognizer backend: {name!r}")
    valid_fields = {f.name for f in dataclasses.fields(backend_cls) if f.init}
    unknown = set(kwargs) - valid_fields
    if unknown:
        raise ValueError(f"Unknown kwargs for backend {name!r}: {sorted(unknown)}")
    return backend_cls(**kwargs)
