"""
Text recognition boundary.

Recognizers are black boxes with one operation,
``recognize(image_data, language, page_seg_mode, engine_mode) -> str``.
This package wraps Tesseract and easyocr behind that interface and ties
them to the preprocessing pipeline via ``read_text()``.
"""

from .backend import (
    EasyOCRRecognizer,
    RecognitionError,
    Recognizer,
    TesseractRecognizer,
    available_backends,
    get_recognizer,
    is_tesseract_available,
)
from .reader import ReadResult, read_text

__all__ = [
    "Recognizer",
    "RecognitionError",
    "TesseractRecognizer",
    "EasyOCRRecognizer",
    "available_backends",
    "get_recognizer",
    "is_tesseract_available",
    "ReadResult",
    "read_text",
]
