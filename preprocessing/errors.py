"""
Failure types raised by the preprocessing pipeline.

Every failure carries an ErrorKind and a human-readable message. None of
them are retried internally; a failure at any stage aborts the run and the
partially processed buffer is discarded.
"""

from enum import Enum


class ErrorKind(Enum):
    DECODE_FAILURE = "decode_failure"
    ENCODE_FAILURE = "encode_failure"
    INVALID_CONFIG = "invalid_config"
    EMPTY_CANVAS = "empty_canvas"


class PreprocessError(Exception):
    """Base class for all preprocessing failures."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class DecodeFailure(PreprocessError):
    """Input bytes do not parse as a raster image."""

    kind = ErrorKind.DECODE_FAILURE


class EncodeFailure(PreprocessError):
    """Processed buffer could not be serialized."""

    kind = ErrorKind.ENCODE_FAILURE


class InvalidConfig(PreprocessError, ValueError):
    """A configuration parameter is out of range or numerically unsafe."""

    kind = ErrorKind.INVALID_CONFIG


class EmptyCanvas(PreprocessError):
    """Canvas has zero width or height."""

    kind = ErrorKind.EMPTY_CANVAS
