"""Error taxonomy for document extraction and parameter ingestion."""
from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """A single uploaded document could not be turned into lab parameters."""


class GeminiError(Exception):
    """One call to one Gemini model failed."""

    def __init__(self, message: str, model: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.model = model
        self.status_code = status_code


class AllModelsFailedError(ExtractionError):
    def __init__(self, last_error: Optional[BaseException], attempts: int = 0):
        detail = str(last_error) if last_error else "no models configured"
        super().__init__(f"All Gemini models failed after {attempts} attempt(s): {detail}")
        self.last_error = last_error
        self.attempts = attempts


class MalformedExtractionError(ExtractionError):
    def __init__(self, raw_text: str, reason: str):
        super().__init__(f"Failed to parse AI response: {reason}")
        self.raw_text = raw_text
        self.reason = reason


class UnsupportedDocumentError(ExtractionError):
    pass


class DuplicateParameterError(Exception):
    """The storage layer rejected an insert on the primary duplicate key."""


class InsertionError(Exception):
    """A single parameter could not be persisted."""


__all__ = [
    "ExtractionError",
    "GeminiError",
    "AllModelsFailedError",
    "MalformedExtractionError",
    "UnsupportedDocumentError",
    "DuplicateParameterError",
    "InsertionError",
]
