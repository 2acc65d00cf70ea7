"""Turn raw Gemini text into a validated extraction response."""
from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from labdash.schemas.extraction import ExtractionResponse
from labdash.services.errors import MalformedExtractionError

logger = logging.getLogger("labdash")

FENCE = "```"


def strip_code_fence(raw_text: str) -> str:
    cleaned = (raw_text or "").strip()
    if cleaned.startswith(FENCE):
        cleaned = cleaned[len(FENCE):]
        # the rest of the opening line is a language tag ("json", "json-ld", ...)
        first_line, sep, rest = cleaned.partition("\n")
        if sep and not first_line.lstrip().startswith(("{", "[")):
            cleaned = rest
        elif cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    if cleaned.endswith(FENCE):
        cleaned = cleaned[: -len(FENCE)]
    return cleaned.strip()


def parse_extraction_response(raw_text: str) -> ExtractionResponse:
    cleaned = strip_code_fence(raw_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning({"function": "parse_extraction_response", "error": str(exc), "raw": (raw_text or "")[:500]})
        raise MalformedExtractionError(raw_text, f"invalid JSON ({exc.msg})") from exc

    if not isinstance(data, dict):
        raise MalformedExtractionError(raw_text, "expected a JSON object")
    if not isinstance(data.get("parameters"), list):
        raise MalformedExtractionError(raw_text, "missing 'parameters' array")

    try:
        return ExtractionResponse.model_validate(data)
    except ValidationError as exc:
        logger.warning({"function": "parse_extraction_response", "error": str(exc), "raw": (raw_text or "")[:500]})
        raise MalformedExtractionError(raw_text, "unexpected response shape") from exc


__all__ = ["parse_extraction_response", "strip_code_fence"]
