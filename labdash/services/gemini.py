"""Gemini vision calls with an ordered model fallback."""
from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from labdash.services.errors import AllModelsFailedError, GeminiError

logger = logging.getLogger("labdash")

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_GEMINI_MODELS = (
    "gemini-2.0-flash-exp",
    "gemini-1.5-flash-latest",
    "gemini-1.5-pro-latest",
    "gemini-pro-vision",
)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (ValueError, TypeError):
        return default


def gemini_api_key() -> str:
    return (os.getenv("GEMINI_API_KEY") or "").strip()


def configured_models() -> List[str]:
    """Model ids to try, most capable first. ``GEMINI_MODELS`` overrides."""
    raw = (os.getenv("GEMINI_MODELS") or "").strip()
    if not raw:
        return list(DEFAULT_GEMINI_MODELS)
    return [m.strip() for m in raw.split(",") if m.strip()]


class GeminiClient:
    """Thin REST client for ``models/{id}:generateContent``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = gemini_api_key() if api_key is None else api_key
        self.timeout_s = _env_float("GEMINI_TIMEOUT_S", 60.0) if timeout_s is None else timeout_s
        self.transport = transport

    async def generate_content(self, model_id: str, prompt: str, mime_type: str, base64_data: str) -> str:
        if not self.api_key:
            raise GeminiError("GEMINI_API_KEY is not configured", model=model_id)
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": base64_data}},
                    ],
                }
            ]
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(
                    f"{GEMINI_API_BASE}/{model_id}:generateContent",
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as exc:
            raise GeminiError(
                f"{model_id} returned HTTP {exc.response.status_code}",
                model=model_id,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise GeminiError(f"{model_id} request failed: {exc}", model=model_id) from exc
        return _response_text(model_id, data)


def _response_text(model_id: str, data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason")
        raise GeminiError(f"{model_id} returned no candidates" + (f" ({reason})" if reason else ""), model=model_id)
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text.strip():
        raise GeminiError(f"{model_id} returned an empty response", model=model_id)
    return text


@dataclass
class InvocationResult:
    text: str
    model_used: str


class ModelFallbackInvoker:
    """Try each configured model once, in order, until one answers."""

    def __init__(self, client: Optional[GeminiClient] = None, models: Optional[Sequence[str]] = None):
        self.client = client or GeminiClient()
        self.models = list(models) if models is not None else configured_models()

    async def invoke(self, document_bytes: bytes, mime_type: str, prompt: str) -> InvocationResult:
        base64_data = base64.b64encode(document_bytes).decode("utf-8")
        last_error: Optional[BaseException] = None
        attempts = 0
        for model_id in self.models:
            attempts += 1
            logger.info({"function": "invoke_model", "model": model_id, "stage": "attempt"})
            try:
                text = await self.client.generate_content(model_id, prompt, mime_type, base64_data)
            except Exception as exc:
                logger.warning({"function": "invoke_model", "model": model_id, "stage": "failed", "error": str(exc)})
                last_error = exc
                continue
            logger.info({"function": "invoke_model", "model": model_id, "stage": "ok", "chars": len(text)})
            return InvocationResult(text=text, model_used=model_id)
        raise AllModelsFailedError(last_error, attempts=attempts)


__all__ = [
    "DEFAULT_GEMINI_MODELS",
    "GeminiClient",
    "InvocationResult",
    "ModelFallbackInvoker",
    "configured_models",
    "gemini_api_key",
]
