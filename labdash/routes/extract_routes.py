# labdash/routes/extract_routes.py
import logging
import os
import re

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from labdash.auth.deps import get_current_user
from labdash.models.user import User
from labdash.services import extraction
from labdash.services.errors import (
    AllModelsFailedError,
    ExtractionError,
    MalformedExtractionError,
    UnsupportedDocumentError,
)
from labdash.services.gemini import ModelFallbackInvoker, gemini_api_key
from labdash.utils.rate_limit import EXTRACT_RATE_LIMIT, limiter, user_rate_key

logger = logging.getLogger("labdash")

router = APIRouter(prefix="/api", tags=["extract"])

MAX_FILE_MB = int(os.getenv("MAX_FILE_MB", "10"))


def sanitize_filename(name: str) -> str:
    name = os.path.basename(name or "file")
    name = re.sub(r"[^A-Za-z0-9_. ()-]", "_", name)
    return name or "file"


def get_invoker() -> ModelFallbackInvoker:
    if not gemini_api_key():
        raise HTTPException(
            status_code=400,
            detail="GEMINI_API_KEY is not configured. Please add it to your .env file.",
        )
    return ModelFallbackInvoker()


async def read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(data) > MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File size exceeds the {MAX_FILE_MB}MB limit")
    return data


def extraction_http_error(exc: ExtractionError) -> HTTPException:
    if isinstance(exc, UnsupportedDocumentError):
        return HTTPException(status_code=415, detail=str(exc))
    if isinstance(exc, MalformedExtractionError):
        return HTTPException(
            status_code=422,
            detail={"error": "Failed to parse AI response", "rawResponse": exc.raw_text},
        )
    if isinstance(exc, AllModelsFailedError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.post("/extract")
@limiter.limit(EXTRACT_RATE_LIMIT, key_func=user_rate_key)
async def extract(
    request: Request,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    invoker: ModelFallbackInvoker = Depends(get_invoker),
):
    """Extract and normalize parameters from one document without storing them."""
    data = await read_upload(file)
    name = sanitize_filename(file.filename or "upload")
    try:
        result = await extraction.extract_document(data, name, file.content_type, invoker=invoker)
    except ExtractionError as exc:
        logger.warning({"function": "extract", "file": name, "error": str(exc)})
        raise extraction_http_error(exc)
    return result.to_dict()
