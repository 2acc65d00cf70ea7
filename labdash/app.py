# --- imports (top of labdash/app.py) ---
import json
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = BASE_DIR / ".env"

# Load env vars before importing modules that read them at import time
load_dotenv(ENV_PATH, override=False)

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from labdash.middleware.tracing import TRACE_ID_CTX_VAR, TracingMiddleware
from labdash.models import init_db
from labdash.routes import auth_routes, extract_routes, lab_parameter_routes
from labdash.utils.exceptions import (
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_exception,
)
from labdash.utils.rate_limit import limiter


# --- logging setup ---
class JsonFormatter(logging.Formatter):
    def format(self, record):  # type: ignore[override]
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "function": record.funcName,
            "trace_id": TRACE_ID_CTX_VAR.get() or None,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> logging.Logger:
    logger = logging.getLogger("labdash")
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    return logger


logger = configure_logging()

# --- app & router setup ---
CORS_ORIGINS = [
    o.strip()
    for o in (os.getenv("CORS_ORIGINS") or "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

app = FastAPI(title="LabDash Backend", version="0.1.0")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-trace-id"],
)

app.add_exception_handler(StarletteHTTPException, handle_http_exception)
app.add_exception_handler(HTTPException, handle_http_exception)
app.add_exception_handler(RequestValidationError, handle_validation_exception)
app.add_exception_handler(Exception, handle_unhandled_exception)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.info({
        "function": "rate_limit",
        "path": str(request.url.path),
        "client": get_remote_address(request),
    })
    return JSONResponse(
        status_code=429,
        headers={"Retry-After": "60"},
        content={
            "code": "TOO_MANY_REQUESTS",
            "message": "Too many requests. Please wait a bit and try again.",
            "trace_id": TRACE_ID_CTX_VAR.get(),
        },
    )


@app.on_event("startup")
def _init_db():
    started = time.monotonic()
    init_db()
    logger.info({"function": "init_db", "ms": int((time.monotonic() - started) * 1000)})


@app.get("/api/health")
def health():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(extract_routes.router)
app.include_router(lab_parameter_routes.router)
