import os

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

RATE_LIMIT_ENABLED = (os.getenv("RATE_LIMIT_ENABLED", "true") or "true").strip().lower() not in {"0", "false", "off", "no"}
EXTRACT_RATE_LIMIT = (os.getenv("EXTRACT_RATE_LIMIT") or "10/minute").strip()


def user_rate_key(request: Request) -> str:
    """Return a per-user key when available; otherwise fall back to IP.

    ``get_current_user`` sets request.state.user_id for authenticated routes.
    """
    uid = getattr(request.state, "user_id", None)
    if uid:
        return str(uid)
    return get_remote_address(request)


limiter = Limiter(key_func=user_rate_key, default_limits=[], enabled=RATE_LIMIT_ENABLED)
