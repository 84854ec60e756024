import time
import json
import logging
from typing import Any, Optional
from functools import wraps

from fastapi import HTTPException

logger = logging.getLogger("worksheetgen.telemetry")


def emit_event(event: str, *, route: str, ok: Optional[bool] = None,
               error_type: Optional[str] = None, latency_ms: Optional[int] = None,
               **fields: Any):
    """Log one event as a single JSON line.

    Extra keyword fields (topic, question_count, pdf_type, ...) are merged
    into the payload; None values are dropped to keep lines short.
    """
    payload = {
        "event": event,
        "route": route,
        "ok": ok,
        "error_type": error_type,
        "latency_ms": latency_ms,
        **fields,
        "ts": round(time.time(), 3),
    }
    payload = {k: v for k, v in payload.items() if v is not None}
    logger.info("telemetry=%s", json.dumps(payload, separators=(",", ":"), default=str))


def _error_type(e: Exception) -> str:
    if isinstance(e, HTTPException):
        return f"http_{e.status_code}"
    return e.__class__.__name__


def instrument(route: str):
    """Wrap an async route handler with an api_call timing event."""
    def deco(fn):
        @wraps(fn)
        async def wrapped(*args, **kwargs):
            t0 = time.time()
            err = None
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                err = _error_type(e)
                raise
            finally:
                dt = int((time.time() - t0) * 1000)
                emit_event("api_call", route=route, ok=err is None, error_type=err, latency_ms=dt)
        return wrapped
    return deco
