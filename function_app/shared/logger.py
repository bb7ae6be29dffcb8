# shared/logger.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from .config import get

# Public type for text/structured loggers
LogFn = Callable[[str], None]
JobFn = Callable[..., None]

RECORD_LOGGER = logging.getLogger("relay.events")


def configure_logging(root_name: str = "relay") -> logging.Logger:
    """Apply LOG_LEVEL to the relay logger tree. The Functions host owns handlers."""
    logger = logging.getLogger(root_name)
    level = str(get("LOG_LEVEL", "INFO") or "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    return logger


# -----------------------------------------------------------------------------
# Structured log helpers (one compact JSON record per event).
# -----------------------------------------------------------------------------
def log_record(event: str, message: str = "", **fields: Any) -> None:
    rec = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "message": message,
        **fields,
    }
    RECORD_LOGGER.info(json.dumps(rec, ensure_ascii=False, separators=(",", ":"), default=str))


def make_slogger(
    *,
    text_log: Optional[LogFn] = None,
    job_log: Optional[JobFn] = None,
    ctx: Optional[Dict[str, Any]] = None,
) -> Tuple[Callable[..., None], Callable[..., None]]:
    """
    Returns (slog, slog_exc):
      slog(event, msg=None, **fields)
      slog_exc(event, exc, **fields)

    - text_log: e.g., logger.info
    - job_log:  structured sink, defaults to log_record
    - ctx:      static fields attached to each structured record (link, method, ...)
    """
    context = dict(ctx or {})

    def _merge(a: Dict[str, Any] | None, b: Dict[str, Any] | None) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if a: out.update(a)
        if b: out.update(b)
        return out

    def slog(event: str, msg: Optional[str] = None, **fields: Any) -> None:
        if text_log:
            if msg is None and fields:
                kv = " ".join(f"{k}={v}" for k, v in fields.items())
                text_log(f"[{event}] {kv}")
            else:
                text_log(f"[{event}] {msg or ''}".rstrip())

        jl = job_log or log_record
        try:
            jl(event, msg or "", **_merge(context, fields))
        except Exception:
            # Never let logging break a request
            pass

    def slog_exc(event: str, exc: BaseException, **fields: Any) -> None:
        if text_log:
            text_log(f"[{event}] EXC: {type(exc).__name__}: {exc}")
        jl = job_log or log_record
        try:
            jl(event, f"{type(exc).__name__}: {exc}", **_merge(context, fields))
        except Exception:
            pass

    return slog, slog_exc
