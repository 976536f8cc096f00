from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Optional, TextIO


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      { "t": 169, "lvl": "INFO", "name": "mapserver.service", "msg": "cache hit",
        "extra": {"digest": "ab12...", "state": "cache_hit"} }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        # structured context travels as extra={"extra": {...}}
        ctx = getattr(record, "extra", None)
        if isinstance(ctx, dict) and ctx:
            payload["extra"] = ctx
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger once with JSON formatting.
    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL
      - default INFO
    uvicorn's own loggers are routed through the same handler.
    """
    root = logging.getLogger()
    if getattr(root, "_mapcache_configured", False):
        return

    lvl_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = logging.getLevelName(lvl_name)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
    root._mapcache_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensures root is configured."""
    setup_logging()
    return logging.getLogger(name)


def ctx(**fields) -> dict:
    """Build the `extra` kwarg for structured log context: log.info("msg", extra=ctx(digest=d))."""
    return {"extra": {k: v for k, v in fields.items() if v is not None}}
