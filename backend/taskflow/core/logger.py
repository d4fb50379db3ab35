"""JSON logging for the session service, with request correlation and token masking."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Attributes passed through ``extra=`` that are copied into the JSON payload.
EXTRA_KEYS = ("endpoint", "elapsed_ms", "user_id", "attempts", "backend")

REDACTED = "[REDACTED]"

# Compact JWS (header.payload.signature); every header starts with ``{"`` -> ``eyJ``.
_JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*")
_BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)


def mask_tokens(text: str) -> str:
    """Replace access/refresh tokens and bearer credentials in ``text``.

    >>> mask_tokens("Authorization: Bearer abc.def")
    'Authorization: Bearer [REDACTED]'
    """
    text = _JWT_PATTERN.sub(REDACTED, text)
    return _BEARER_PATTERN.sub(rf"\g<1>{REDACTED}", text)


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects with tokens masked."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": mask_tokens(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = mask_tokens(self.formatException(record.exc_info))
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                value = getattr(record, key)
                payload[key] = mask_tokens(value) if isinstance(value, str) else value
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, reusing a client-sent correlation header."""

    if not has_request_context():
        return str(uuid4())
    if not hasattr(g, "request_id"):
        incoming = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)),
            None,
        )
        g.request_id = incoming or str(uuid4())
    return g.request_id  # type: ignore[no-any-return]


def configure_logging(level: str | int = "INFO") -> None:
    """Send every record to stdout as one JSON line.

    ``werkzeug`` request lines are capped at WARNING: its access log prints
    query strings, and the JSON handler already carries request ids.
    """

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def init_app(app: Flask) -> None:
    """Seed request ids and echo them back on every response."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:  # pragma: no cover - integration glue
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):  # pragma: no cover - integration glue
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "mask_tokens", "JSONFormatter"]
