"""Structured JSON logging with request correlation.

Every record carries a ``request_id``; inside a request that passed the
authentication gate it also carries the caller's ``user_id``. Secrets
(passwords, tokens, hashes) are never logged by the application, and inbound
correlation ids are only echoed back when they look like ids.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

# ``extra=`` keys promoted to top-level JSON fields.
EXTRA_KEYS = ("endpoint", "elapsed_ms", "user_id", "event", "backend")

# Marks handlers installed by configure_logging so a reconfigure only swaps ours.
_HANDLER_MARK = "_authcore_handler"


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` (and the authenticated ``user_id``) on records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            record.request_id = None
            return True
        record.request_id = ensure_request_id()
        if getattr(record, "user_id", None) is None:
            auth = g.get("auth")
            if auth is not None and auth.user_id is not None:
                record.user_id = auth.user_id
        return True


def _accept_inbound(value: str | None) -> str | None:
    if value and _REQUEST_ID_RE.match(value):
        return value
    return None


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary.

    Outside a request a fresh id is returned on every call.
    """

    if not has_request_context():
        return str(uuid4())
    existing = g.get("request_id")
    if existing:
        return str(existing)
    request_id = next(
        (
            accepted
            for header in CORRELATION_HEADERS
            if (accepted := _accept_inbound(request.headers.get(header)))
        ),
        None,
    ) or str(uuid4())
    g.request_id = request_id
    return request_id


def _resolve_level(level: str | int) -> int | str:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else level.upper()


def configure_logging(level: str | int = "INFO") -> None:
    """Install the JSON stdout handler on the root logger.

    Calling it again replaces the handler it installed earlier and leaves
    foreign handlers (e.g. test capture) in place.
    """

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    setattr(handler, _HANDLER_MARK, True)

    root = logging.getLogger()
    for existing in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def init_app(app: Flask) -> None:
    """Seed request ids before each request and echo them on the response."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        # ``g`` outlives the request when an app context was already pushed.
        g.pop("request_id", None)
        g.pop("auth", None)
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "JSONFormatter"]
