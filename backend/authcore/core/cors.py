"""CORS policy for the auth API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from authcore.core.logger import REQUEST_ID_HEADER

# Bearer credentials travel in headers, never in cookies.
ALLOWED_HEADERS = ("Authorization", "Content-Type", REQUEST_ID_HEADER)
EXPOSED_HEADERS = (REQUEST_ID_HEADER,)


def parse_origins(raw: str | None) -> list[str]:
    """Split a comma-separated ``CORS_ORIGINS`` value; ``"*"`` means any."""
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return ["*"] if not origins or "*" in origins else origins


def init_app(app: Flask) -> None:
    """Configure CORS for ``/api/*``.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted.

    Notes
    -----
    The API authenticates with bearer tokens only, so credentialed
    (cookie) requests are never enabled, whatever the origin list.
    """
    CORS(
        app,
        resources={r"/api/*": {"origins": parse_origins(app.config.get("CORS_ORIGINS"))}},
        allow_headers=list(ALLOWED_HEADERS),
        expose_headers=list(EXPOSED_HEADERS),
        methods=["GET", "POST", "OPTIONS"],
        supports_credentials=False,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
