"""authcore: credential and session-token service.

``from authcore import create_app`` is the WSGI entry point used by gunicorn.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
