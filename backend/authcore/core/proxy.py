"""Reverse-proxy awareness for the WSGI pipeline."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap ``app.wsgi_app`` in :class:`~werkzeug.middleware.proxy_fix.ProxyFix`.

    Enabled by ``USE_PROXYFIX``; ``PROXYFIX_HOPS`` is the number of trusted
    proxies in front of the app (default 1). Trusting more hops than exist
    lets clients spoof ``X-Forwarded-For``.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    app.wsgi_app = ProxyFix(  # type: ignore[method-assign]
        app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops
    )
