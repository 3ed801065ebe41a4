"""Wire the session core (ports -> adapters) onto the Flask app."""

from __future__ import annotations

import atexit
import logging
from dataclasses import dataclass
from typing import cast

from flask import Flask, current_app

from authcore.core.extensions import get_redis
from authcore.infra.events.thread_pool_publisher import ThreadPoolEventPublisher
from authcore.infra.events.welcome_notifier import send_welcome_notification
from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.infra.redis.redis_refresh_token_records import RedisRefreshTokenRecords
from authcore.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from authcore.infra.sql.sql_refresh_token_records import SQLRefreshTokenRecords
from authcore.services._shared.ports import RefreshTokenRecords
from authcore.services.auth.dto import AuthTokenConfig, UserRegistered
from authcore.services.auth.gate import AuthenticationGate
from authcore.services.auth.refresh_tokens import RefreshTokenStore
from authcore.services.auth.service import SessionService

log = logging.getLogger(__name__)

EXTENSION_KEY = "authcore.auth"


@dataclass(slots=True)
class AuthComponents:
    """Process-wide, stateless collaborators shared by every request."""

    service: SessionService
    gate: AuthenticationGate
    records: RefreshTokenRecords
    events: ThreadPoolEventPublisher


def build_records(app: Flask) -> RefreshTokenRecords:
    """Select the refresh-token backend from ``REFRESH_TOKEN_BACKEND``."""
    backend = app.config.get("REFRESH_TOKEN_BACKEND", "sql")
    if backend == "redis":
        return RedisRefreshTokenRecords(r=get_redis())
    if backend == "sql":
        return SQLRefreshTokenRecords()
    raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND {backend!r} (expected 'sql' or 'redis').")


def init_app(app: Flask) -> None:
    """Build the session service, gate and event publisher for ``app``.

    Parameters
    ----------
    app: flask.Flask
        Application whose config supplies token lifetimes, the hashing method
        and the refresh-token backend. Must run after
        :func:`authcore.core.extensions.init_app`.
    """
    cfg = AuthTokenConfig(
        access_expires=app.config["ACCESS_TOKEN_TTL"],
        refresh_expires=app.config["REFRESH_TOKEN_TTL"],
    )
    tokens = JWTTokenProvider()
    records = build_records(app)

    events = ThreadPoolEventPublisher()
    events.subscribe(UserRegistered, send_welcome_notification)
    atexit.register(events.shutdown)

    service = SessionService(
        token_provider=tokens,
        refresh_store=RefreshTokenStore(records, ttl=cfg.refresh_expires),
        password_hasher=WerkzeugPasswordHasher(method=app.config["PASSWORD_HASH_METHOD"]),
        events=events,
        token_cfg=cfg,
    )
    app.extensions[EXTENSION_KEY] = AuthComponents(
        service=service,
        gate=AuthenticationGate(tokens),
        records=records,
        events=events,
    )
    log.info(
        "auth.initialized",
        extra={"backend": app.config.get("REFRESH_TOKEN_BACKEND", "sql")},
    )


def get_auth() -> AuthComponents:
    """Return the components registered on the current app."""
    try:
        return cast(AuthComponents, current_app.extensions[EXTENSION_KEY])
    except KeyError as exc:
        raise RuntimeError("Auth components are not initialized. Call init_app() first.") from exc
