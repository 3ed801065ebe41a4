"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from authcore.core.config import MIN_JWT_SECRET_BYTES

# Global naming convention for all constraints. Persistence adapters match
# IntegrityErrors against these names (see ``services._shared.errors.violates``).
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
redis_client: redis.Redis | None = None


def check_signing_secret(secret: str | bytes | None) -> None:
    """Fail fast when the access-token signing secret is too short.

    :param secret: Value of ``JWT_SECRET_KEY``.
    :raises RuntimeError: If the secret is missing or shorter than
        :data:`~authcore.core.config.MIN_JWT_SECRET_BYTES` bytes.
    """
    raw = secret.encode("utf-8") if isinstance(secret, str) else (secret or b"")
    if len(raw) < MIN_JWT_SECRET_BYTES:
        raise RuntimeError(
            f"JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_BYTES} bytes long."
        )


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT and (optionally) Redis.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`authcore.models` package to ensure SQLAlchemy metadata is ready
        for migrations.

    Raises
    ------
    RuntimeError
        If the signing secret is too short, or the Redis refresh-token backend
        is selected without a reachable ``REDIS_URL``.
    """
    check_signing_secret(app.config.get("JWT_SECRET_KEY"))

    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from authcore import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        if app.config.get("REFRESH_TOKEN_BACKEND") == "redis":
            raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL to be set.")
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client
