"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from authcore.core.auth import get_auth
from authcore.services._shared.errors import AuthenticationRequiredError, InvalidTokenError
from authcore.services.auth.dto import AuthResult, AuthStatus
from authcore.services.auth.service import SessionService

F = TypeVar("F", bound=Callable[..., Any])


def get_session_service() -> SessionService:
    """Return the session service bound to the current application."""

    return get_auth().service


def authenticate_current_request() -> AuthResult:
    """Run the authentication gate over ``request`` and stash the result on ``g``."""

    result = get_auth().gate.authenticate_request(request.headers, request.args)
    g.auth = result
    return result


def current_user_id() -> int:
    """Return the authenticated user id; only valid inside ``require_auth``."""

    auth: AuthResult | None = g.get("auth")
    if auth is None or auth.user_id is None:
        raise AuthenticationRequiredError()
    return auth.user_id


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        result = authenticate_current_request()
        if result.status is AuthStatus.ANONYMOUS:
            raise AuthenticationRequiredError()
        if result.status is AuthStatus.REJECTED:
            raise InvalidTokenError()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def optional_auth(func: F) -> F:
    """Authenticate when possible; a rejected token is treated as anonymous."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        result = authenticate_current_request()
        if result.status is AuthStatus.REJECTED:
            g.auth = AuthResult(status=AuthStatus.ANONYMOUS)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
