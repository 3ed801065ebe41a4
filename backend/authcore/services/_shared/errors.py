"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the closed set of failures the session core can surface;
each one carries a stable machine-readable ``key``, a human ``message`` and a
:class:`Severity` that the HTTP layer maps onto a status code
(see ``authcore/core/errors.py``).
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL includes the constraint name in the driver message. SQLite only
    reports the offending ``table.column``, so callers may pass that as a
    secondary probe.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name (e.g. ``uq_users_email``) or
        ``table.column`` fragment to look for.
    :returns: ``True`` if the IntegrityError matches.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


class Severity(Enum):
    """Coarse failure class; part of the public error contract."""

    NOT_FOUND = HTTPStatus.NOT_FOUND
    BAD_REQUEST = HTTPStatus.BAD_REQUEST
    UNAUTHORIZED = HTTPStatus.UNAUTHORIZED
    CONFLICT = HTTPStatus.CONFLICT
    INTERNAL = HTTPStatus.INTERNAL_SERVER_ERROR

    @property
    def http_status(self) -> int:
        return int(self.value)


# --------------------------------------------------------------------------- #
# Port signals (never cross the service boundary)
# --------------------------------------------------------------------------- #


class UniqueConstraintViolation(Exception):
    """
    Raised by persistence adapters when a uniqueness constraint fires.

    :param constraint: Name of the violated constraint.
    """

    def __init__(self, constraint: str) -> None:
        super().__init__(f"Unique constraint violated: {constraint}")
        self.constraint = constraint


class HashingError(Exception):
    """Raised by the credential hasher on RNG/resource failure."""


class TokenError(Exception):
    """Base class for access-token verification failures."""


class TokenExpiredError(TokenError):
    """The token's signature is valid but it is past ``exp``."""


class InvalidSignatureError(TokenError):
    """Bad signature, unexpected algorithm, tampering or malformed input."""


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Subclasses override the class attributes; instances may override
    ``message`` and attach structured ``details``.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``str(err)`` is always safe to show to clients.
    """

    key: str = "error"
    default_message: str = "Error"
    severity: Severity = Severity.BAD_REQUEST

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.severity.http_status


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """Bad input shape/content; ``details["errors"]`` maps field -> messages."""

    key = "validation.failed"
    default_message = "The given data was invalid."
    severity = Severity.BAD_REQUEST


class UserAlreadyExistsError(ServiceError):
    key = "auth.user_exists"
    default_message = "User with this email already exists"
    severity = Severity.CONFLICT


class InvalidCredentialsError(ServiceError):
    """Wrong password *or* unknown email; the two are never distinguished."""

    key = "auth.invalid_credentials"
    default_message = "Invalid email or password"
    severity = Severity.UNAUTHORIZED


class InvalidTokenError(ServiceError):
    """Refresh or access token is unknown, expired, revoked or malformed."""

    key = "auth.invalid_token"
    default_message = "Invalid token"
    severity = Severity.UNAUTHORIZED


class AuthenticationRequiredError(ServiceError):
    """A protected operation was called without any credential."""

    key = "auth.token_required"
    default_message = "User not authenticated"
    severity = Severity.UNAUTHORIZED


class UserNotFoundError(ServiceError):
    key = "auth.user_not_found"
    default_message = "User not found"
    severity = Severity.NOT_FOUND


class InternalError(ServiceError):
    """
    Hashing, signing or persistence failure.

    The wrapped cause is kept on ``__cause__`` for server-side logging only;
    the message exposed to callers is always the generic default.
    """

    key = "internal_error"
    default_message = "Something went wrong"
    severity = Severity.INTERNAL

    def __init__(self, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(None, details=details)
