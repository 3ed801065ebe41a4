# authcore/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    Shape/length validation happens at the API layer (marshmallow).

    :param email: Login email (normalized by the model).
    :type email: str
    :param name: Display name.
    :type name: str
    :param password: Raw password (hashed before it reaches persistence).
    :type password: str
    """

    email: str
    name: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Opaque refresh token previously issued.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Opaque refresh token to revoke.
    :type refresh_token: str
    :param all_sessions: If True, revoke every refresh token of the owner.
    :type all_sessions: bool
    """

    refresh_token: str
    all_sessions: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Signed access token.
    :type access_token: str
    :param refresh_token: Opaque refresh token.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public-safe projection of a user (no password hash).

    :param id: User identifier.
    :param email: Normalized email.
    :param name: Display name.
    :param created_at: Creation timestamp, when available.
    """

    id: int
    email: str
    name: str
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SessionOut:
    """Result of register/login: a fresh token pair and the user it belongs to."""

    tokens: TokenPairOut
    user: UserPublicOut


@dataclass(frozen=True, slots=True)
class IssuedRefreshToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RotatedRefreshToken:
    """Outcome of a successful rotation: the owner and the replacement token."""

    user_id: int
    token: str
    expires_at: datetime


class AuthStatus(Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Outcome of authenticating one inbound request.

    - ``ANONYMOUS``: no credential was presented (not an error).
    - ``AUTHENTICATED``: ``user_id``/``email`` are set.
    - ``REJECTED``: a credential was presented and failed verification. The
      reason (expired, bad signature, malformed) is deliberately not carried.
    """

    status: AuthStatus
    user_id: int | None = None
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED


# ------------------------------ Events ------------------------------------ #


@dataclass(frozen=True, slots=True)
class UserRegistered:
    """Emitted after the registration transaction commits."""

    user_id: int
    email: str
    name: str
    occurred_at: datetime


# ------------------------ Config DTO (optional) --------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta
    refresh_expires: timedelta
