"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`authcore.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``authcore.services._shared.base``)
    * :class:`BaseService`

- Session core (from ``authcore.services.auth``)
    * :class:`SessionService`
    * :class:`RefreshTokenStore`
    * :class:`AuthenticationGate`
    * DTOs: :class:`RegisterIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`TokenPairOut`, :class:`SessionOut`,
      :class:`UserPublicOut`, :class:`AuthResult`, :class:`AuthStatus`
"""

from __future__ import annotations

# Base primitives
from ._shared.base import BaseService

# Session core + DTOs
from .auth.dto import (
    AuthResult,
    AuthStatus,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
    TokenPairOut,
    UserPublicOut,
)
from .auth.gate import AuthenticationGate
from .auth.refresh_tokens import RefreshTokenStore
from .auth.service import SessionService

__all__ = [
    "BaseService",
    "SessionService",
    "RefreshTokenStore",
    "AuthenticationGate",
    "RegisterIn",
    "LoginIn",
    "RefreshIn",
    "LogoutIn",
    "TokenPairOut",
    "SessionOut",
    "UserPublicOut",
    "AuthResult",
    "AuthStatus",
]
