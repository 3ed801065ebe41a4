# authcore/services/auth/refresh_tokens.py
"""
Refresh-token issuance and single-use rotation.

Tokens are 32 bytes from :mod:`secrets`, hex-encoded (64 characters), and
carry no structure; they can only be looked up, never decoded.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from authcore.services._shared.errors import (
    InternalError,
    InvalidTokenError,
    UniqueConstraintViolation,
)
from authcore.services._shared.ports import RefreshTokenRecords
from authcore.services.auth.dto import IssuedRefreshToken, RotatedRefreshToken

log = logging.getLogger(__name__)

TOKEN_BYTES = 32
DEFAULT_TTL = timedelta(days=30)
DEFAULT_MAX_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(UTC)


def generate_token() -> str:
    """Return a fresh opaque refresh token (64 hex chars)."""
    return secrets.token_hex(TOKEN_BYTES)


class RefreshTokenStore:
    """
    Issue, rotate and revoke opaque refresh tokens over a records port.

    Rotation is fail-closed: the presented token is consumed with a
    conditional revoke first, and a replacement is only issued when that
    revoke actually happened. A crash between the two steps strands the
    user (they must log in again) but never leaves two live tokens.

    Parameters
    ----------
    records : RefreshTokenRecords
        Persistence port (SQL or Redis adapter).
    ttl : timedelta, optional
        Lifetime of newly issued tokens. Defaults to 30 days.
    max_attempts : int, optional
        Insert attempts on a uniqueness collision before giving up.
    token_factory : Callable[[], str], optional
        Source of token values; defaults to :func:`generate_token`.
    clock : Callable[[], datetime], optional
        UTC clock.
    """

    def __init__(
        self,
        records: RefreshTokenRecords,
        *,
        ttl: timedelta = DEFAULT_TTL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        token_factory: Callable[[], str] = generate_token,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.records = records
        self.ttl = ttl
        self.max_attempts = max_attempts
        self._token_factory = token_factory
        self._clock = clock

    def issue(self, user_id: int) -> IssuedRefreshToken:
        """
        Generate and persist a new refresh token for ``user_id``.

        :raises InternalError: If every attempt collided with an existing token.
        """
        expires_at = self._clock() + self.ttl
        for attempt in range(1, self.max_attempts + 1):
            token = self._token_factory()
            try:
                self.records.create(user_id=user_id, token=token, expires_at=expires_at)
            except UniqueConstraintViolation:
                log.warning(
                    "refresh_token.collision attempt=%s",
                    attempt,
                    extra={"user_id": user_id, "event": "refresh_token.collision"},
                )
                continue
            return IssuedRefreshToken(token=token, expires_at=expires_at)

        raise InternalError()

    def rotate(self, old_token: str) -> RotatedRefreshToken:
        """
        Consume ``old_token`` and issue a replacement for the same user.

        :raises InvalidTokenError: If the token is unknown, expired, revoked,
            or a concurrent rotation consumed it first.
        """
        consumed = self.records.consume(old_token, self._clock())
        if consumed is None:
            raise InvalidTokenError()

        issued = self.issue(consumed.user_id)
        return RotatedRefreshToken(
            user_id=consumed.user_id,
            token=issued.token,
            expires_at=issued.expires_at,
        )

    def owner_of(self, token: str) -> int | None:
        """Return the owner of an active token, or ``None``."""
        view = self.records.get_active(token, self._clock())
        return view.user_id if view is not None else None

    def revoke(self, token: str) -> bool:
        return self.records.revoke(token)

    def revoke_all(self, user_id: int) -> int:
        return self.records.revoke_all_for_user(user_id)
