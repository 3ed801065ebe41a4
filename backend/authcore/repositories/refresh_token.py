"""Refresh-token repository with conditional (race-safe) state transitions."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import CursorResult, delete, select, update
from sqlalchemy.exc import IntegrityError

from authcore.models.refresh_token import RefreshToken
from authcore.repositories.base import BaseRepository
from authcore.services._shared.errors import UniqueConstraintViolation, violates

TOKEN_CONSTRAINT = "uq_refresh_tokens_token"


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    The only mutation ever applied to a row is ``revoked: False -> True``;
    every revoke is a single conditional ``UPDATE`` so the database decides
    which concurrent caller wins.
    """

    model = RefreshToken

    def create(self, *, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        """Insert a refresh token row.

        :raises UniqueConstraintViolation: On a (astronomically unlikely)
            token collision.
        """
        row = RefreshToken(user_id=user_id, token=token, expires_at=expires_at, revoked=False)
        try:
            return self.add(row)
        except IntegrityError as exc:
            if violates(exc, TOKEN_CONSTRAINT) or violates(exc, "refresh_tokens.token"):
                raise UniqueConstraintViolation(TOKEN_CONSTRAINT) from exc
            raise

    def get_active(self, token: str, now: datetime) -> RefreshToken | None:
        """Return the row only when it is unrevoked and unexpired."""
        stmt = select(RefreshToken).where(
            RefreshToken.token == token,
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > now,
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def revoke_if_active(self, token: str, now: datetime) -> bool:
        """Flip ``revoked`` only on a still-active row.

        :returns: ``True`` when this call performed the transition; ``False``
            when the row is missing, expired, or already revoked (including
            by a concurrent caller).
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token == token,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult, self.session.execute(stmt))
        return result.rowcount == 1

    def revoke(self, token: str) -> bool:
        """Revoke a token regardless of expiry. Idempotent."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult, self.session.execute(stmt))
        return result.rowcount > 0

    def revoke_all_for_user(self, user_id: int) -> int:
        """Revoke every outstanding token of a user. Idempotent."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult, self.session.execute(stmt))
        return int(result.rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        """Physically remove rows past expiry (operator sweep only)."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult, self.session.execute(stmt))
        return int(result.rowcount or 0)
