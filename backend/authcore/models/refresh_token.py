"""Refresh-token rows: persisted, single-use session credentials."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from authcore.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:
    from .user import User


class RefreshToken(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Opaque refresh token bound to a user.

    Rows are only ever mutated from ``revoked=False`` to ``revoked=True``.
    The ``token`` value is a bearer secret: it is unique across all time and
    must never be logged (``__repr__`` only shows the id).

    Fields
    ------
    user_id : int
        Owner; rows are removed together with the user (``ON DELETE CASCADE``).
    token : str
        64 hex characters (32 random bytes).
    expires_at : datetime
        Absolute expiry (UTC).
    revoked : bool
        Terminal flag set on rotation or logout.
    created_at : datetime
        Insertion timestamp.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token: Mapped[str] = mapped_column(String(128), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
