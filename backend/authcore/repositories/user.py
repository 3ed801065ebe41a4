"""User repository: identity lookups and constraint-aware creation."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from authcore.models.user import User
from authcore.repositories.base import BaseRepository
from authcore.services._shared.errors import UniqueConstraintViolation, violates

EMAIL_CONSTRAINT = "uq_users_email"


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER hashes passwords or issues tokens; it only stores what the
    session service hands over.
    """

    model = User

    def create(self, *, email: str, name: str, password_hash: str) -> User:
        """Insert a user, relying on ``uq_users_email`` for uniqueness.

        No existence pre-check is performed: concurrent registrations race at
        the constraint and exactly one insert wins.

        :param email: Login email (normalized by the model).
        :param name: Display name.
        :param password_hash: Opaque hash from the credential hasher.
        :returns: The flushed user with its primary key assigned.
        :rtype: User
        :raises UniqueConstraintViolation: If the email is already taken.
        """
        user = User(email=email, name=name, password_hash=password_hash)
        try:
            return self.add(user)
        except IntegrityError as exc:
            # SQLite reports "UNIQUE constraint failed: users.email"
            if violates(exc, EMAIL_CONSTRAINT) or violates(exc, "users.email"):
                raise UniqueConstraintViolation(EMAIL_CONSTRAINT) from exc
            raise

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == User.normalize_email(email))
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def delete(self, user_id: int) -> bool:
        """Remove a user (and, by cascade, its refresh tokens).

        :returns: ``True`` if a row was deleted.
        """
        user = self.get(user_id)
        if user is None:
            return False
        self.session.delete(user)
        self.session.flush()
        return True
