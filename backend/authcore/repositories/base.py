"""Shared plumbing for the user and refresh-token repositories.

Repositories stage and flush; they never commit or roll back. The unit of
work that constructed them owns the transaction, and uniqueness is left to
database constraints (see the naming convention in
``authcore.core.extensions``).
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy.orm import Session

from authcore.core.extensions import db

E = TypeVar("E")  # mapped entity


class BaseRepository(Generic[E]):
    """Primary-key access and staging for one mapped class.

    Subclasses set ``model``. The session is the one handed over by the unit
    of work; without one the Flask-scoped session is used, which only tests
    and shell sessions rely on.

    :param session: Session shared across the unit-of-work scope.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key and defaults exist.

        :raises sqlalchemy.exc.IntegrityError: Propagated for subclasses to
            translate.
        """
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Return the row with primary key ``entity_id``, or ``None``."""
        return self.session.get(self.model, entity_id)
