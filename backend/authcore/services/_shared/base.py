# authcore/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime

from authcore.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Transaction and clock helpers for services.

    Services reach the database only through the units of work returned
    here, never through ``db.session`` directly.

    :cvar READ_ISOLATION: Isolation level requested for read-only scopes on
        dialects that support it.
    """

    READ_ISOLATION = "READ COMMITTED"

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Open a read-only scope (commit refused, writes blocked).

        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(isolation_level=self.READ_ISOLATION)

    @staticmethod
    def now_utc() -> datetime:
        """Current time as an aware UTC ``datetime``."""
        return datetime.now(UTC)
