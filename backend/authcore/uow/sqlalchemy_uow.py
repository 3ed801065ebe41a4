"""
SQLAlchemy units of work over the Flask-SQLAlchemy session.
"""

from __future__ import annotations

from contextlib import suppress

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from authcore.core.extensions import db
from authcore.repositories import RefreshTokenRepository, UserRepository
from authcore.uow.base import UnitOfWork

# First SQL keyword of statements the read-only scope refuses to run.
WRITE_KEYWORDS = frozenset(
    {
        "insert",
        "update",
        "delete",
        "merge",
        "replace",
        "create",
        "alter",
        "drop",
        "truncate",
        "grant",
        "revoke",
    }
)

# Dialects that understand SET TRANSACTION.
READ_ONLY_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})


def _leading_keyword(statement: str | None) -> str:
    parts = (statement or "").split(None, 1)
    return parts[0].lower() if parts else ""


class SQLAlchemyRepositoryContainer:
    """Repositories bound to one session.

    Units of work pass the concrete :class:`~sqlalchemy.orm.Session` of the
    current scope, not the ``scoped_session`` proxy, so session-level event
    listeners stay local to this session.
    """

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.refresh_tokens = RefreshTokenRepository(session=session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write scope: commit on success, roll back on error.

    A failed commit is rolled back before the error propagates.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session())

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only scope used for credential and profile lookups.

    On PostgreSQL and MySQL the transaction it owns is switched to the
    requested isolation level and ``READ ONLY``. On every backend two guards
    stay installed while the scope is open:

    * a ``before_flush`` hook rejecting pending ORM changes, and
    * a ``before_cursor_execute`` hook rejecting DML/DDL text.

    Leaving the scope always rolls back a transaction the scope began and
    removes both guards. ``commit()`` is refused.

    Parameters
    ----------
    isolation_level:
        Isolation level applied when the dialect supports it; ``None`` keeps
        the connection default.
    enforce_db_readonly:
        Issue ``SET TRANSACTION READ ONLY`` where supported.
    """

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(session=db.session())
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly
        self._owned_txn: SessionTransaction | None = None
        self._conn: Connection | None = None
        self._guarded = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._owned_txn = self._begin_if_idle()
        self._conn = self.session.connection()
        self._add_guards()
        if self._owned_txn is not None and self._conn.dialect.name in READ_ONLY_DIALECTS:
            self._apply_directives()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        txn, self._owned_txn = self._owned_txn, None
        try:
            if txn is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                txn.__exit__(exc_type, exc, tb)
        finally:
            self._drop_guards()
            self._conn = None

    def commit(self) -> None:
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    # ------------------------------------------------------------------ #

    def _begin_if_idle(self) -> SessionTransaction | None:
        # A session that already autobegan (or a test's outer SAVEPOINT) is
        # joined rather than owned; the guards still apply.
        try:
            txn = self.session.begin()
        except InvalidRequestError:
            return None
        txn.__enter__()
        return txn

    def _apply_directives(self) -> None:
        try:
            if self.isolation_level:
                level = self.isolation_level.strip().upper()
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {level}"))
            if self.enforce_db_readonly:
                self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            current_app.logger.warning(
                "uow.readonly_directives_failed error=%s; relying on guards", exc
            )

    def _guard_target(self):
        return self._conn if self._conn is not None else self.session.get_bind()

    def _reject_flush(self, session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only UnitOfWork: ORM flush blocked.")

    def _reject_write_sql(self, conn, cursor, statement, parameters, context, executemany):
        keyword = _leading_keyword(statement)
        if keyword in WRITE_KEYWORDS:
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {keyword.upper()}")

    def _add_guards(self) -> None:
        if self._guarded:
            return
        event.listen(self.session, "before_flush", self._reject_flush)
        event.listen(self._guard_target(), "before_cursor_execute", self._reject_write_sql)
        self._guarded = True

    def _drop_guards(self) -> None:
        if not self._guarded:
            return
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._reject_flush)
        with suppress(InvalidRequestError):
            event.remove(self._guard_target(), "before_cursor_execute", self._reject_write_sql)
        self._guarded = False
