# authcore/infra/sql/sql_refresh_token_records.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from authcore.models.refresh_token import RefreshToken
from authcore.services._shared.ports import RefreshTokenRecords, RefreshTokenView
from authcore.uow.base import UnitOfWork
from authcore.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo; every stored timestamp is UTC.
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


@dataclass(slots=True)
class SQLRefreshTokenRecords(RefreshTokenRecords):
    """
    Relational refresh-token records.

    Each call runs in its own Unit of Work. ``consume`` is a conditional
    ``UPDATE ... WHERE revoked = false AND expires_at > now``; the affected
    row count decides which concurrent caller wins.

    :param uow_factory: Builds read-write units of work.
    :param ro_uow_factory: Builds read-only units of work for lookups.
    """

    uow_factory: Callable[[], UnitOfWork] = SQLAlchemyUnitOfWork
    ro_uow_factory: Callable[[], UnitOfWork] = SQLAlchemyReadOnlyUnitOfWork

    @staticmethod
    def _to_view(row: RefreshToken) -> RefreshTokenView:
        return RefreshTokenView(
            user_id=row.user_id,
            token=row.token,
            expires_at=_as_utc(row.expires_at),
            revoked=row.revoked,
        )

    def create(self, *, user_id: int, token: str, expires_at: datetime) -> RefreshTokenView:
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.create(user_id=user_id, token=token, expires_at=expires_at)
            return self._to_view(row)

    def get_active(self, token: str, now: datetime) -> RefreshTokenView | None:
        with self.ro_uow_factory() as uow:
            row = uow.refresh_tokens.get_active(token, now)
            return self._to_view(row) if row is not None else None

    def consume(self, token: str, now: datetime) -> RefreshTokenView | None:
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.get_active(token, now)
            if row is None:
                return None
            view = self._to_view(row)
            if not uow.refresh_tokens.revoke_if_active(token, now):
                # Lost the race to a concurrent rotation.
                return None
            return replace(view, revoked=True)

    def revoke(self, token: str) -> bool:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke(token)

    def revoke_all_for_user(self, user_id: int) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke_all_for_user(user_id)

    def purge_expired(self, now: datetime) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_expired(now)
