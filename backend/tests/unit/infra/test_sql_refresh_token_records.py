"""Unit tests for SQLRefreshTokenRecords."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from authcore.infra.sql.sql_refresh_token_records import SQLRefreshTokenRecords
from authcore.services._shared.errors import UniqueConstraintViolation
from tests.factories.user import UserFactory


@pytest.fixture()
def records() -> SQLRefreshTokenRecords:
    return SQLRefreshTokenRecords()


@pytest.fixture()
def user(session):
    u = UserFactory()
    session.commit()
    return u


def _now() -> datetime:
    return datetime.now(UTC)


def test_create_then_get_active_returns_utc_view(records, user):
    expires = _now() + timedelta(days=30)
    records.create(user_id=user.id, token="tok-1", expires_at=expires)

    view = records.get_active("tok-1", _now())
    assert view is not None
    assert view.user_id == user.id
    assert view.revoked is False
    assert view.expires_at.tzinfo is not None
    assert abs(view.expires_at - expires) < timedelta(seconds=1)


def test_duplicate_token_raises(records, user):
    records.create(user_id=user.id, token="tok-dup", expires_at=_now() + timedelta(days=1))
    with pytest.raises(UniqueConstraintViolation):
        records.create(user_id=user.id, token="tok-dup", expires_at=_now() + timedelta(days=1))


def test_consume_succeeds_exactly_once(records, user):
    records.create(user_id=user.id, token="tok-c", expires_at=_now() + timedelta(days=1))

    first = records.consume("tok-c", _now())
    assert first is not None
    assert first.user_id == user.id
    assert first.revoked is True

    assert records.consume("tok-c", _now()) is None
    assert records.get_active("tok-c", _now()) is None


def test_consume_refuses_expired(records, user):
    records.create(user_id=user.id, token="tok-old", expires_at=_now() - timedelta(seconds=1))
    assert records.consume("tok-old", _now()) is None
    assert records.consume("never-issued", _now()) is None


def test_revoke_and_revoke_all(records, user):
    for token in ("a", "b", "c"):
        records.create(user_id=user.id, token=token, expires_at=_now() + timedelta(days=1))

    assert records.revoke("a") is True
    assert records.revoke("a") is False
    assert records.revoke_all_for_user(user.id) == 2
    assert records.revoke_all_for_user(user.id) == 0


def test_purge_expired(records, user):
    records.create(user_id=user.id, token="live", expires_at=_now() + timedelta(days=1))
    records.create(user_id=user.id, token="dead", expires_at=_now() - timedelta(days=1))

    assert records.purge_expired(_now()) == 1
    assert records.get_active("live", _now()) is not None
