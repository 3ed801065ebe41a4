# tests/unit/services/test_session_service.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from authcore.infra.sql.sql_refresh_token_records import SQLRefreshTokenRecords
from authcore.services._shared.errors import (
    HashingError,
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from authcore.services._shared.ports import InMemoryRefreshTokenRecords
from authcore.services.auth.dto import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
    TokenPairOut,
    UserRegistered,
)
from authcore.services.auth.refresh_tokens import RefreshTokenStore
from authcore.services.auth.service import SessionService
from tests.factories.refresh_token import RefreshTokenFactory

PASSWORD = "s3cret-pass"


def _register(service: SessionService, email: str = "ada@example.com") -> SessionOut:
    return service.register(RegisterIn(email=email, name="Ada", password=PASSWORD))


# ------------------------------- Register --------------------------------- #
class TestRegister:
    def test_register_returns_session_for_new_user(self, service):
        out = _register(service)

        assert isinstance(out, SessionOut)
        assert out.user.id is not None
        assert out.user.email == "ada@example.com"
        assert out.user.name == "Ada"
        assert out.tokens.access_token
        assert len(out.tokens.refresh_token) == 64
        assert service.introspect(out.tokens.access_token) == out.user.id

    def test_register_then_login_is_the_same_user(self, service):
        registered = _register(service)
        logged_in = service.login(LoginIn(email="ada@example.com", password=PASSWORD))

        assert logged_in.user.id == registered.user.id
        assert service.introspect(logged_in.tokens.access_token) == registered.user.id

    @pytest.mark.parametrize("second", ["ada@example.com", "ADA@Example.com", " ada@example.com "])
    def test_duplicate_email_is_rejected(self, service, second):
        _register(service)
        with pytest.raises(UserAlreadyExistsError) as excinfo:
            _register(service, email=second)
        assert excinfo.value.key == "auth.user_exists"
        assert excinfo.value.status_code == 409

    def test_register_publishes_user_registered(self, service, events):
        out = _register(service)

        assert len(events.published) == 1
        event = events.published[0]
        assert isinstance(event, UserRegistered)
        assert event.user_id == out.user.id
        assert event.email == "ada@example.com"

    def test_publisher_failure_does_not_fail_register(self, hasher):
        class Exploding:
            def publish(self, event):
                raise RuntimeError("bus down")

        service = SessionService(
            token_provider=JWTTokenProvider(),
            refresh_store=RefreshTokenStore(SQLRefreshTokenRecords()),
            password_hasher=hasher,
            events=Exploding(),
        )
        out = _register(service)
        assert out.user.id is not None

    def test_hashing_failure_is_internal_and_creates_nothing(self, service):
        broken = SessionService(
            token_provider=JWTTokenProvider(),
            refresh_store=RefreshTokenStore(SQLRefreshTokenRecords()),
            password_hasher=WerkzeugPasswordHasher(method="no-such-method"),
        )
        with pytest.raises(InternalError) as excinfo:
            _register(broken)

        assert isinstance(excinfo.value.__cause__, HashingError)
        assert excinfo.value.message == "Something went wrong"
        with pytest.raises(InvalidCredentialsError):
            service.login(LoginIn(email="ada@example.com", password=PASSWORD))

    def test_token_failure_leaves_no_user_behind(self, service, session, hasher):
        RefreshTokenFactory(token="taken")
        session.commit()
        colliding = SessionService(
            token_provider=JWTTokenProvider(),
            refresh_store=RefreshTokenStore(
                SQLRefreshTokenRecords(), token_factory=lambda: "taken"
            ),
            password_hasher=hasher,
        )

        with pytest.raises(InternalError):
            _register(colliding)
        with pytest.raises(InvalidCredentialsError):
            service.login(LoginIn(email="ada@example.com", password=PASSWORD))

        out = _register(service)
        assert out.user.email == "ada@example.com"
        assert service.introspect(out.tokens.access_token) == out.user.id


# --------------------------------- Login ---------------------------------- #
class TestLogin:
    def test_login_is_case_insensitive_on_email(self, service):
        registered = _register(service)
        out = service.login(LoginIn(email="  ADA@EXAMPLE.COM", password=PASSWORD))
        assert out.user.id == registered.user.id

    def test_unknown_email_and_wrong_password_are_indistinguishable(self, service):
        _register(service)

        with pytest.raises(InvalidCredentialsError) as unknown:
            service.login(LoginIn(email="nobody@example.com", password=PASSWORD))
        with pytest.raises(InvalidCredentialsError) as wrong:
            service.login(LoginIn(email="ada@example.com", password="not-the-password"))

        assert type(unknown.value) is type(wrong.value)
        assert unknown.value.key == wrong.value.key == "auth.invalid_credentials"
        assert unknown.value.message == wrong.value.message
        assert unknown.value.status_code == wrong.value.status_code == 401

    def test_each_login_issues_a_distinct_refresh_token(self, service):
        _register(service)
        a = service.login(LoginIn(email="ada@example.com", password=PASSWORD))
        b = service.login(LoginIn(email="ada@example.com", password=PASSWORD))
        assert a.tokens.refresh_token != b.tokens.refresh_token


# -------------------------------- Refresh --------------------------------- #
class TestRefresh:
    def test_refresh_rotates_and_blocks_reuse(self, service):
        """First refresh rotates; presenting the old token again is rejected."""
        session = _register(service)

        pair = service.refresh(RefreshIn(refresh_token=session.tokens.refresh_token))
        assert isinstance(pair, TokenPairOut)
        assert pair.refresh_token != session.tokens.refresh_token
        assert service.introspect(pair.access_token) == session.user.id

        with pytest.raises(InvalidTokenError):
            service.refresh(RefreshIn(refresh_token=session.tokens.refresh_token))

        # The replacement still works exactly once.
        again = service.refresh(RefreshIn(refresh_token=pair.refresh_token))
        assert again.refresh_token != pair.refresh_token

    def test_unknown_refresh_token_is_rejected(self, service):
        with pytest.raises(InvalidTokenError) as excinfo:
            service.refresh(RefreshIn(refresh_token="0" * 64))
        assert excinfo.value.key == "auth.invalid_token"

    def test_expired_refresh_token_is_rejected(self, hasher):
        records = InMemoryRefreshTokenRecords()
        service = SessionService(
            token_provider=JWTTokenProvider(),
            refresh_store=RefreshTokenStore(records),
            password_hasher=hasher,
        )
        records.create(
            user_id=1, token="stale", expires_at=datetime.now(UTC) - timedelta(seconds=1)
        )
        with pytest.raises(InvalidTokenError):
            service.refresh(RefreshIn(refresh_token="stale"))

    def test_deleted_owner_yields_user_not_found_and_revokes_replacement(self, hasher):
        records = InMemoryRefreshTokenRecords()
        service = SessionService(
            token_provider=JWTTokenProvider(),
            refresh_store=RefreshTokenStore(records),
            password_hasher=hasher,
        )
        records.create(
            user_id=987654, token="orphan", expires_at=datetime.now(UTC) + timedelta(days=1)
        )

        with pytest.raises(UserNotFoundError):
            service.refresh(RefreshIn(refresh_token="orphan"))

        assert records.get("orphan").revoked is True
        assert records.revoke_all_for_user(987654) == 0  # replacement already revoked


# -------------------------------- Logout ---------------------------------- #
class TestLogout:
    def test_logout_revokes_presented_token_only(self, service):
        _register(service)
        a = service.login(LoginIn(email="ada@example.com", password=PASSWORD))
        b = service.login(LoginIn(email="ada@example.com", password=PASSWORD))

        service.logout(LogoutIn(refresh_token=a.tokens.refresh_token))

        with pytest.raises(InvalidTokenError):
            service.refresh(RefreshIn(refresh_token=a.tokens.refresh_token))
        assert service.refresh(RefreshIn(refresh_token=b.tokens.refresh_token))

    def test_logout_all_sessions_revokes_siblings(self, service):
        _register(service)
        a = service.login(LoginIn(email="ada@example.com", password=PASSWORD))
        b = service.login(LoginIn(email="ada@example.com", password=PASSWORD))

        service.logout(LogoutIn(refresh_token=a.tokens.refresh_token, all_sessions=True))

        for token in (a.tokens.refresh_token, b.tokens.refresh_token):
            with pytest.raises(InvalidTokenError):
                service.refresh(RefreshIn(refresh_token=token))

    def test_logout_is_idempotent(self, service):
        session = _register(service)
        service.logout(LogoutIn(refresh_token=session.tokens.refresh_token))
        service.logout(LogoutIn(refresh_token=session.tokens.refresh_token))
        service.logout(LogoutIn(refresh_token="never-issued", all_sessions=True))


# ------------------------------ Introspect -------------------------------- #
class TestIntrospectAndProfile:
    def test_introspect_rejects_garbage(self, service):
        with pytest.raises(InvalidTokenError):
            service.introspect("not-a-jwt")

    def test_get_user_returns_public_profile(self, service):
        session = _register(service)
        user = service.get_user(session.user.id)

        assert user.id == session.user.id
        assert user.email == "ada@example.com"
        assert not hasattr(user, "password_hash")

    def test_get_user_missing(self, service):
        with pytest.raises(UserNotFoundError):
            service.get_user(424242)


# ------------------------------- Scenario --------------------------------- #
def test_full_session_lifecycle(service):
    """register -> refresh -> logout -> refresh fails -> login works again."""
    session = _register(service, email="life@example.com")
    user_id = session.user.id

    rotated = service.refresh(RefreshIn(refresh_token=session.tokens.refresh_token))
    assert service.introspect(rotated.access_token) == user_id

    service.logout(LogoutIn(refresh_token=rotated.refresh_token))
    with pytest.raises(InvalidTokenError):
        service.refresh(RefreshIn(refresh_token=rotated.refresh_token))

    again = service.login(LoginIn(email="life@example.com", password=PASSWORD))
    assert again.user.id == user_id
